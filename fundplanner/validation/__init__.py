"""Form validation package."""

from fundplanner.validation.validator import PlanValidator

__all__ = ["PlanValidator"]
