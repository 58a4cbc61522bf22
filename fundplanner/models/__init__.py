"""
Data Models Package

This package contains all Pydantic models used in Fund Planner.
Records coming from storage and results going to the presentation
layer must conform to these schemas.
"""

from fundplanner.models.finance import (
    Account,
    AccountDraft,
    AccountSummary,
    AffordabilityReason,
    AffordabilityResult,
    AllocationSlice,
    Expense,
    ExpenseDraft,
    PortfolioSummary,
    ProjectionPoint,
    ValidationIssue,
    ValidationResult,
    new_record_id,
)
from fundplanner.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Finance models
    "Account",
    "AccountDraft",
    "AccountSummary",
    "AffordabilityReason",
    "AffordabilityResult",
    "AllocationSlice",
    "Expense",
    "ExpenseDraft",
    "PortfolioSummary",
    "ProjectionPoint",
    "ValidationIssue",
    "ValidationResult",
    "new_record_id",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
