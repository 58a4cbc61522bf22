"""
Fund Planner - Source Package

A personal finance planning assistant: accounts that grow under monthly
contributions and interest, expenses drawn from them, and an early
warning when a plan would drive an account negative.

DESIGN PRINCIPLES:
1. Projections are always recomputed, never stored
2. The engine is pure - callers pass "today" explicitly
3. Validation reports problems, it never silently corrects them
4. Every change to an account or expense is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Fund Planner Team"
