"""
Projection Engine

Pure functions over Account and Expense records. No I/O, no clock, no
shared state: "today" is always passed in as `as_of`.
"""

from fundplanner.engine.affordability import (
    PLANNING_NOTE,
    balance_with_candidate,
    check_candidate,
    max_affordable,
)
from fundplanner.engine.dates import add_months, as_date, months_between
from fundplanner.engine.expenses import (
    apply_expenses,
    expense_occurrences,
    expenses_for_account,
    spent_through,
    summarize_account,
    unassigned_expenses,
    upcoming_expenses,
    upcoming_total,
)
from fundplanner.engine.money import format_money, round_money
from fundplanner.engine.projection import (
    balance_after_months,
    project_balance,
    projection_schedule,
)
from fundplanner.engine.summary import summarize_portfolio

__all__ = [
    # Dates
    "add_months",
    "as_date",
    "months_between",
    # Projection
    "balance_after_months",
    "project_balance",
    "projection_schedule",
    # Expenses
    "apply_expenses",
    "expense_occurrences",
    "expenses_for_account",
    "spent_through",
    "summarize_account",
    "unassigned_expenses",
    "upcoming_expenses",
    "upcoming_total",
    # Affordability
    "PLANNING_NOTE",
    "balance_with_candidate",
    "check_candidate",
    "max_affordable",
    # Summary
    "summarize_portfolio",
    # Money
    "format_money",
    "round_money",
]
