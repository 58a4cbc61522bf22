"""
Portfolio Summary

Everything the dashboard shows, computed in one pass from a snapshot of
the user's accounts and expenses. Every figure comes from the same
projection and aggregation functions the forms use, so the dashboard and
the account cards can never disagree.
"""

from decimal import Decimal
from typing import Optional, Sequence

from fundplanner.engine.dates import DateLike, as_date
from fundplanner.engine.expenses import (
    spent_unassigned,
    summarize_account,
    unassigned_expenses,
    upcoming_expenses,
)
from fundplanner.engine.money import round_money, total
from fundplanner.models.finance import (
    Account,
    AllocationSlice,
    Expense,
    PortfolioSummary,
)

DEFAULT_ALLOCATION_MIN = Decimal("0.01")


def summarize_portfolio(
    accounts: Sequence[Account],
    expenses: Sequence[Expense],
    as_of: DateLike,
    upcoming_limit: Optional[int] = None,
    allocation_min: Decimal = DEFAULT_ALLOCATION_MIN,
) -> PortfolioSummary:
    """
    Build the dashboard summary as of `as_of`.

    Args:
        accounts: The user's accounts, in display order
        expenses: The user's expenses, assigned or not
        as_of: The date treated as "today"
        upcoming_limit: Cap on the upcoming-expense list (None = all)
        allocation_min: Accounts at or below this current balance are
            left out of the allocation breakdown

    Returns:
        PortfolioSummary with per-account figures and totals
    """
    as_of = as_date(as_of)

    summaries = [summarize_account(account, expenses, as_of) for account in accounts]
    total_current = total(summary.current for summary in summaries)
    total_upcoming = total(summary.upcoming for summary in summaries)

    allocation = [
        AllocationSlice(
            account_id=summary.account_id,
            name=summary.name,
            value=round_money(summary.current),
        )
        for summary in summaries
        if summary.current > allocation_min
    ]

    upcoming = upcoming_expenses(expenses, as_of)
    if upcoming_limit is not None:
        upcoming = upcoming[:upcoming_limit]

    orphans = unassigned_expenses(accounts, expenses)

    return PortfolioSummary(
        as_of=as_of,
        accounts=summaries,
        total_current=total_current,
        total_upcoming=total_upcoming,
        net_after=total_current - total_upcoming,
        allocation=allocation,
        upcoming_expenses=upcoming,
        unassigned_total=spent_unassigned(orphans, as_of),
        unassigned_upcoming=total(
            expense.amount for expense in upcoming_expenses(orphans, as_of)
        ),
    )
