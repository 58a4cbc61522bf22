"""
Expense Aggregation

Applies expenses to a projected balance.

An expense due on or before `as_of` has been paid; one due after it is
"upcoming". The due date itself counts as paid at every call site.
Recurring expenses repeat monthly from their due date with no end, so
by `as_of` they have occurred months_between(due_date, as_of) + 1 times.

Upcoming totals count ONE occurrence per expense, recurring or not.
That is a display convention for the summary cards only; the
affordability check never uses it.
"""

from decimal import Decimal
from typing import Iterable, Optional, Sequence

from fundplanner.engine.dates import DateLike, as_date, months_between
from fundplanner.engine.money import total
from fundplanner.engine.projection import project_balance
from fundplanner.models.finance import Account, AccountSummary, Expense


def expense_occurrences(expense: Expense, as_of: DateLike) -> int:
    """How many times `expense` has come due by `as_of` (inclusive)."""
    as_of = as_date(as_of)
    if expense.due_date > as_of:
        return 0
    if not expense.is_recurring:
        return 1
    return months_between(expense.due_date, as_of) + 1


def expenses_for_account(
    account: Account,
    expenses: Iterable[Expense],
) -> list[Expense]:
    """Expenses drawn from `account`, in the order given."""
    return [expense for expense in expenses if expense.account_id == account.id]


def spent_through(
    account: Account,
    expenses: Iterable[Expense],
    as_of: DateLike,
) -> Decimal:
    """Total drawn from `account` by `as_of`, recurring expenses expanded."""
    as_of = as_date(as_of)
    return total(
        expense.amount * expense_occurrences(expense, as_of)
        for expense in expenses_for_account(account, expenses)
    )


def apply_expenses(
    balance: Decimal,
    account: Account,
    expenses: Iterable[Expense],
    as_of: DateLike,
) -> Decimal:
    """
    `balance` less everything drawn from `account` by `as_of`.

    Not clamped: a negative result means the plan overdraws the account.
    """
    return balance - spent_through(account, expenses, as_of)


def upcoming_expenses(
    expenses: Iterable[Expense],
    as_of: DateLike,
    account: Optional[Account] = None,
) -> list[Expense]:
    """Expenses first due after `as_of`, soonest first."""
    as_of = as_date(as_of)
    pool = expenses if account is None else expenses_for_account(account, expenses)
    future = [expense for expense in pool if expense.due_date > as_of]
    return sorted(future, key=lambda expense: expense.due_date)


def upcoming_total(
    account: Account,
    expenses: Iterable[Expense],
    as_of: DateLike,
) -> Decimal:
    """Sum of future expense amounts for `account`, one occurrence each."""
    return total(expense.amount for expense in upcoming_expenses(expenses, as_of, account))


def summarize_account(
    account: Account,
    expenses: Sequence[Expense],
    as_of: DateLike,
) -> AccountSummary:
    """Current balance, upcoming obligations and what's left after them."""
    as_of = as_date(as_of)
    current = apply_expenses(project_balance(account, as_of), account, expenses, as_of)
    upcoming = upcoming_total(account, expenses, as_of)

    return AccountSummary(
        account_id=account.id,
        name=account.name,
        as_of=as_of,
        current=current,
        upcoming=upcoming,
        net_after=current - upcoming,
    )


def unassigned_expenses(
    accounts: Iterable[Account],
    expenses: Iterable[Expense],
) -> list[Expense]:
    """Expenses with no account, or whose account no longer exists."""
    live_ids = {account.id for account in accounts}
    return [
        expense for expense in expenses
        if expense.account_id is None or expense.account_id not in live_ids
    ]


def spent_unassigned(expenses: Iterable[Expense], as_of: DateLike) -> Decimal:
    """Recurring-expanded spend to date across already-unassigned expenses."""
    as_of = as_date(as_of)
    return total(
        expense.amount * expense_occurrences(expense, as_of)
        for expense in expenses
    )
