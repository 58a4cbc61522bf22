"""
Affordability Check

Answers two questions before an expense is accepted:

1. How much could this account absorb on a given date? (`max_affordable`)
   A quick hint for the form: gross projected balance less the other
   expenses due by then, each counted once.

2. Would this exact expense drive the account negative? (`check_candidate`)
   The real accept/reject decision. Recomputes the full recurring-expanded
   balance at the candidate's due date, with the candidate in place of any
   earlier version of itself.

CRITICAL: `max_affordable` is clamped at zero for display, but the balance
behind `check_candidate` keeps its sign. A negative value there is exactly
the scenario this module exists to catch.

This is planning guidance. Nothing here knows the real bank balance.
"""

from decimal import Decimal
from typing import Iterable, Optional, Sequence

from fundplanner.engine.dates import DateLike, as_date
from fundplanner.engine.expenses import apply_expenses, expenses_for_account
from fundplanner.engine.money import ZERO, format_money, total
from fundplanner.engine.projection import project_balance
from fundplanner.models.finance import (
    Account,
    AffordabilityReason,
    AffordabilityResult,
    Expense,
)

PLANNING_NOTE = (
    "This is based on your plan, not your actual bank balance."
)


def max_affordable(
    account: Account,
    expenses: Iterable[Expense],
    due_date: DateLike,
    ignore_expense_id: Optional[str] = None,
) -> Decimal:
    """
    Largest one-off amount `account` could cover on `due_date`.

    Other expenses due by then count once each (recurring ones are not
    expanded here). Pass `ignore_expense_id` when editing so the expense
    doesn't compete with itself. Never negative.
    """
    due = as_date(due_date)
    gross = project_balance(account, due)

    spent_before = total(
        expense.amount
        for expense in expenses_for_account(account, expenses)
        if expense.id != ignore_expense_id and expense.due_date <= due
    )

    return max(gross - spent_before, ZERO)


def balance_with_candidate(
    account: Account,
    expenses: Sequence[Expense],
    candidate: Expense,
) -> Decimal:
    """
    Recurring-expanded balance of `account` on the candidate's due date,
    as if the candidate were already saved against it.

    Any stored expense with the candidate's id is replaced by it. The
    sign is kept.
    """
    due = candidate.due_date
    linked = candidate.model_copy(update={"account_id": account.id})
    effective = [expense for expense in expenses if expense.id != candidate.id]
    effective.append(linked)

    return apply_expenses(project_balance(account, due), account, effective, due)


def check_candidate(
    account: Account,
    expenses: Sequence[Expense],
    candidate: Expense,
    currency_symbol: str = "$",
) -> AffordabilityResult:
    """
    Decide whether `candidate` fits in `account`'s plan.

    Rejected when it is due before the account starts (whatever the
    amount), or when the account's balance on the due date would go
    negative with it included.
    """
    due = candidate.due_date
    headroom = max_affordable(account, expenses, due, ignore_expense_id=candidate.id)

    if due < account.start_date:
        return AffordabilityResult(
            account_id=account.id,
            account_name=account.name,
            due_date=due,
            accepted=False,
            reason=AffordabilityReason.BEFORE_ACCOUNT_START,
            max_affordable=ZERO,
            message=(
                f"This account starts on {account.start_date.isoformat()}. "
                "Expense date must be on or after that."
            ),
        )

    balance = balance_with_candidate(account, expenses, candidate)

    if balance < 0:
        return AffordabilityResult(
            account_id=account.id,
            account_name=account.name,
            due_date=due,
            accepted=False,
            reason=AffordabilityReason.WOULD_GO_NEGATIVE,
            projected_balance=balance,
            max_affordable=headroom,
            message=(
                f"This plan would make {account.name} go negative "
                f"(≈ {format_money(balance, currency_symbol)} on {due.isoformat()}). "
                "Reduce the amount, move the date, or increase contributions. "
                f"{PLANNING_NOTE}"
            ),
        )

    return AffordabilityResult(
        account_id=account.id,
        account_name=account.name,
        due_date=due,
        accepted=True,
        reason=AffordabilityReason.AFFORDABLE,
        projected_balance=balance,
        max_affordable=headroom,
        message=(
            f"{account.name} is projected to hold "
            f"{format_money(balance, currency_symbol)} on {due.isoformat()} "
            f"after this expense. {PLANNING_NOTE}"
        ),
    )
