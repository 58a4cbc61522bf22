"""
Balance Projection

Projects an account's balance forward from its start date, before any
expenses are taken out.

Two growth models, deliberately different in shape:

- reinvest_dividends=True: every month, add the contribution, then
  compound at annual_rate/12.
- reinvest_dividends=False: add all contributions, then apply simple
  interest once on the result for the elapsed fraction of a year.

With 1000 initial, 100/month and 12%, month 2 is 1223.11 compounding and
1224.00 simple. Keep them separate.
"""

from decimal import Decimal

from fundplanner.engine.dates import DateLike, add_months, as_date, months_between
from fundplanner.engine.money import HUNDRED, MONTHS_PER_YEAR, ZERO
from fundplanner.models.finance import Account, ProjectionPoint


def _compound(account: Account, months: int) -> Decimal:
    balance = account.initial_amount
    monthly_rate = account.rate / HUNDRED / MONTHS_PER_YEAR

    for _ in range(months):
        balance += account.contribution
        if monthly_rate:
            balance *= 1 + monthly_rate

    return balance


def _simple(account: Account, months: int) -> Decimal:
    balance = account.initial_amount + account.contribution * months

    if account.rate and months:
        # balance * rate/100 * months/12, divided last to stay exact
        balance += balance * account.rate * months / (HUNDRED * MONTHS_PER_YEAR)

    return balance


def balance_after_months(account: Account, months: int) -> Decimal:
    """Gross balance after `months` whole monthly steps, clamped at zero."""
    if months <= 0:
        return max(account.initial_amount, ZERO)

    if account.reinvest_dividends:
        balance = _compound(account, months)
    else:
        balance = _simple(account, months)

    return max(balance, ZERO)


def project_balance(account: Account, as_of: DateLike) -> Decimal:
    """
    Balance of `account` on `as_of`, before subtracting any expenses.

    Dates before the account's start return `initial_amount` unchanged.
    The result is never negative.
    """
    as_of = as_date(as_of)
    if as_of < account.start_date:
        return account.initial_amount

    return balance_after_months(account, months_between(account.start_date, as_of))


def projection_schedule(account: Account, through: DateLike) -> list[ProjectionPoint]:
    """
    Month-by-month gross balances from the start date up to `through`.

    Point 0 is the start date itself. Points fall on monthly anniversaries
    of the start date (clamped to month end), so a chart can plot them
    directly. Empty when `through` precedes the start.
    """
    through = as_date(through)
    if through < account.start_date:
        return []

    months = months_between(account.start_date, through)
    return [
        ProjectionPoint(
            month=step,
            as_of=add_months(account.start_date, step),
            balance=balance_after_months(account, step),
        )
        for step in range(months + 1)
    ]
