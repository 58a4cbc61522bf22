"""Decimal helpers shared by the engine."""

from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Iterable

ZERO = Decimal("0")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")
MONTHS_PER_YEAR = Decimal("12")


def round_money(value: Decimal) -> Decimal:
    """Round to cents for display. Never feed the result back into a projection."""
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus two decimals
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(CENT, rounding=ROUND_HALF_UP)


def total(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)


def format_money(value: Decimal, symbol: str = "$") -> str:
    """'$1,234.50' / '$-100.00' - the sign stays after the symbol."""
    return f"{symbol}{round_money(value):,.2f}"
