"""
Calendar arithmetic for projections.

A "month" here is elapsed-age style: from the 15th to the 14th of the
next month is still zero months. All functions work at day granularity;
time-of-day is discarded before any comparison.
"""

import calendar
from datetime import date, datetime
from typing import Union

DateLike = Union[date, datetime, str]


def as_date(value: DateLike) -> date:
    """
    Normalize a date, datetime or ISO string to a plain date.

    Raises:
        ValueError: If a string is not an ISO date
        TypeError: If the value is not date-like at all
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise TypeError(f"Expected a date, got {type(value).__name__}")


def months_between(start: DateLike, end: DateLike) -> int:
    """
    Whole calendar months elapsed from `start` to `end`.

    A month only counts once `end`'s day-of-month reaches `start`'s, so
    Jan 31 -> Feb 28 is 0 months. Returns 0 when `end` precedes `start`.
    """
    start = as_date(start)
    end = as_date(end)

    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1

    return max(months, 0)


def add_months(start: DateLike, months: int) -> date:
    """
    The date `months` calendar months after `start`.

    The day-of-month is clamped to the end of shorter months
    (Jan 31 + 1 month -> Feb 28/29).
    """
    start = as_date(start)
    index = start.year * 12 + (start.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(start.day, last_day))
