"""
Tests for calendar arithmetic.
"""

import pytest
from datetime import date, datetime, timedelta

from fundplanner.engine.dates import add_months, as_date, months_between


class TestAsDate:
    """Tests for date normalization."""

    def test_date_passes_through(self):
        """A plain date is returned unchanged."""
        assert as_date(date(2024, 3, 5)) == date(2024, 3, 5)

    def test_datetime_drops_time(self):
        """Time of day is discarded."""
        assert as_date(datetime(2024, 3, 5, 23, 59)) == date(2024, 3, 5)

    def test_iso_string(self):
        """ISO strings are parsed, with or without a time part."""
        assert as_date("2024-03-05") == date(2024, 3, 5)
        assert as_date("2024-03-05T10:30:00") == date(2024, 3, 5)

    def test_invalid_string_raises_value_error(self):
        """A malformed date string is a ValueError."""
        with pytest.raises(ValueError):
            as_date("not a date")
        with pytest.raises(ValueError):
            as_date("2024-02-30")

    def test_non_date_raises_type_error(self):
        """Numbers aren't dates."""
        with pytest.raises(TypeError):
            as_date(20240305)


class TestMonthsBetween:
    """Tests for elapsed whole months."""

    def test_same_day_is_zero(self):
        """A date is zero months from itself."""
        for d in (date(2024, 1, 1), date(2024, 2, 29), date(2023, 12, 31)):
            assert months_between(d, d) == 0

    def test_full_month(self):
        """Reaching the same day-of-month counts a month."""
        assert months_between(date(2024, 1, 15), date(2024, 2, 15)) == 1

    def test_partial_month_not_counted(self):
        """One day short of the anniversary is still zero."""
        assert months_between(date(2024, 1, 15), date(2024, 2, 14)) == 0

    def test_month_end_start(self):
        """Jan 31 to Feb 29 hasn't reached day 31 yet."""
        assert months_between(date(2024, 1, 31), date(2024, 2, 29)) == 0
        assert months_between(date(2024, 1, 31), date(2024, 3, 31)) == 2

    def test_across_years(self):
        """Year boundaries are handled."""
        assert months_between(date(2023, 11, 1), date(2025, 2, 1)) == 15

    def test_end_before_start_is_zero(self):
        """Negative intervals clamp to zero."""
        assert months_between(date(2024, 5, 1), date(2024, 1, 1)) == 0

    def test_monotonic_in_end(self):
        """Moving the end date forward never decreases the count."""
        start = date(2024, 1, 31)
        previous = 0
        for offset in range(800):
            current = months_between(start, start + timedelta(days=offset))
            assert current >= previous
            previous = current

    def test_accepts_datetimes(self):
        """Datetimes are compared by date only."""
        assert months_between(
            datetime(2024, 1, 15, 23, 0),
            datetime(2024, 2, 15, 0, 1),
        ) == 1


class TestAddMonths:
    """Tests for month stepping."""

    def test_simple_step(self):
        """Same day in the following month."""
        assert add_months(date(2024, 1, 15), 1) == date(2024, 2, 15)

    def test_clamps_to_month_end(self):
        """Jan 31 + 1 month is the last day of February."""
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)

    def test_across_year(self):
        """Stepping past December rolls the year."""
        assert add_months(date(2024, 11, 30), 3) == date(2025, 2, 28)

    def test_zero_months(self):
        """Zero steps is the start date."""
        assert add_months(date(2024, 6, 10), 0) == date(2024, 6, 10)
