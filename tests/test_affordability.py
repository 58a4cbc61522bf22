"""
Tests for the affordability check.

The accept/reject decision always uses the fully expanded recurring
balance. The headroom hint counts each expense once.
"""

from datetime import date
from decimal import Decimal

from fundplanner.engine.affordability import (
    PLANNING_NOTE,
    balance_with_candidate,
    check_candidate,
    max_affordable,
)
from fundplanner.models.finance import Account, AffordabilityReason, Expense


def _account(**overrides) -> Account:
    fields = {
        "id": "acct-1",
        "name": "Vacation Fund",
        "start_date": date(2024, 1, 1),
        "initial_amount": Decimal("500"),
    }
    fields.update(overrides)
    return Account(**fields)


def _expense(amount, due_date, **overrides) -> Expense:
    fields = {
        "name": "Flights",
        "amount": Decimal(str(amount)),
        "due_date": due_date,
        "account_id": "acct-1",
    }
    fields.update(overrides)
    return Expense(**fields)


class TestCheckCandidate:
    """Tests for the accept/reject decision."""

    def test_rejects_overdraw(self):
        """600 out of 500 on the start date is rejected."""
        verdict = check_candidate(_account(), [], _expense(600, date(2024, 1, 1)))

        assert verdict.accepted is False
        assert verdict.reason == AffordabilityReason.WOULD_GO_NEGATIVE
        assert verdict.projected_balance == Decimal("-100")

    def test_accepts_within_balance(self):
        """400 out of 500 on the start date is fine."""
        verdict = check_candidate(_account(), [], _expense(400, date(2024, 1, 1)))

        assert verdict.accepted is True
        assert verdict.reason == AffordabilityReason.AFFORDABLE
        assert verdict.projected_balance == Decimal("100")

    def test_exactly_zero_is_accepted(self):
        """Spending the whole balance is allowed."""
        verdict = check_candidate(_account(), [], _expense(500, date(2024, 1, 1)))
        assert verdict.accepted is True

    def test_rejection_message(self):
        """The message names the account, the balance and the date."""
        verdict = check_candidate(_account(), [], _expense(600, date(2024, 1, 1)))

        assert "Vacation Fund" in verdict.message
        assert "$-100.00" in verdict.message
        assert "2024-01-01" in verdict.message
        assert "Reduce the amount, move the date, or increase contributions." in verdict.message
        assert PLANNING_NOTE in verdict.message

    def test_currency_symbol(self):
        """The configured currency symbol is used in messages."""
        verdict = check_candidate(
            _account(), [], _expense(600, date(2024, 1, 1)), currency_symbol="€"
        )
        assert "€-100.00" in verdict.message

    def test_before_account_start(self):
        """Any amount dated before the start is rejected."""
        verdict = check_candidate(_account(), [], _expense(1, date(2023, 12, 31)))

        assert verdict.accepted is False
        assert verdict.reason == AffordabilityReason.BEFORE_ACCOUNT_START
        assert verdict.projected_balance is None
        assert "2024-01-01" in verdict.message

    def test_existing_expenses_count(self):
        """Earlier expenses reduce what's left."""
        stored = [_expense(300, date(2024, 1, 1), id="rent")]
        verdict = check_candidate(_account(), stored, _expense(300, date(2024, 2, 1)))

        assert verdict.accepted is False
        assert verdict.projected_balance == Decimal("-100")

    def test_recurring_fully_expanded(self):
        """A recurring expense counts every month, not once."""
        account = _account(initial_amount=Decimal("1000"))
        stored = [_expense(100, date(2024, 1, 1), id="gym", is_recurring=True)]
        candidate = _expense(700, date(2024, 4, 1))

        verdict = check_candidate(account, stored, candidate)

        # 1000 - 4 x 100 - 700
        assert verdict.projected_balance == Decimal("-100")
        assert verdict.accepted is False
        # the hint only counts the gym membership once
        assert verdict.max_affordable == Decimal("900")

    def test_contributions_help(self):
        """Money contributed by the due date is available."""
        account = _account(monthly_contribution=Decimal("100"))
        verdict = check_candidate(account, [], _expense(600, date(2024, 2, 1)))
        assert verdict.accepted is True
        assert verdict.projected_balance == Decimal("0")

    def test_edit_replaces_stored_version(self):
        """Editing an expense doesn't count the old amount too."""
        stored = [_expense(400, date(2024, 1, 1), id="trip")]
        edited = _expense(450, date(2024, 1, 1), id="trip")

        verdict = check_candidate(_account(), stored, edited)

        assert verdict.accepted is True
        assert verdict.projected_balance == Decimal("50")

    def test_does_not_mutate_inputs(self):
        """The stored list is left as it was."""
        stored = [_expense(100, date(2024, 1, 1), id="a")]
        check_candidate(_account(), stored, _expense(50, date(2024, 1, 1)))
        assert [e.id for e in stored] == ["a"]


class TestBalanceWithCandidate:
    """Tests for the balance behind the decision."""

    def test_candidate_linked_to_account(self):
        """The candidate counts against the account it's checked against."""
        candidate = _expense(200, date(2024, 1, 1), account_id=None)
        assert balance_with_candidate(_account(), [], candidate) == Decimal("300")

    def test_keeps_sign(self):
        """A negative balance is returned as is."""
        candidate = _expense(800, date(2024, 1, 1))
        assert balance_with_candidate(_account(), [], candidate) == Decimal("-300")


class TestMaxAffordable:
    """Tests for the headroom hint."""

    def test_balance_less_earlier_expenses(self):
        """Gross balance minus expenses due by the date."""
        stored = [
            _expense(150, date(2024, 1, 1)),
            _expense(999, date(2024, 6, 1)),
        ]
        assert max_affordable(_account(), stored, date(2024, 2, 1)) == Decimal("350")

    def test_ignores_own_id(self):
        """When editing, the expense's current version is left out."""
        stored = [_expense(150, date(2024, 1, 1), id="x")]
        assert max_affordable(
            _account(), stored, date(2024, 1, 1), ignore_expense_id="x"
        ) == Decimal("500")

    def test_never_negative(self):
        """Overcommitted accounts report zero, not a negative amount."""
        stored = [_expense(900, date(2024, 1, 1))]
        assert max_affordable(_account(), stored, date(2024, 1, 1)) == Decimal("0")


class TestLongHorizon:
    """Tests for decisions far in the future."""

    def test_huge_balance_accepted(self):
        """A tiny expense against a balance past 10^26 is accepted with a message."""
        account = _account(
            start_date=date(2000, 1, 1),
            initial_amount=Decimal("1000"),
            annual_return_rate=Decimal("100"),
            reinvest_dividends=True,
        )

        verdict = check_candidate(account, [], _expense(1, date(2070, 1, 1)))

        assert verdict.accepted is True
        assert verdict.projected_balance > Decimal(10) ** 26
        assert verdict.message
