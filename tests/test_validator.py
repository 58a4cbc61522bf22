"""
Tests for two-stage form validation.
"""

from datetime import date
from decimal import Decimal

import pytest

from fundplanner.models.finance import (
    Account,
    AccountDraft,
    AffordabilityReason,
    Expense,
    ExpenseDraft,
)
from fundplanner.validation import PlanValidator


@pytest.fixture
def validator() -> PlanValidator:
    return PlanValidator(currency_symbol="$")


@pytest.fixture
def account() -> Account:
    return Account(
        id="acct-1",
        name="Vacation Fund",
        start_date=date(2024, 1, 1),
        initial_amount=Decimal("500"),
    )


class TestAccountValidation:
    """Tests for the account form."""

    def test_valid_draft(self, validator):
        """A complete form becomes an Account."""
        draft = AccountDraft(
            user_id="user-1",
            name="  Savings ",
            start_date="2024-01-01",
            initial_amount="1,000",
            monthly_contribution="",
            annual_return_rate="5",
        )

        result, account = validator.validate_account(draft)

        assert result.is_valid is True
        assert account.name == "Savings"
        assert account.initial_amount == Decimal("1000")
        assert account.contribution == Decimal("0")
        assert account.rate == Decimal("5")
        assert account.user_id == "user-1"

    def test_empty_draft(self, validator):
        """Every required field is reported."""
        result, account = validator.validate_account(AccountDraft())

        assert account is None
        assert result.schema_valid is False
        assert result.errors_by_field() == {
            "name": "Please enter an account name.",
            "start_date": "Please choose a start date.",
            "initial_amount": "Initial amount must be zero or positive.",
        }

    def test_negative_initial_amount(self, validator):
        """Negative starting balances are rejected."""
        draft = AccountDraft(name="Savings", start_date="2024-01-01", initial_amount="-5")
        result, _ = validator.validate_account(draft)
        assert result.errors_by_field()["initial_amount"] == (
            "Initial amount must be zero or positive."
        )

    def test_non_numeric_contribution(self, validator):
        """Text that isn't a number produces an issue, not an exception."""
        draft = AccountDraft(
            name="Savings",
            start_date="2024-01-01",
            initial_amount="0",
            monthly_contribution="a lot",
        )
        result, _ = validator.validate_account(draft)
        assert result.errors_by_field()["monthly_contribution"] == (
            "Monthly contribution must be zero or positive."
        )

    def test_rate_out_of_range(self, validator):
        """Rates above 100 percent are rejected."""
        draft = AccountDraft(
            name="Savings",
            start_date="2024-01-01",
            initial_amount="0",
            annual_return_rate="150",
        )
        result, account = validator.validate_account(draft)
        assert account is None
        assert "annual_return_rate" in result.errors_by_field()

    def test_invalid_date(self, validator):
        """Impossible dates are reported."""
        draft = AccountDraft(name="Savings", start_date="2024-02-30", initial_amount="0")
        result, _ = validator.validate_account(draft)
        assert result.errors_by_field()["start_date"] == "Invalid date."

    def test_edit_keeps_id(self, validator):
        """Editing keeps the account's identity."""
        draft = AccountDraft(id="acct-9", name="Savings", start_date="2024-01-01", initial_amount="0")
        _, account = validator.validate_account(draft)
        assert account.id == "acct-9"


class TestExpenseSchema:
    """Stage 1 for the expense form."""

    def test_empty_draft(self, validator):
        """Every required field is reported."""
        result, expense = validator.validate_expense(ExpenseDraft(), [], [])

        assert expense is None
        assert result.semantic_valid is False
        assert result.errors_by_field() == {
            "name": "Please enter an expense name.",
            "amount": "Enter a positive amount.",
            "due_date": "Please choose a due date.",
        }

    @pytest.mark.parametrize("amount", ["0", "-10", "ten", "NaN", "Infinity"])
    def test_bad_amounts(self, validator, amount):
        """Zero, negative and non-numeric amounts are all rejected."""
        draft = ExpenseDraft(name="Rent", amount=amount, due_date="2024-02-01")
        result, expense = validator.validate_expense(draft, [], [])
        assert expense is None
        assert result.errors_by_field() == {"amount": "Enter a positive amount."}

    def test_invalid_date(self, validator):
        """Impossible dates are reported."""
        draft = ExpenseDraft(name="Rent", amount="10", due_date="2024-13-01")
        result, _ = validator.validate_expense(draft, [], [])
        assert result.errors_by_field() == {"due_date": "Invalid date."}


class TestExpenseSemantic:
    """Stage 2: does the plan still add up?"""

    def test_unassigned_expense_valid(self, validator, account):
        """Expenses without an account skip the affordability check."""
        draft = ExpenseDraft(name="Gift", amount="25", due_date="2024-04-01")

        result, expense = validator.validate_expense(draft, [account], [])

        assert result.is_valid is True
        assert result.affordability is None
        assert expense.account_id is None

    def test_affordable(self, validator, account):
        """400 out of 500 passes."""
        draft = ExpenseDraft(name="Flights", amount="400", due_date="2024-01-01", account_id="acct-1")

        result, expense = validator.validate_expense(draft, [account], [])

        assert result.is_valid is True
        assert result.affordability.accepted is True
        assert expense.amount == Decimal("400")

    def test_would_go_negative(self, validator, account):
        """600 out of 500 fails on the account field."""
        draft = ExpenseDraft(name="Flights", amount="600", due_date="2024-01-01", account_id="acct-1")

        result, expense = validator.validate_expense(draft, [account], [])

        assert expense is None
        assert result.schema_valid is True
        assert result.semantic_valid is False
        assert result.affordability.reason == AffordabilityReason.WOULD_GO_NEGATIVE

        issue = result.issues[0]
        assert issue.field == "account_id"
        assert issue.issue_type == "would_go_negative"
        assert "$-100.00" in issue.message
        assert "2024-01-01" in issue.message
        assert "$500.00" in issue.suggested_fix

    def test_before_account_start(self, validator, account):
        """Expenses can't predate their account."""
        draft = ExpenseDraft(name="Flights", amount="1", due_date="2023-12-01", account_id="acct-1")

        result, expense = validator.validate_expense(draft, [account], [])

        assert expense is None
        assert result.errors_by_field()["due_date"].startswith(
            "This account starts on 2024-01-01."
        )

    def test_edit_not_double_counted(self, validator, account):
        """The stored version of an edited expense is replaced."""
        stored = Expense(
            id="exp-1", name="Flights", amount=Decimal("400"),
            due_date=date(2024, 1, 1), account_id="acct-1",
        )
        draft = ExpenseDraft(
            id="exp-1", name="Flights", amount="450", due_date="2024-01-01", account_id="acct-1",
        )

        result, expense = validator.validate_expense(draft, [account], [stored])

        assert result.is_valid is True
        assert expense.id == "exp-1"
        assert result.affordability.projected_balance == Decimal("50")

    def test_unknown_account_warns(self, validator, account):
        """A link to a missing account is kept but flagged."""
        draft = ExpenseDraft(name="Flights", amount="9999", due_date="2024-01-01", account_id="gone")

        result, expense = validator.validate_expense(draft, [account], [])

        assert result.is_valid is True
        assert result.warnings
        assert expense.account_id == "gone"


class TestUserFriendlySummary:
    """Tests for the text shown above the form."""

    def test_valid_with_verdict(self, validator, account):
        """A passing expense shows the projected balance."""
        draft = ExpenseDraft(name="Flights", amount="400", due_date="2024-01-01", account_id="acct-1")
        result, _ = validator.validate_expense(draft, [account], [])

        summary = validator.get_user_friendly_summary(result)

        assert summary.startswith("✅")
        assert "$100.00" in summary

    def test_valid_account(self, validator):
        """A passing account form is a short confirmation."""
        draft = AccountDraft(name="Savings", start_date="2024-01-01", initial_amount="0")
        result, _ = validator.validate_account(draft)
        assert validator.get_user_friendly_summary(result) == "✅ All checks passed!"

    def test_errors_listed(self, validator, account):
        """Errors and their fixes are listed."""
        draft = ExpenseDraft(name="Flights", amount="600", due_date="2024-01-01", account_id="acct-1")
        result, _ = validator.validate_expense(draft, [account], [])

        summary = validator.get_user_friendly_summary(result)

        assert summary.startswith("❌ Please fix the following:")
        assert "💡" in summary

    def test_warnings_listed(self, validator):
        """Warnings appear even when the draft is valid."""
        draft = ExpenseDraft(name="Flights", amount="10", due_date="2024-01-01", account_id="gone")
        result, _ = validator.validate_expense(draft, [], [])

        summary = validator.get_user_friendly_summary(result)

        assert summary.startswith("⚠️ Please note:")
