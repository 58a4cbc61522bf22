"""
Tests for the dashboard summary.
"""

from datetime import date
from decimal import Decimal

from fundplanner.engine.money import format_money, round_money
from fundplanner.engine.summary import summarize_portfolio
from fundplanner.models.finance import Account, Expense


AS_OF = date(2024, 3, 15)


def _accounts() -> list[Account]:
    return [
        Account(
            id="main",
            name="Main",
            start_date=date(2024, 1, 1),
            initial_amount=Decimal("1000"),
        ),
        Account(
            id="empty",
            name="Empty",
            start_date=date(2024, 1, 1),
            initial_amount=Decimal("0"),
        ),
    ]


def _expenses() -> list[Expense]:
    return [
        Expense(id="e1", name="Insurance", amount=Decimal("200"),
                due_date=date(2024, 2, 1), account_id="main"),
        Expense(id="e2", name="Gym", amount=Decimal("50"),
                due_date=date(2024, 1, 15), account_id="main", is_recurring=True),
        Expense(id="e3", name="Laptop", amount=Decimal("300"),
                due_date=date(2024, 6, 1), account_id="main"),
        Expense(id="e4", name="Old plan", amount=Decimal("70"),
                due_date=date(2024, 2, 10), account_id="deleted"),
        Expense(id="e5", name="Gift", amount=Decimal("25"),
                due_date=date(2024, 4, 1)),
    ]


class TestSummarizePortfolio:
    """Tests for portfolio totals."""

    def test_per_account_figures(self):
        """Each account gets its own summary, in input order."""
        summary = summarize_portfolio(_accounts(), _expenses(), AS_OF)

        main, empty = summary.accounts
        assert main.account_id == "main"
        assert main.current == Decimal("650")
        assert main.upcoming == Decimal("300")
        assert empty.current == Decimal("0")

    def test_totals(self):
        """Totals add up the account figures."""
        summary = summarize_portfolio(_accounts(), _expenses(), AS_OF)

        assert summary.total_current == Decimal("650")
        assert summary.total_upcoming == Decimal("300")
        assert summary.net_after == Decimal("350")
        assert summary.as_of == AS_OF

    def test_allocation_skips_empty_accounts(self):
        """Accounts with nothing in them are left off the chart."""
        summary = summarize_portfolio(_accounts(), _expenses(), AS_OF)

        assert [s.account_id for s in summary.allocation] == ["main"]
        assert summary.allocation[0].value == Decimal("650.00")

    def test_upcoming_list_includes_unassigned(self):
        """The upcoming list covers every expense, soonest first."""
        summary = summarize_portfolio(_accounts(), _expenses(), AS_OF)
        assert [e.id for e in summary.upcoming_expenses] == ["e5", "e3"]

    def test_upcoming_limit(self):
        """The list can be capped."""
        summary = summarize_portfolio(_accounts(), _expenses(), AS_OF, upcoming_limit=1)
        assert [e.id for e in summary.upcoming_expenses] == ["e5"]

    def test_unassigned_figures(self):
        """Expenses without a live account are reported separately."""
        summary = summarize_portfolio(_accounts(), _expenses(), AS_OF)

        assert summary.unassigned_total == Decimal("70")
        assert summary.unassigned_upcoming == Decimal("25")

    def test_shortfall_accounts(self):
        """Accounts whose upcoming exceeds current are flagged."""
        accounts = [Account(id="tight", name="Tight", start_date=date(2024, 1, 1),
                            initial_amount=Decimal("100"))]
        expenses = [Expense(name="Repair", amount=Decimal("250"),
                            due_date=date(2024, 5, 1), account_id="tight")]

        summary = summarize_portfolio(accounts, expenses, AS_OF)

        assert [s.account_id for s in summary.accounts_in_shortfall] == ["tight"]
        assert summary.net_after == Decimal("-150")

    def test_empty_portfolio(self):
        """No accounts and no expenses is all zeros."""
        summary = summarize_portfolio([], [], AS_OF)

        assert summary.accounts == []
        assert summary.total_current == Decimal("0")
        assert summary.allocation == []


class TestMoney:
    """Tests for display rounding."""

    def test_round_half_up(self):
        """Half a cent rounds up."""
        assert round_money(Decimal("1.005")) == Decimal("1.01")
        assert round_money(Decimal("1223.114")) == Decimal("1223.11")

    def test_format_money(self):
        """Thousands separators and two decimals."""
        assert format_money(Decimal("1234.5")) == "$1,234.50"
        assert format_money(Decimal("-100"), "£") == "£-100.00"

    def test_round_beyond_default_precision(self):
        """Balances with more than 26 integer digits still round to cents."""
        huge = Decimal("123456789012345678901234567890.125")
        assert round_money(huge) == Decimal("123456789012345678901234567890.13")
        assert format_money(huge).endswith(",890.13")


class TestLongHorizon:
    """Tests for decades of compounding at a high rate."""

    def test_summary_of_huge_balance(self):
        """Seventy years at 100% compounds past 10^26 without failing."""
        account = Account(
            id="rocket",
            name="Rocket",
            start_date=date(2000, 1, 1),
            initial_amount=Decimal("1000"),
            annual_return_rate=Decimal("100"),
            reinvest_dividends=True,
        )

        summary = summarize_portfolio([account], [], date(2070, 1, 1))

        assert summary.total_current > Decimal(10) ** 26
        assert len(summary.accounts) == 1
