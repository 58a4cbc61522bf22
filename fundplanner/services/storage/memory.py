"""
In-Memory Storage Implementation

Dict-backed storage for tests and local runs without Google credentials.
Nothing survives the process.
"""

from typing import Optional
from uuid import UUID

from fundplanner.models.audit import AuditEvent
from fundplanner.models.finance import Account, Expense
from fundplanner.services.storage.interface import (
    AccountStorageInterface,
    AuditStorageInterface,
    DuplicateError,
    ExpenseStorageInterface,
    NotFoundError,
)


class InMemoryAccountStorage(AccountStorageInterface):
    """Accounts kept in a dict keyed by id."""

    def __init__(self, accounts: Optional[list[Account]] = None):
        self._accounts: dict[str, Account] = {}
        for account in accounts or []:
            self._accounts[account.id] = account

    async def save_account(self, account: Account) -> bool:
        if account.id in self._accounts:
            raise DuplicateError(f"Account already exists: {account.id}")
        self._accounts[account.id] = account
        return True

    async def get_account_by_id(self, account_id: str) -> Optional[Account]:
        return self._accounts.get(account_id)

    async def update_account(self, account: Account) -> bool:
        if account.id not in self._accounts:
            raise NotFoundError(f"Account not found: {account.id}")
        self._accounts[account.id] = account
        return True

    async def delete_account(self, account_id: str) -> bool:
        return self._accounts.pop(account_id, None) is not None

    async def list_accounts(self, user_id: Optional[str] = None) -> list[Account]:
        accounts = [
            account for account in self._accounts.values()
            if user_id is None or account.user_id == user_id
        ]
        accounts.sort(key=lambda a: a.start_date)
        return accounts


class InMemoryExpenseStorage(ExpenseStorageInterface):
    """Expenses kept in a dict keyed by id."""

    def __init__(self, expenses: Optional[list[Expense]] = None):
        self._expenses: dict[str, Expense] = {}
        for expense in expenses or []:
            self._expenses[expense.id] = expense

    async def save_expense(self, expense: Expense) -> bool:
        if expense.id in self._expenses:
            raise DuplicateError(f"Expense already exists: {expense.id}")
        self._expenses[expense.id] = expense
        return True

    async def get_expense_by_id(self, expense_id: str) -> Optional[Expense]:
        return self._expenses.get(expense_id)

    async def update_expense(self, expense: Expense) -> bool:
        if expense.id not in self._expenses:
            raise NotFoundError(f"Expense not found: {expense.id}")
        self._expenses[expense.id] = expense
        return True

    async def delete_expense(self, expense_id: str) -> bool:
        return self._expenses.pop(expense_id, None) is not None

    async def list_expenses(
        self,
        user_id: Optional[str] = None,
        account_id: Optional[str] = None,
    ) -> list[Expense]:
        expenses = [
            expense for expense in self._expenses.values()
            if (user_id is None or expense.user_id == user_id)
            and (account_id is None or expense.account_id == account_id)
        ]
        expenses.sort(key=lambda e: e.due_date)
        return expenses


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
