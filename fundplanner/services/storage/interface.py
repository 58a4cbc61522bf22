"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep the projection engine completely unaware of storage

The interface is intentionally small - fetch a user's records, and
insert/update/delete one record. Filtering and ordering beyond that
belong to the caller.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from fundplanner.models.audit import AuditEvent
from fundplanner.models.finance import Account, Expense


class AccountStorageInterface(ABC):
    """
    Abstract interface for account storage operations.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def save_account(self, account: Account) -> bool:
        """
        Save a new account.

        Returns:
            True if saved successfully

        Raises:
            DuplicateError: If an account with this id already exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_account_by_id(self, account_id: str) -> Optional[Account]:
        """Retrieve an account by id, or None if there is none."""
        pass

    @abstractmethod
    async def update_account(self, account: Account) -> bool:
        """
        Replace a stored account with `account` (matched by id).

        Raises:
            NotFoundError: If the account doesn't exist
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def delete_account(self, account_id: str) -> bool:
        """
        Delete an account by id.

        MUST NOT touch expenses that reference it - they keep the
        now-dangling account_id and are treated as unassigned.

        Returns:
            True if an account was deleted
        """
        pass

    @abstractmethod
    async def list_accounts(self, user_id: Optional[str] = None) -> list[Account]:
        """
        List accounts, optionally for one user, oldest start date first.
        """
        pass


class ExpenseStorageInterface(ABC):
    """Abstract interface for expense storage operations."""

    @abstractmethod
    async def save_expense(self, expense: Expense) -> bool:
        """
        Save a new expense.

        Raises:
            DuplicateError: If an expense with this id already exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_expense_by_id(self, expense_id: str) -> Optional[Expense]:
        """Retrieve an expense by id, or None if there is none."""
        pass

    @abstractmethod
    async def update_expense(self, expense: Expense) -> bool:
        """
        Replace a stored expense with `expense` (matched by id).

        Raises:
            NotFoundError: If the expense doesn't exist
        """
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: str) -> bool:
        """Delete an expense by id. Returns True if one was deleted."""
        pass

    @abstractmethod
    async def list_expenses(
        self,
        user_id: Optional[str] = None,
        account_id: Optional[str] = None,
    ) -> list[Expense]:
        """
        List expenses, soonest due date first.

        Args:
            user_id: Only this user's expenses
            account_id: Only expenses referencing this account id
                (including a dangling one)
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event. Returns True if logged successfully."""
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """All events for one user action, in chronological order."""
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """All events for one account or expense, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """The most recent events, newest first."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
