"""
Tests for the audit logger.
"""

import asyncio
from datetime import date
from decimal import Decimal
from uuid import UUID

from fundplanner.audit import AuditLogger, create_correlation_id
from fundplanner.models.audit import AuditEvent, AuditEventType
from fundplanner.models.finance import Account, Expense
from fundplanner.services.storage import (
    AuditStorageInterface,
    InMemoryAuditStorage,
    StorageConnectionError,
)


class BrokenAuditStorage(AuditStorageInterface):
    """Audit storage whose writes always fail."""

    async def append_event(self, event: AuditEvent) -> bool:
        raise StorageConnectionError("sheet unavailable")

    async def get_events_by_correlation_id(self, correlation_id: UUID) -> list[AuditEvent]:
        return []

    async def get_events_by_entity(self, entity_type: str, entity_id: str) -> list[AuditEvent]:
        return []

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return []


class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_local_only(self):
        """Without storage, logging succeeds locally."""
        logger = AuditLogger()
        account = Account(name="Savings", start_date=date(2024, 1, 1), initial_amount=0)
        event = asyncio.run(logger.log_account_saved(account, True, create_correlation_id()))
        assert event is None

    def test_persists_events(self):
        """Events reach the configured storage."""
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)
        correlation_id = create_correlation_id()
        expense = Expense(
            id="exp-1", user_id="user-1", name="Rent",
            amount=Decimal("1200"), due_date=date(2024, 2, 1),
        )

        asyncio.run(logger.log_expense_saved(expense, False, correlation_id))

        events = asyncio.run(storage.get_events_by_correlation_id(correlation_id))
        assert len(events) == 1
        assert events[0].event_type == AuditEventType.EXPENSE_UPDATED
        assert events[0].entity_id == "exp-1"
        assert events[0].user_id == "user-1"
        assert events[0].details["amount"] == "1200"

    def test_storage_failure_not_raised(self):
        """A broken audit store never blocks the caller."""
        logger = AuditLogger(BrokenAuditStorage())
        event = AuditEvent(event_type=AuditEventType.SYSTEM_ERROR, description="boom")

        assert asyncio.run(logger.log(event)) is False

    def test_account_deleted_records_detached(self):
        """Deleting an account records how many expenses it left behind."""
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)

        asyncio.run(logger.log_account_deleted("acct-1", 3, create_correlation_id()))

        events = asyncio.run(storage.get_events_by_entity("account", "acct-1"))
        assert events[0].details["detached_expenses"] == 3

    def test_correlation_ids_unique(self):
        """Each user action gets its own id."""
        assert create_correlation_id() != create_correlation_id()
