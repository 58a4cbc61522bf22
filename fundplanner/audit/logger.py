"""
Audit Logger

DESIGN DECISION: Every change to a plan is logged.
This provides:
1. Traceability of account and expense edits
2. A record of every "this would go negative" warning the user saw
3. Debugging capability when storage misbehaves

The audit logger:
- Is async so it composes with the storage layer
- Gracefully handles failures (a broken audit sheet never blocks a save)
- Supports correlation IDs to trace related events
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog

from fundplanner.models.audit import AuditEvent, AuditEventBuilder
from fundplanner.models.finance import (
    Account,
    AffordabilityResult,
    Expense,
    PortfolioSummary,
    ValidationResult,
)
from fundplanner.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def _money(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger()

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_account_saved(
        self,
        account: Account,
        created: bool,
        correlation_id: UUID,
    ) -> None:
        """Log account creation or update."""
        event = AuditEventBuilder.account_saved(
            account_id=account.id,
            name=account.name,
            created=created,
            correlation_id=correlation_id,
            user_id=account.user_id,
        )
        await self.log(event)

    async def log_account_deleted(
        self,
        account_id: str,
        detached_expenses: int,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> None:
        """Log account deletion and how many expenses it left unassigned."""
        event = AuditEventBuilder.account_deleted(
            account_id=account_id,
            detached_expenses=detached_expenses,
            correlation_id=correlation_id,
            user_id=user_id,
        )
        await self.log(event)

    async def log_expense_saved(
        self,
        expense: Expense,
        created: bool,
        correlation_id: UUID,
    ) -> None:
        """Log expense creation or update."""
        event = AuditEventBuilder.expense_saved(
            expense_id=expense.id,
            name=expense.name,
            amount=str(expense.amount),
            account_id=expense.account_id,
            created=created,
            correlation_id=correlation_id,
            user_id=expense.user_id,
        )
        await self.log(event)

    async def log_expense_deleted(
        self,
        expense_id: str,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> None:
        """Log expense deletion."""
        event = AuditEventBuilder.expense_deleted(
            expense_id=expense_id,
            correlation_id=correlation_id,
            user_id=user_id,
        )
        await self.log(event)

    async def log_validation_failed(
        self,
        result: ValidationResult,
        entity_id: Optional[str],
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> None:
        """Log a draft that failed validation."""
        issues = [
            {"field": i.field, "type": i.issue_type, "message": i.message}
            for i in result.issues
            if i.severity == "error"
        ]
        event = AuditEventBuilder.validation_failed(
            entity_type=result.entity_type,
            entity_id=entity_id,
            issues=issues,
            correlation_id=correlation_id,
            user_id=user_id,
        )
        await self.log(event)

    async def log_affordability_rejected(
        self,
        expense_id: str,
        verdict: AffordabilityResult,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> None:
        """Log an expense the plan can't afford."""
        event = AuditEventBuilder.affordability_rejected(
            expense_id=expense_id,
            account_id=verdict.account_id,
            projected_balance=_money(verdict.projected_balance),
            due_date=verdict.due_date.isoformat(),
            reason=verdict.reason.value,
            correlation_id=correlation_id,
            user_id=user_id,
        )
        await self.log(event)

    async def log_dashboard_computed(
        self,
        summary: PortfolioSummary,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> None:
        """Log that a dashboard summary was computed (figures are not persisted elsewhere)."""
        event = AuditEventBuilder.dashboard_computed(
            as_of=summary.as_of.isoformat(),
            account_count=len(summary.accounts),
            total_current=str(summary.total_current),
            net_after=str(summary.net_after),
            correlation_id=correlation_id,
            user_id=user_id,
        )
        await self.log(event)

    async def log_save_failed(
        self,
        entity_type: str,
        entity_id: Optional[str],
        error_message: str,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> None:
        """Log a storage write failure."""
        event = AuditEventBuilder.save_failed(
            entity_type=entity_type,
            entity_id=entity_id,
            error_message=error_message,
            correlation_id=correlation_id,
            user_id=user_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., submitting the
    expense form). Pass it through all subsequent operations.
    """
    return uuid4()
