"""
Audit Models for Fund Planner

Every change to a user's plan is logged for audit purposes.
This provides:
1. Traceability of who changed which account or expense
2. A record of every affordability rejection shown to the user
3. Debugging information when storage misbehaves

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
Projection figures themselves are never stored - only the fact that a
summary was computed, and the headline totals at that moment.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Accounts
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_UPDATED = "account_updated"
    ACCOUNT_DELETED = "account_deleted"

    # Expenses
    EXPENSE_CREATED = "expense_created"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"

    # Validation
    VALIDATION_FAILED = "validation_failed"
    AFFORDABILITY_REJECTED = "affordability_rejected"

    # Read side
    DASHBOARD_COMPUTED = "dashboard_computed"

    # Failures
    SAVE_FAILED = "save_failed"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity ('account', 'expense', 'dashboard')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )
    user_id: Optional[str] = None

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., validate then save)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "user_id": self.user_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         user_id, correlation_id, description, details_json, error_message,
         is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            self.user_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.account_saved(
            account_id=account.id, name=account.name, created=True, correlation_id=cid,
        )
        event = AuditEventBuilder.affordability_rejected(
            expense_id=expense.id, account_id=expense.account_id,
            projected_balance=str(result.projected_balance), due_date=str(expense.due_date),
            reason=result.reason.value, correlation_id=cid,
        )
    """

    @staticmethod
    def account_saved(
        account_id: str,
        name: str,
        created: bool,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        verb = "created" if created else "updated"
        return AuditEvent(
            event_type=(
                AuditEventType.ACCOUNT_CREATED
                if created
                else AuditEventType.ACCOUNT_UPDATED
            ),
            entity_type="account",
            entity_id=account_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Account {verb}: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def account_deleted(
        account_id: str,
        detached_expenses: int,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_DELETED,
            entity_type="account",
            entity_id=account_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=(
                f"Account deleted; {detached_expenses} expense(s) left unassigned"
            ),
            details={"detached_expenses": detached_expenses},
            is_user_action=True,
        )

    @staticmethod
    def expense_saved(
        expense_id: str,
        name: str,
        amount: str,
        account_id: Optional[str],
        created: bool,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        verb = "created" if created else "updated"
        return AuditEvent(
            event_type=(
                AuditEventType.EXPENSE_CREATED
                if created
                else AuditEventType.EXPENSE_UPDATED
            ),
            entity_type="expense",
            entity_id=expense_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Expense {verb}: {name} - {amount}",
            details={
                "name": name,
                "amount": amount,
                "account_id": account_id,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(
        expense_id: str,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=expense_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Expense deleted",
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        entity_type: str,
        entity_id: Optional[str],
        issues: list[dict],
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=(
                f"{entity_type.capitalize()} validation failed with {len(issues)} issues"
            ),
            details={"issues": issues},
        )

    @staticmethod
    def affordability_rejected(
        expense_id: str,
        account_id: str,
        projected_balance: Optional[str],
        due_date: str,
        reason: str,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AFFORDABILITY_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            entity_id=expense_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Expense rejected for account {account_id}: {reason}",
            details={
                "account_id": account_id,
                "projected_balance": projected_balance,
                "due_date": due_date,
                "reason": reason,
            },
        )

    @staticmethod
    def dashboard_computed(
        as_of: str,
        account_count: int,
        total_current: str,
        net_after: str,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DASHBOARD_COMPUTED,
            severity=AuditSeverity.DEBUG,
            entity_type="dashboard",
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Dashboard computed for {account_count} account(s) as of {as_of}",
            details={
                "as_of": as_of,
                "total_current": total_current,
                "net_after": net_after,
            },
        )

    @staticmethod
    def save_failed(
        entity_type: str,
        entity_id: Optional[str],
        error_message: str,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Failed to persist {entity_type}",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
