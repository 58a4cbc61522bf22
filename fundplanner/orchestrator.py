"""
Main Orchestrator for Fund Planner

This module ties together all the components and defines the
end-to-end flows for:
1. Accounts (draft → validate → save → audit)
2. Expenses (draft → validate → affordability check → save → audit)
3. Dashboard (load snapshot → summarize → audit)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No draft persists without passing validation
- Every figure comes from the projection engine
- Every change is audited

This is also the only place that reads the clock. Everything below it
takes `as_of` explicitly.
"""

from datetime import date
from decimal import Decimal
from typing import Callable, Optional, Union
from uuid import UUID

import structlog

from fundplanner.audit import AuditLogger, create_correlation_id
from fundplanner.config import get_settings, validate_all_settings
from fundplanner.engine import (
    as_date,
    max_affordable,
    summarize_portfolio,
)
from fundplanner.models.finance import (
    Account,
    AccountDraft,
    Expense,
    ExpenseDraft,
    PortfolioSummary,
    ValidationResult,
)
from fundplanner.services.storage import (
    AccountStorageInterface,
    ExpenseStorageInterface,
    GoogleSheetsAccountStorage,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsExpenseStorage,
    InMemoryAccountStorage,
    InMemoryExpenseStorage,
    NotFoundError,
    StorageError,
)
from fundplanner.validation import PlanValidator

logger = structlog.get_logger()


class PlanValidationError(Exception):
    """Raised when a draft fails validation. Carries the full result."""

    def __init__(self, result: ValidationResult, message: str):
        super().__init__(message)
        self.result = result


def _owned_by(record: Optional[Union[Account, Expense]], user_id: Optional[str]) -> bool:
    # Another user's record is treated exactly like a missing one
    return record is not None and record.user_id == user_id


class AccountFlow:
    """
    Orchestrates account changes.

    Flow:
    1. Validate → Schema checks on the form input
    2. Save → Create or update in storage
    3. Audit → Record what changed

    Deleting an account leaves its expenses in place; they show up as
    unassigned on the dashboard.
    """

    def __init__(
        self,
        account_storage: AccountStorageInterface,
        expense_storage: ExpenseStorageInterface,
        validator: Optional[PlanValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._accounts = account_storage
        self._expenses = expense_storage
        self._validator = validator or PlanValidator()
        self._audit_logger = audit_logger

    def _validate(self, draft: AccountDraft) -> Account:
        result, account = self._validator.validate_account(draft)
        if account is None:
            raise PlanValidationError(result, self._validator.get_user_friendly_summary(result))
        return account

    async def _reject(
        self,
        error: PlanValidationError,
        draft: AccountDraft,
        correlation_id: UUID,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_validation_failed(
                result=error.result,
                entity_id=draft.id,
                correlation_id=correlation_id,
                user_id=draft.user_id,
            )

    async def _persist(
        self,
        account: Account,
        created: bool,
        correlation_id: UUID,
    ) -> Account:
        try:
            if created:
                await self._accounts.save_account(account)
            else:
                await self._accounts.update_account(account)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_save_failed(
                    entity_type="account",
                    entity_id=account.id,
                    error_message=str(e),
                    correlation_id=correlation_id,
                    user_id=account.user_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_account_saved(
                account=account,
                created=created,
                correlation_id=correlation_id,
            )
        return account

    async def create_account(
        self,
        draft: AccountDraft,
        correlation_id: Optional[UUID] = None,
    ) -> Account:
        """
        Validate and save a new account.

        Raises:
            PlanValidationError: If the draft is invalid
            StorageError: If the save fails
        """
        correlation_id = correlation_id or create_correlation_id()
        try:
            account = self._validate(draft.model_copy(update={"id": None}))
        except PlanValidationError as e:
            await self._reject(e, draft, correlation_id)
            raise
        return await self._persist(account, created=True, correlation_id=correlation_id)

    async def update_account(
        self,
        draft: AccountDraft,
        correlation_id: Optional[UUID] = None,
    ) -> Account:
        """
        Validate and replace an existing account.

        Raises:
            NotFoundError: If `draft.id` is not an account of `draft.user_id`
            PlanValidationError: If the draft is invalid
            StorageError: If the save fails
        """
        correlation_id = correlation_id or create_correlation_id()
        stored = await self._accounts.get_account_by_id(draft.id) if draft.id else None
        if not _owned_by(stored, draft.user_id):
            raise NotFoundError(f"Account not found: {draft.id}")

        try:
            account = self._validate(draft)
        except PlanValidationError as e:
            await self._reject(e, draft, correlation_id)
            raise
        return await self._persist(account, created=False, correlation_id=correlation_id)

    async def delete_account(
        self,
        account_id: str,
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Delete an account. Its expenses are kept with their account id.

        Returns:
            True if the account existed and belonged to `user_id`
        """
        correlation_id = correlation_id or create_correlation_id()
        if not _owned_by(await self._accounts.get_account_by_id(account_id), user_id):
            return False

        detached = await self._expenses.list_expenses(user_id=user_id, account_id=account_id)

        try:
            deleted = await self._accounts.delete_account(account_id)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="delete_failed",
                    error_message=str(e),
                    details={"entity_type": "account", "entity_id": account_id},
                    correlation_id=correlation_id,
                )
            raise

        if deleted and self._audit_logger:
            await self._audit_logger.log_account_deleted(
                account_id=account_id,
                detached_expenses=len(detached),
                correlation_id=correlation_id,
                user_id=user_id,
            )
        return deleted

    async def list_accounts(self, user_id: Optional[str] = None) -> list[Account]:
        """List accounts, earliest start date first."""
        return await self._accounts.list_accounts(user_id=user_id)


class ExpenseFlow:
    """
    Orchestrates expense changes.

    Flow:
    1. Snapshot → Load the user's accounts and expenses
    2. Validate → Schema checks, then the affordability check
    3. Save → Create or update in storage
    4. Audit → Record what changed, or why it was refused

    An expense that would drive its account negative is NEVER saved.
    """

    def __init__(
        self,
        account_storage: AccountStorageInterface,
        expense_storage: ExpenseStorageInterface,
        validator: Optional[PlanValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._accounts = account_storage
        self._expenses = expense_storage
        self._validator = validator or PlanValidator()
        self._audit_logger = audit_logger

    async def _snapshot(self, user_id: Optional[str]) -> tuple[list[Account], list[Expense]]:
        accounts = await self._accounts.list_accounts(user_id=user_id)
        expenses = await self._expenses.list_expenses(user_id=user_id)
        return accounts, expenses

    async def preview(self, draft: ExpenseDraft) -> tuple[ValidationResult, str]:
        """
        Validate a draft without saving it.

        This is what the form calls while the user is still typing.

        Returns:
            (validation_result, user_message)
        """
        accounts, expenses = await self._snapshot(draft.user_id)
        result, _ = self._validator.validate_expense(draft, accounts, expenses)
        return result, self._validator.get_user_friendly_summary(result)

    async def _validate(
        self,
        draft: ExpenseDraft,
        correlation_id: UUID,
    ) -> Expense:
        accounts, expenses = await self._snapshot(draft.user_id)
        result, expense = self._validator.validate_expense(draft, accounts, expenses)

        if expense is not None:
            for warning in result.warnings:
                logger.warning("expense_saved_with_warning", expense_id=expense.id, warning=warning)
            return expense

        if self._audit_logger:
            verdict = result.affordability
            if verdict is not None and not verdict.accepted:
                await self._audit_logger.log_affordability_rejected(
                    expense_id=draft.id or "",
                    verdict=verdict,
                    correlation_id=correlation_id,
                    user_id=draft.user_id,
                )
            else:
                await self._audit_logger.log_validation_failed(
                    result=result,
                    entity_id=draft.id,
                    correlation_id=correlation_id,
                    user_id=draft.user_id,
                )
        raise PlanValidationError(result, self._validator.get_user_friendly_summary(result))

    async def _persist(
        self,
        expense: Expense,
        created: bool,
        correlation_id: UUID,
    ) -> Expense:
        try:
            if created:
                await self._expenses.save_expense(expense)
            else:
                await self._expenses.update_expense(expense)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_save_failed(
                    entity_type="expense",
                    entity_id=expense.id,
                    error_message=str(e),
                    correlation_id=correlation_id,
                    user_id=expense.user_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_expense_saved(
                expense=expense,
                created=created,
                correlation_id=correlation_id,
            )
        return expense

    async def create_expense(
        self,
        draft: ExpenseDraft,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Validate and save a new expense.

        Raises:
            PlanValidationError: If the draft is invalid or unaffordable
            StorageError: If the save fails
        """
        correlation_id = correlation_id or create_correlation_id()
        expense = await self._validate(draft.model_copy(update={"id": None}), correlation_id)
        return await self._persist(expense, created=True, correlation_id=correlation_id)

    async def update_expense(
        self,
        draft: ExpenseDraft,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Validate and replace an existing expense.

        The stored version is left out of the affordability check so the
        edit isn't counted twice.

        Raises:
            NotFoundError: If `draft.id` is not an expense of `draft.user_id`
            PlanValidationError: If the draft is invalid or unaffordable
            StorageError: If the save fails
        """
        correlation_id = correlation_id or create_correlation_id()
        stored = await self._expenses.get_expense_by_id(draft.id) if draft.id else None
        if not _owned_by(stored, draft.user_id):
            raise NotFoundError(f"Expense not found: {draft.id}")

        expense = await self._validate(draft, correlation_id)
        return await self._persist(expense, created=False, correlation_id=correlation_id)

    async def delete_expense(
        self,
        expense_id: str,
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Delete an expense.

        Returns:
            True if the expense existed and belonged to `user_id`
        """
        correlation_id = correlation_id or create_correlation_id()
        if not _owned_by(await self._expenses.get_expense_by_id(expense_id), user_id):
            return False

        try:
            deleted = await self._expenses.delete_expense(expense_id)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="delete_failed",
                    error_message=str(e),
                    details={"entity_type": "expense", "entity_id": expense_id},
                    correlation_id=correlation_id,
                )
            raise

        if deleted and self._audit_logger:
            await self._audit_logger.log_expense_deleted(
                expense_id=expense_id,
                correlation_id=correlation_id,
                user_id=user_id,
            )
        return deleted

    async def list_expenses(
        self,
        user_id: Optional[str] = None,
        account_id: Optional[str] = None,
    ) -> list[Expense]:
        """List expenses, earliest due date first."""
        return await self._expenses.list_expenses(user_id=user_id, account_id=account_id)

    async def max_affordable_for(
        self,
        account_id: str,
        due_date: date,
        user_id: Optional[str] = None,
        ignore_expense_id: Optional[str] = None,
    ) -> Decimal:
        """
        The most a new expense on `due_date` could be for this account.

        Raises:
            NotFoundError: If the account doesn't exist for `user_id`
        """
        account = await self._accounts.get_account_by_id(account_id)
        if not _owned_by(account, user_id):
            raise NotFoundError(f"Account not found: {account_id}")

        expenses = await self._expenses.list_expenses(user_id=user_id)
        return max_affordable(
            account,
            expenses,
            as_date(due_date),
            ignore_expense_id=ignore_expense_id,
        )


class DashboardFlow:
    """
    Orchestrates the dashboard.

    Loads one snapshot and hands it to the engine. Nothing computed here
    is stored; the audit log only records that a summary was produced.
    """

    def __init__(
        self,
        account_storage: AccountStorageInterface,
        expense_storage: ExpenseStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        today: Callable[[], date] = date.today,
    ):
        self._accounts = account_storage
        self._expenses = expense_storage
        self._audit_logger = audit_logger
        self._today = today

    async def summarize(
        self,
        user_id: Optional[str] = None,
        as_of: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> PortfolioSummary:
        """
        Build the dashboard summary.

        Args:
            user_id: Whose plan to summarize (None = everything stored)
            as_of: The date treated as "today" (defaults to the clock)

        Returns:
            PortfolioSummary
        """
        correlation_id = correlation_id or create_correlation_id()
        settings = get_settings().app

        try:
            accounts = await self._accounts.list_accounts(user_id=user_id)
            expenses = await self._expenses.list_expenses(user_id=user_id)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="snapshot_load_failed",
                    error_message=str(e),
                    details={"user_id": user_id},
                    correlation_id=correlation_id,
                )
            raise

        summary = summarize_portfolio(
            accounts,
            expenses,
            as_of=as_of if as_of is not None else self._today(),
            upcoming_limit=settings.upcoming_list_limit,
            allocation_min=Decimal(str(settings.allocation_min_balance)),
        )

        if self._audit_logger:
            await self._audit_logger.log_dashboard_computed(
                summary=summary,
                correlation_id=correlation_id,
                user_id=user_id,
            )
        return summary


def create_app_components(
    use_storage: bool = True,
) -> tuple[AccountFlow, ExpenseFlow, DashboardFlow, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False for testing without storage; the flows
                    then run on in-memory storage.

    Returns:
        (account_flow, expense_flow, dashboard_flow, sheets_client)
    """
    sheets_client = None

    if use_storage:
        # Startup check: don't try to connect without Sheets settings
        status = validate_all_settings()
        if not status["google_sheets"]:
            logger.warning(
                "storage_not_configured",
                error=status.get("google_sheets_error"),
            )
            use_storage = False

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            sheets_client.connect()
            account_storage = GoogleSheetsAccountStorage(sheets_client)
            expense_storage = GoogleSheetsExpenseStorage(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except StorageError as e:
            # Storage unreachable - continue in memory
            logger.warning("storage_unavailable", error=str(e))
            sheets_client = None
            use_storage = False

    if not use_storage:
        account_storage = InMemoryAccountStorage()
        expense_storage = InMemoryExpenseStorage()
        audit_logger = AuditLogger()  # Local-only logging

    validator = PlanValidator()

    account_flow = AccountFlow(
        account_storage=account_storage,
        expense_storage=expense_storage,
        validator=validator,
        audit_logger=audit_logger,
    )

    expense_flow = ExpenseFlow(
        account_storage=account_storage,
        expense_storage=expense_storage,
        validator=validator,
        audit_logger=audit_logger,
    )

    dashboard_flow = DashboardFlow(
        account_storage=account_storage,
        expense_storage=expense_storage,
        audit_logger=audit_logger,
    )

    return account_flow, expense_flow, dashboard_flow, sheets_client
