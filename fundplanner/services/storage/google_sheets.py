"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the persistent backend because:
1. Users can look at (and hand-edit) their plan directly in Sheets
2. No database setup required
3. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (a personal plan is tiny)
- No transactions (one row per record keeps writes independent)
- Limited query capabilities (we filter in Python)

Hand-edited sheets are expected: blank optional cells mean None, and
rows that no longer parse are skipped with a warning rather than
breaking the whole plan.
"""

import json
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from fundplanner.config import get_settings
from fundplanner.models.audit import AuditEvent, AuditEventType, AuditSeverity
from fundplanner.models.finance import Account, Expense
from fundplanner.services.storage.interface import (
    AccountStorageInterface,
    AuditStorageInterface,
    DuplicateError,
    ExpenseStorageInterface,
    NotFoundError,
    StorageConnectionError,
    StorageError,
)

logger = structlog.get_logger(__name__)


ACCOUNT_COLUMNS = [
    "id",
    "user_id",
    "name",
    "start_date",
    "initial_amount",
    "monthly_contribution",
    "annual_return_rate",
    "reinvest_dividends",
]

EXPENSE_COLUMNS = [
    "id",
    "user_id",
    "name",
    "amount",
    "due_date",
    "account_id",
    "is_recurring",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "user_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


def _cell(row: list, index: int) -> str:
    """Cell value or "" for short rows (Sheets trims trailing blanks)."""
    try:
        return row[index] or ""
    except IndexError:
        return ""


def _optional_decimal(value: str) -> Optional[Decimal]:
    return Decimal(value) if value else None


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"true", "1", "yes"}


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError as e:
                raise StorageConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                ) from e
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Google Sheets: {e}") from e

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound as e:
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                ) from e
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_accounts_sheet(self) -> gspread.Worksheet:
        """Get or create the Accounts worksheet."""
        return self._get_or_create_sheet(
            self._settings.accounts_sheet_name, ACCOUNT_COLUMNS, rows=200
        )

    def get_expenses_sheet(self) -> gspread.Worksheet:
        """Get or create the Expenses worksheet."""
        return self._get_or_create_sheet(
            self._settings.expenses_sheet_name, EXPENSE_COLUMNS, rows=1000
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )


def _find_row(sheet: gspread.Worksheet, record_id: str) -> Optional[int]:
    """1-based sheet row holding `record_id`, skipping the header."""
    for idx, row in enumerate(sheet.get_all_values()[1:], start=2):
        if row and row[0] == record_id:
            return idx
    return None


class GoogleSheetsAccountStorage(AccountStorageInterface):
    """
    Google Sheets implementation of account storage.

    One account per row. Optional numbers are stored as blank cells.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _account_to_row(self, account: Account) -> list:
        return [
            account.id,
            account.user_id or "",
            account.name,
            account.start_date.isoformat(),
            str(account.initial_amount),
            "" if account.monthly_contribution is None else str(account.monthly_contribution),
            "" if account.annual_return_rate is None else str(account.annual_return_rate),
            str(account.reinvest_dividends),
        ]

    def _row_to_account(self, row: list) -> Account:
        return Account(
            id=_cell(row, 0),
            user_id=_cell(row, 1) or None,
            name=_cell(row, 2),
            start_date=date.fromisoformat(_cell(row, 3)),
            initial_amount=Decimal(_cell(row, 4) or "0"),
            monthly_contribution=_optional_decimal(_cell(row, 5)),
            annual_return_rate=_optional_decimal(_cell(row, 6)),
            reinvest_dividends=_parse_bool(_cell(row, 7)),
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(DuplicateError),
        reraise=True,
    )
    async def save_account(self, account: Account) -> bool:
        """Append a new account row."""
        try:
            sheet = self._client.get_accounts_sheet()
            if _find_row(sheet, account.id) is not None:
                raise DuplicateError(f"Account already exists: {account.id}")
            sheet.append_row(self._account_to_row(account), value_input_option="RAW")
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save account: {e}") from e

    async def get_account_by_id(self, account_id: str) -> Optional[Account]:
        try:
            sheet = self._client.get_accounts_sheet()
            for row in sheet.get_all_values()[1:]:
                if row and row[0] == account_id:
                    return self._row_to_account(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get account: {e}") from e

    async def update_account(self, account: Account) -> bool:
        try:
            sheet = self._client.get_accounts_sheet()
            idx = _find_row(sheet, account.id)
            if idx is None:
                raise NotFoundError(f"Account not found: {account.id}")
            sheet.update(range_name=f"A{idx}", values=[self._account_to_row(account)])
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update account: {e}") from e

    async def delete_account(self, account_id: str) -> bool:
        # Expenses sheet is deliberately left alone.
        try:
            sheet = self._client.get_accounts_sheet()
            idx = _find_row(sheet, account_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete account: {e}") from e

    async def list_accounts(self, user_id: Optional[str] = None) -> list[Account]:
        try:
            sheet = self._client.get_accounts_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except Exception as e:
            raise StorageError(f"Failed to list accounts: {e}") from e

        accounts = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                account = self._row_to_account(row)
            except (ValueError, ArithmeticError, ValidationError) as e:
                logger.warning("skipped_malformed_row", sheet="accounts", row_id=row[0], error=str(e))
                continue
            if user_id is not None and account.user_id != user_id:
                continue
            accounts.append(account)

        accounts.sort(key=lambda a: a.start_date)
        return accounts


class GoogleSheetsExpenseStorage(ExpenseStorageInterface):
    """Google Sheets implementation of expense storage."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _expense_to_row(self, expense: Expense) -> list:
        return [
            expense.id,
            expense.user_id or "",
            expense.name,
            str(expense.amount),
            expense.due_date.isoformat(),
            expense.account_id or "",
            str(expense.is_recurring),
        ]

    def _row_to_expense(self, row: list) -> Expense:
        return Expense(
            id=_cell(row, 0),
            user_id=_cell(row, 1) or None,
            name=_cell(row, 2),
            amount=Decimal(_cell(row, 3)),
            due_date=date.fromisoformat(_cell(row, 4)),
            account_id=_cell(row, 5) or None,
            is_recurring=_parse_bool(_cell(row, 6)),
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(DuplicateError),
        reraise=True,
    )
    async def save_expense(self, expense: Expense) -> bool:
        try:
            sheet = self._client.get_expenses_sheet()
            if _find_row(sheet, expense.id) is not None:
                raise DuplicateError(f"Expense already exists: {expense.id}")
            sheet.append_row(self._expense_to_row(expense), value_input_option="RAW")
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save expense: {e}") from e

    async def get_expense_by_id(self, expense_id: str) -> Optional[Expense]:
        try:
            sheet = self._client.get_expenses_sheet()
            for row in sheet.get_all_values()[1:]:
                if row and row[0] == expense_id:
                    return self._row_to_expense(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get expense: {e}") from e

    async def update_expense(self, expense: Expense) -> bool:
        try:
            sheet = self._client.get_expenses_sheet()
            idx = _find_row(sheet, expense.id)
            if idx is None:
                raise NotFoundError(f"Expense not found: {expense.id}")
            sheet.update(range_name=f"A{idx}", values=[self._expense_to_row(expense)])
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update expense: {e}") from e

    async def delete_expense(self, expense_id: str) -> bool:
        try:
            sheet = self._client.get_expenses_sheet()
            idx = _find_row(sheet, expense_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete expense: {e}") from e

    async def list_expenses(
        self,
        user_id: Optional[str] = None,
        account_id: Optional[str] = None,
    ) -> list[Expense]:
        try:
            sheet = self._client.get_expenses_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to list expenses: {e}") from e

        expenses = []
        for row in all_rows:
            if not row or not row[0]:
                continue
            try:
                expense = self._row_to_expense(row)
            except (ValueError, ArithmeticError, ValidationError) as e:
                logger.warning("skipped_malformed_row", sheet="expenses", row_id=row[0], error=str(e))
                continue
            if user_id is not None and expense.user_id != user_id:
                continue
            if account_id is not None and expense.account_id != account_id:
                continue
            expenses.append(expense)

        expenses.sort(key=lambda e: e.due_date)
        return expenses


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        timestamp = datetime.fromisoformat(_cell(row, 1))
        if timestamp.tzinfo is None:
            # Rows written before timestamps carried a zone are UTC
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        return AuditEvent(
            event_id=UUID(_cell(row, 0)),
            timestamp=timestamp,
            event_type=AuditEventType(_cell(row, 2)),
            severity=AuditSeverity(_cell(row, 3)),
            entity_type=_cell(row, 4) or None,
            entity_id=_cell(row, 5) or None,
            user_id=_cell(row, 6) or None,
            correlation_id=UUID(_cell(row, 7)) if _cell(row, 7) else None,
            description=_cell(row, 8),
            details=json.loads(_cell(row, 9)) if _cell(row, 9) else {},
            error_message=_cell(row, 10) or None,
            is_user_action=_parse_bool(_cell(row, 11)),
        )

    def _read_events(self) -> list[AuditEvent]:
        try:
            all_rows = self._client.get_audit_sheet().get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}") from e

        events = []
        for row in all_rows:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except (ValueError, ValidationError) as e:
                logger.warning("skipped_malformed_row", sheet="audit", row_id=row[0], error=str(e))
        return events

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}") from e

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._read_events() if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._read_events()
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = self._read_events()
        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
