"""
Two-Stage Validation for Plan Forms

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence
- Numbers that are actually numbers
- Dates that are actually dates
- This catches typos and half-filled forms

STAGE 2 - SEMANTIC VALIDATION (expenses only):
- Expense dated before its account starts
- Expense that would drive its account negative
- This catches plans that don't add up

WHY TWO STAGES:
1. Better error messages (know exactly what kind of issue)
2. Stage 2 needs a parsed record to hand to the projection engine
3. Can skip stage 2 if stage 1 fails

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the user can change the plan.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional, Sequence

from pydantic import ValidationError

from fundplanner.config import get_settings
from fundplanner.engine import as_date, check_candidate, format_money
from fundplanner.models.finance import (
    Account,
    AccountDraft,
    AffordabilityReason,
    AffordabilityResult,
    Expense,
    ExpenseDraft,
    ValidationIssue,
    ValidationResult,
)

MAX_NAME_LENGTH = 200


def _parse_decimal(raw: str) -> Decimal:
    """
    Parse a typed amount like '1,250.50' or '$40'.

    Raises:
        ValueError: If the text isn't a finite number
    """
    cleaned = raw.replace(",", "").lstrip("$").strip()
    try:
        value = Decimal(cleaned)
    except InvalidOperation as exc:
        raise ValueError(f"not a number: {raw!r}") from exc
    if not value.is_finite():
        raise ValueError(f"not a finite number: {raw!r}")
    return value


def _parse_date(raw: str) -> date:
    return as_date(raw)


def _error(field: str, issue_type: str, message: str, suggested_fix: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="error",
        suggested_fix=suggested_fix,
    )


def _issues_from_pydantic(exc: ValidationError) -> list[ValidationIssue]:
    return [
        _error(
            field=".".join(str(part) for part in err["loc"]) or "record",
            issue_type="invalid_value",
            message=err["msg"],
        )
        for err in exc.errors()
    ]


class PlanValidator:
    """
    Validates account and expense drafts before they are saved.

    Expense validation needs the user's current accounts and expenses so
    the projection engine can check the plan still adds up.
    """

    def __init__(self, currency_symbol: Optional[str] = None):
        self._currency = currency_symbol or get_settings().app.currency_symbol

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def _validate_account_schema(
        self,
        draft: AccountDraft,
    ) -> tuple[list[ValidationIssue], dict]:
        """
        Stage 1 for accounts.

        Returns: (issues, parsed_fields)
        """
        issues = []
        parsed: dict = {}

        if not draft.name:
            issues.append(_error("name", "missing", "Please enter an account name."))
        elif len(draft.name) > MAX_NAME_LENGTH:
            issues.append(_error(
                "name",
                "invalid_value",
                f"Account name must be at most {MAX_NAME_LENGTH} characters.",
            ))
        else:
            parsed["name"] = draft.name

        if not draft.start_date:
            issues.append(_error("start_date", "missing", "Please choose a start date."))
        else:
            try:
                parsed["start_date"] = _parse_date(draft.start_date)
            except ValueError:
                issues.append(_error("start_date", "invalid_format", "Invalid date."))

        try:
            if not draft.initial_amount:
                raise ValueError("missing")
            initial = _parse_decimal(draft.initial_amount)
            if initial < 0:
                raise ValueError("negative")
            parsed["initial_amount"] = initial
        except ValueError:
            issues.append(_error(
                "initial_amount",
                "invalid_value",
                "Initial amount must be zero or positive.",
            ))

        # Optional: blank means "no contribution"
        if draft.monthly_contribution:
            try:
                monthly = _parse_decimal(draft.monthly_contribution)
                if monthly < 0:
                    raise ValueError("negative")
                parsed["monthly_contribution"] = monthly
            except ValueError:
                issues.append(_error(
                    "monthly_contribution",
                    "invalid_value",
                    "Monthly contribution must be zero or positive.",
                ))

        # Optional: blank means "no growth"
        if draft.annual_return_rate:
            try:
                rate = _parse_decimal(draft.annual_return_rate)
                if rate < 0 or rate > 100:
                    raise ValueError("out of range")
                parsed["annual_return_rate"] = rate
            except ValueError:
                issues.append(_error(
                    "annual_return_rate",
                    "invalid_value",
                    "Annual return rate must be between 0 and 100.",
                    suggested_fix="Enter a percentage, e.g. 5 for 5%",
                ))

        return issues, parsed

    def validate_account(
        self,
        draft: AccountDraft,
    ) -> tuple[ValidationResult, Optional[Account]]:
        """
        Validate an account form.

        Returns:
            (validation_result, account) - account is None unless valid
        """
        issues, parsed = self._validate_account_schema(draft)

        account = None
        if not issues:
            try:
                account = Account(
                    user_id=draft.user_id,
                    reinvest_dividends=draft.reinvest_dividends,
                    **({"id": draft.id} if draft.id else {}),
                    **parsed,
                )
            except ValidationError as exc:
                issues.extend(_issues_from_pydantic(exc))

        schema_valid = account is not None
        return ValidationResult(
            entity_type="account",
            schema_valid=schema_valid,
            # Accounts have no cross-record rules
            semantic_valid=schema_valid,
            is_valid=schema_valid,
            issues=issues,
        ), account

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    def _validate_expense_schema(
        self,
        draft: ExpenseDraft,
    ) -> tuple[list[ValidationIssue], dict]:
        """
        Stage 1 for expenses.

        Returns: (issues, parsed_fields)
        """
        issues = []
        parsed: dict = {}

        if not draft.name:
            issues.append(_error("name", "missing", "Please enter an expense name."))
        elif len(draft.name) > MAX_NAME_LENGTH:
            issues.append(_error(
                "name",
                "invalid_value",
                f"Expense name must be at most {MAX_NAME_LENGTH} characters.",
            ))
        else:
            parsed["name"] = draft.name

        try:
            if not draft.amount:
                raise ValueError("missing")
            amount = _parse_decimal(draft.amount)
            if amount <= 0:
                raise ValueError("not positive")
            parsed["amount"] = amount
        except ValueError:
            issues.append(_error("amount", "invalid_value", "Enter a positive amount."))

        if not draft.due_date:
            issues.append(_error("due_date", "missing", "Please choose a due date."))
        else:
            try:
                parsed["due_date"] = _parse_date(draft.due_date)
            except ValueError:
                issues.append(_error("due_date", "invalid_format", "Invalid date."))

        return issues, parsed

    def _validate_expense_semantic(
        self,
        candidate: Expense,
        accounts: Sequence[Account],
        expenses: Sequence[Expense],
    ) -> tuple[list[ValidationIssue], list[str], Optional[AffordabilityResult]]:
        """
        Stage 2 for expenses: does the plan still add up?

        Returns: (issues, warnings, affordability_verdict)
        """
        issues: list[ValidationIssue] = []
        warnings: list[str] = []

        if candidate.account_id is None:
            return issues, warnings, None

        account = next((a for a in accounts if a.id == candidate.account_id), None)
        if account is None:
            warnings.append(
                "The linked account no longer exists. "
                "This expense will be treated as unassigned."
            )
            return issues, warnings, None

        verdict = check_candidate(account, expenses, candidate, currency_symbol=self._currency)

        if verdict.reason == AffordabilityReason.BEFORE_ACCOUNT_START:
            issues.append(_error(
                "due_date",
                verdict.reason.value,
                verdict.message,
                suggested_fix=f"Pick a date on or after {account.start_date.isoformat()}",
            ))
        elif verdict.reason == AffordabilityReason.WOULD_GO_NEGATIVE:
            issues.append(_error(
                "account_id",
                verdict.reason.value,
                verdict.message,
                suggested_fix=(
                    f"About {format_money(verdict.max_affordable, self._currency)} "
                    f"is free on {verdict.due_date.isoformat()}"
                ),
            ))

        return issues, warnings, verdict

    def validate_expense(
        self,
        draft: ExpenseDraft,
        accounts: Sequence[Account],
        expenses: Sequence[Expense],
    ) -> tuple[ValidationResult, Optional[Expense]]:
        """
        Validate an expense form against the user's current plan.

        Args:
            draft: The form input. `draft.id` marks an edit; the stored
                version with that id is replaced, not double-counted.
            accounts: The user's accounts
            expenses: The user's saved expenses

        Returns:
            (validation_result, expense) - expense is None unless valid
        """
        all_issues, parsed = self._validate_expense_schema(draft)
        warnings: list[str] = []
        verdict = None

        candidate = None
        if not all_issues:
            try:
                candidate = Expense(
                    user_id=draft.user_id,
                    account_id=draft.account_id,
                    is_recurring=draft.is_recurring,
                    **({"id": draft.id} if draft.id else {}),
                    **parsed,
                )
            except ValidationError as exc:
                all_issues.extend(_issues_from_pydantic(exc))

        schema_valid = candidate is not None

        # Only run stage 2 if stage 1 passes
        semantic_valid = False
        if schema_valid:
            semantic_issues, warnings, verdict = self._validate_expense_semantic(
                candidate, accounts, expenses
            )
            all_issues.extend(semantic_issues)
            semantic_valid = not semantic_issues

        is_valid = schema_valid and semantic_valid

        return ValidationResult(
            entity_type="expense",
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=is_valid,
            issues=all_issues,
            warnings=warnings,
            affordability=verdict,
        ), (candidate if is_valid else None)

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what the form shows above the fields.
        """
        if result.is_valid and not result.warnings:
            if result.affordability is not None:
                return f"✅ {result.affordability.message}"
            return "✅ All checks passed!"

        lines = []

        if result.has_errors:
            lines.append("❌ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please note:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
