"""
Core Data Models for Fund Planner

These models define the records the projection engine works on and the
results it hands back. They are designed to:
1. Resolve optional inputs once, at the boundary
2. Provide clear validation error messages
3. Be serializable for storage and logging
4. Stay immutable while a projection runs

DESIGN DECISION: Money is Decimal everywhere. The two growth models
must produce exactly the documented figures (1111.00, 1223.11, 1224.00),
and binary floats can't promise that.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


ZERO = Decimal("0")


def new_record_id() -> str:
    """Generate an opaque identifier for a new account or expense."""
    return uuid4().hex


def _truncate_to_date(value: Any) -> Any:
    """Discard any time-of-day component before pydantic sees the value."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and len(value) > 10 and value[10] in "T ":
        return value[:10]
    return value


# =============================================================================
# ENUMS
# =============================================================================

class AffordabilityReason(str, Enum):
    """Outcome of checking a candidate expense against its account."""
    AFFORDABLE = "affordable"
    BEFORE_ACCOUNT_START = "before_account_start"
    WOULD_GO_NEGATIVE = "would_go_negative"


# =============================================================================
# RECORDS
# =============================================================================

class Account(BaseModel):
    """
    A place money accumulates.

    Nullable numeric fields are kept as given (so they round-trip through
    storage) but the engine only ever reads the resolved `contribution`
    and `rate` properties.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        default_factory=new_record_id,
        min_length=1,
        description="Opaque account identifier"
    )
    user_id: Optional[str] = Field(
        default=None,
        description="Owner of the account (storage scoping only)"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display label"
    )
    start_date: date = Field(
        ...,
        description="Date the projection begins"
    )
    initial_amount: Decimal = Field(
        ...,
        ge=0,
        description="Balance on the start date"
    )
    monthly_contribution: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Added at each monthly step; None means 0"
    )
    annual_return_rate: Optional[Decimal] = Field(
        default=None,
        ge=0,
        le=100,
        description="Annual growth in percent; None means no growth"
    )
    reinvest_dividends: bool = Field(
        default=True,
        description="Compound monthly (True) or apply simple interest (False)"
    )

    @field_validator('start_date', mode='before')
    @classmethod
    def drop_time_component(cls, v: Any) -> Any:
        return _truncate_to_date(v)

    @field_validator('reinvest_dividends', mode='before')
    @classmethod
    def null_means_simple_interest(cls, v: Any) -> Any:
        return False if v is None else v

    @property
    def contribution(self) -> Decimal:
        """Monthly contribution with the null default applied."""
        return self.monthly_contribution if self.monthly_contribution is not None else ZERO

    @property
    def rate(self) -> Decimal:
        """Annual return rate (percent) with the null default applied."""
        return self.annual_return_rate if self.annual_return_rate is not None else ZERO


class Expense(BaseModel):
    """
    A cost due on a specific date, optionally drawn from an account.

    `account_id` is a weak reference. It may point at an account that has
    since been deleted; the engine treats that exactly like None.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        default_factory=new_record_id,
        min_length=1,
        description="Opaque expense identifier"
    )
    user_id: Optional[str] = None
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display label"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Cost of one occurrence"
    )
    due_date: date = Field(
        ...,
        description="Date of the first (or only) occurrence"
    )
    account_id: Optional[str] = Field(
        default=None,
        description="Account the expense is drawn from, if any"
    )
    is_recurring: bool = Field(
        default=False,
        description="Recurs monthly from due_date with no end date"
    )

    @field_validator('due_date', mode='before')
    @classmethod
    def drop_time_component(cls, v: Any) -> Any:
        return _truncate_to_date(v)

    @field_validator('account_id', mode='before')
    @classmethod
    def blank_means_unassigned(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator('is_recurring', mode='before')
    @classmethod
    def null_means_one_time(cls, v: Any) -> Any:
        return False if v is None else v


# =============================================================================
# DRAFTS - raw form input, validated before it becomes a record
# =============================================================================

def _as_raw_text(value: Any) -> Any:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


class AccountDraft(BaseModel):
    """
    Account form input as typed by the user.

    Every field is optional and numbers are kept as text, so the validator
    can report "missing" and "not a number" instead of failing outright.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = Field(
        default=None,
        description="Set when editing an existing account"
    )
    user_id: Optional[str] = None
    name: Optional[str] = None
    start_date: Optional[str] = None
    initial_amount: Optional[str] = None
    monthly_contribution: Optional[str] = None
    annual_return_rate: Optional[str] = None
    reinvest_dividends: bool = True

    @field_validator(
        'start_date',
        'initial_amount',
        'monthly_contribution',
        'annual_return_rate',
        mode='before',
    )
    @classmethod
    def keep_as_text(cls, v: Any) -> Any:
        return _as_raw_text(v)


class ExpenseDraft(BaseModel):
    """Expense form input as typed by the user."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = Field(
        default=None,
        description="Set when editing an existing expense"
    )
    user_id: Optional[str] = None
    name: Optional[str] = None
    amount: Optional[str] = None
    due_date: Optional[str] = None
    account_id: Optional[str] = None
    is_recurring: bool = False

    @field_validator('amount', 'due_date', mode='before')
    @classmethod
    def keep_as_text(cls, v: Any) -> Any:
        return _as_raw_text(v)


# =============================================================================
# PROJECTION RESULTS
# =============================================================================

class ProjectionPoint(BaseModel):
    """Projected balance at one monthly step after the account start."""

    month: int = Field(ge=0)
    as_of: date
    balance: Decimal


class AccountSummary(BaseModel):
    """
    The three headline figures shown for an account.

    `current` and `net_after` keep their sign: a negative value is the
    shortfall signal, not an invalid result.
    """

    account_id: str
    name: str
    as_of: date
    current: Decimal
    upcoming: Decimal
    net_after: Decimal

    @property
    def has_shortfall(self) -> bool:
        """True when upcoming expenses exceed what the account holds."""
        return self.net_after < 0


class AllocationSlice(BaseModel):
    """One account's share of the total, rounded for display."""

    account_id: str
    name: str
    value: Decimal


class PortfolioSummary(BaseModel):
    """Dashboard view across all of a user's accounts and expenses."""

    as_of: date
    accounts: list[AccountSummary] = Field(default_factory=list)
    total_current: Decimal = ZERO
    total_upcoming: Decimal = ZERO
    net_after: Decimal = ZERO
    allocation: list[AllocationSlice] = Field(default_factory=list)
    upcoming_expenses: list[Expense] = Field(default_factory=list)
    unassigned_total: Decimal = Field(
        default=ZERO,
        description="Spend to date of expenses not drawn from a live account"
    )
    unassigned_upcoming: Decimal = ZERO

    @property
    def accounts_in_shortfall(self) -> list[AccountSummary]:
        return [summary for summary in self.accounts if summary.has_shortfall]


class AffordabilityResult(BaseModel):
    """
    Verdict on a candidate expense.

    This is planning guidance computed from the plan itself. It knows
    nothing about the real bank balance.
    """

    account_id: str
    account_name: str
    due_date: date
    accepted: bool
    reason: AffordabilityReason
    projected_balance: Optional[Decimal] = Field(
        default=None,
        description="Recurring-expanded balance at due_date including the candidate"
    )
    max_affordable: Decimal = Field(
        default=ZERO,
        ge=0,
        description="Largest one-off amount the account could absorb on due_date"
    )
    message: str


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Form field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'would_go_negative')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of validating an account or expense draft.

    Stage 1: Schema validation (required fields, numbers, dates)
    Stage 2: Semantic validation (account start, affordability)
    """

    entity_type: str = Field(
        ...,
        pattern="^(account|expense)$"
    )
    validated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    schema_valid: bool
    semantic_valid: bool
    is_valid: bool

    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    # Only set for expenses linked to a known account
    affordability: Optional[AffordabilityResult] = None

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    def errors_by_field(self) -> dict[str, str]:
        """First error message per field, the shape a form wants."""
        errors: dict[str, str] = {}
        for issue in self.issues:
            if issue.severity == "error":
                errors.setdefault(issue.field, issue.message)
        return errors
