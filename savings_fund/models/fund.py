"""
Core Data Models for the Savings Fund

These models define the schemas for everything the fund persists or reports:
1. Members and their roles
2. Savings ledger entries
3. Loans and their repayment state
4. Personal debts, savings goals and preferences
5. Computed summaries (never persisted)

DESIGN DECISION: Stored collections keep the camelCase field names of the
existing JSON data. Python code uses snake_case attributes; the alias
generator maps between the two on load and dump.
"""

from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Generic, Optional, TypeVar
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel


CENT = Decimal("0.01")


def to_money(value: Decimal) -> Decimal:
    """Round a Decimal to cents, half up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def new_id() -> str:
    return uuid4().hex


def naive_utc(value: datetime) -> datetime:
    """Timestamps are stored naive. Aware ones are converted to UTC first."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class StoredModel(BaseModel):
    """Base for models that round-trip through the JSON collections."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_record(self) -> dict:
        """Dump to a JSON-safe dict using the stored (camelCase) names."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# ENUMS
# =============================================================================

class UserRole(str, Enum):
    """Fund roles. Only admins may mutate the ledger and loans."""
    ADMIN = "admin"
    MEMBER = "member"


class LoanStatus(str, Enum):
    """
    Loan lifecycle state.

    ACTIVE -> PAID happens automatically when a payment clears the balance.
    DEFAULTED is only ever set by an explicit loan update.
    """
    ACTIVE = "active"
    PAID = "paid"
    DEFAULTED = "defaulted"


class DebtStatus(str, Enum):
    """Repayment progress band for a personal debt."""
    PAID = "paid"
    GOOD = "good"
    MEDIUM = "medium"
    HIGH = "high"


class ReportPeriod(str, Enum):
    ALL = "all"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


class FailureReason(str, Enum):
    """Named failure categories returned by every mutating operation."""
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    VALIDATION_FAILED = "validation_failed"
    AUTHENTICATION_FAILED = "authentication_failed"
    INACTIVE_USER = "inactive_user"


# =============================================================================
# IDENTITY & MEMBERSHIP
# =============================================================================

class User(StoredModel):
    """
    A fund user as seen by callers (no password hash).

    total_savings is a view over the ledger: services fill it in from the
    ledger on every read and refresh the stored copy after every ledger write.
    """

    id: str = Field(default_factory=new_id)
    email: str = Field(..., min_length=3, max_length=254)
    name: str = Field(..., min_length=1, max_length=200)
    role: UserRole = UserRole.MEMBER
    is_active: bool = True
    total_savings: Decimal = Decimal("0")
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip()

    @field_validator("created_at")
    @classmethod
    def drop_timezone(cls, v: datetime) -> datetime:
        return naive_utc(v)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class StoredUser(User):
    """
    A user record as persisted, including the password hash.

    WARNING: password_hash comes from a 32-bit rolling hash and offers no
    real protection. See savings_fund.core.membership.simple_hash.
    """

    password_hash: str = ""

    def public(self) -> User:
        return User.model_validate(self.model_dump(exclude={"password_hash"}))


class UserUpdate(BaseModel):
    """
    Partial update for a user. Only fields that are set are applied.

    total_savings is not updatable: the ledger owns it.
    """

    email: Optional[str] = None
    name: Optional[str] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class SessionPointer(StoredModel):
    """The authenticated-session record: just the current user id."""

    user_id: str


# =============================================================================
# SAVINGS LEDGER
# =============================================================================

class SavingsEntry(StoredModel):
    """
    One deposit into the fund.

    Entries are immutable; the ledger only appends and deletes.
    Amounts are not validated (the fund has always accepted any number).
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    user_id: str
    amount: Decimal
    entry_date: date = Field(..., alias="date")
    description: str = ""
    created_at: datetime = Field(default_factory=datetime.utcnow)
    created_by: str = Field(..., description="Id of the admin who recorded it")

    @field_validator("created_at")
    @classmethod
    def drop_timezone(cls, v: datetime) -> datetime:
        return naive_utc(v)


# =============================================================================
# LOANS
# =============================================================================

class LoanQuote(BaseModel):
    """
    Flat-rate repayment breakdown for a principal, rate and term.

    Interest is charged once per instalment on the full principal,
    never on the reducing balance.
    """

    amount: Decimal
    interest_rate: Decimal
    term_months: int
    principal_payment: Decimal
    interest_per_payment: Decimal
    monthly_payment: Decimal
    total_payment: Decimal
    total_interest: Decimal


class LoanAnalysis(BaseModel):
    """How much a member may borrow against their savings, and what it costs."""

    user_id: str
    total_savings: Decimal
    loan_percentage: Decimal
    max_loan_amount: Decimal
    quote: LoanQuote


class Loan(StoredModel):
    """A loan issued to a member."""

    id: str = Field(default_factory=new_id)
    user_id: str
    amount: Decimal = Field(..., gt=0)
    interest_rate: Decimal = Field(..., ge=0)
    term_months: int = Field(..., gt=0)
    monthly_payment: Decimal
    remaining_balance: Decimal = Field(..., ge=0)
    status: LoanStatus = LoanStatus.ACTIVE
    start_date: date
    created_at: datetime = Field(default_factory=datetime.utcnow)
    created_by: str


class LoanUpdate(BaseModel):
    """Partial update for a loan (the only path to DEFAULTED)."""

    interest_rate: Optional[Decimal] = Field(default=None, ge=0)
    remaining_balance: Optional[Decimal] = Field(default=None, ge=0)
    status: Optional[LoanStatus] = None


class LoanStatistics(BaseModel):
    total_loans: int
    active_loans: int
    total_lent: Decimal
    total_outstanding: Decimal
    total_paid: Decimal
    average_loan_amount: Decimal


# =============================================================================
# PERSONAL DEBTS, GOALS, PREFERENCES
# =============================================================================

class Debt(StoredModel):
    """A debt a user owes to an outside creditor."""

    id: str = Field(default_factory=new_id)
    creditor: str = Field(..., min_length=1, max_length=200)
    total_amount: Decimal = Field(..., gt=0)
    current_balance: Decimal = Field(..., ge=0)
    interest_rate: Decimal = Field(default=Decimal("0"), ge=0)
    monthly_payment: Decimal = Field(default=Decimal("0"), ge=0)
    start_date: date
    created_at: datetime = Field(default_factory=datetime.utcnow)


class DebtUpdate(BaseModel):
    creditor: Optional[str] = None
    total_amount: Optional[Decimal] = Field(default=None, gt=0)
    current_balance: Optional[Decimal] = Field(default=None, ge=0)
    interest_rate: Optional[Decimal] = Field(default=None, ge=0)
    monthly_payment: Optional[Decimal] = Field(default=None, ge=0)
    start_date: Optional[date] = None


class SavingsGoal(StoredModel):
    """A personal savings target."""

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=200)
    target_amount: Decimal = Field(..., gt=0)
    current_amount: Decimal = Field(default=Decimal("0"), ge=0)
    deadline: Optional[date] = None
    description: str = ""
    created_at: datetime = Field(default_factory=datetime.utcnow)


class SavingsGoalUpdate(BaseModel):
    name: Optional[str] = None
    target_amount: Optional[Decimal] = Field(default=None, gt=0)
    current_amount: Optional[Decimal] = Field(default=None, ge=0)
    deadline: Optional[date] = None
    description: Optional[str] = None


class Preferences(StoredModel):
    """Per-user display preferences."""

    currency: str = "USD"
    dark_mode: bool = False
    notifications: bool = True
    language: str = "es"


class PreferencesUpdate(BaseModel):
    currency: Optional[str] = None
    dark_mode: Optional[bool] = None
    notifications: Optional[bool] = None
    language: Optional[str] = None


# =============================================================================
# COMPUTED SUMMARIES
# =============================================================================

class FundSummary(BaseModel):
    """
    Fund-wide figures derived from users and the ledger at request time.

    monthly_average is the sum of deposits dated in the current calendar
    month, not a rolling average. The name is kept for compatibility.
    """

    total_members: int
    active_members: int
    total_savings: Decimal
    monthly_average: Decimal
    top_saver: Optional[User] = None


class MonthlyTrendPoint(BaseModel):
    label: str = Field(..., description="Month label, e.g. 'Mar 2024'")
    month_start: date
    month_end: date
    total: Decimal
    count: int = Field(ge=0)


class MemberReport(BaseModel):
    user: User
    total_savings: Decimal
    deposit_count: int
    last_deposit_date: Optional[date] = None
    last_deposit_amount: Decimal = Decimal("0")
    average_deposit: Decimal = Decimal("0")


class ImportResult(BaseModel):
    """Outcome of a best-effort batch import."""

    imported: int = 0
    skipped: int = 0
    errors: list[str] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.imported > 0

    @property
    def error_count(self) -> int:
        return len(self.errors)


# =============================================================================
# VALIDATION
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'duplicate')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


# =============================================================================
# OPERATION RESULTS
# =============================================================================

T = TypeVar("T")


class OperationResult(BaseModel, Generic[T]):
    """
    Result of a mutating operation.

    Either success with an optional value, or a named failure reason
    with a message. A failed operation has changed nothing.
    """

    success: bool
    reason: Optional[FailureReason] = None
    error: Optional[str] = None
    value: Optional[T] = None

    @classmethod
    def ok(cls, value: Any = None) -> "OperationResult":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, reason: FailureReason, error: str) -> "OperationResult":
        return cls(success=False, reason=reason, error=error)


def apply_update(model: BaseModel, update: BaseModel) -> Any:
    """
    Merge an update command into a model and return the new model.

    Only fields explicitly set on the update are applied; the result is
    re-validated so constraints still hold.
    """
    changes = update.model_dump(exclude_unset=True)
    if not changes:
        return model
    merged = model.model_dump()
    merged.update(changes)
    return type(model).model_validate(merged)
