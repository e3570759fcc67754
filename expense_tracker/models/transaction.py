"""
Core Data Models for the Expense Tracker

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Reject malformed transactions before they reach a record store
2. Be serializable for storage, logging and the HTTP layer
3. Keep the aggregate results backend-independent

DESIGN DECISION: Money is a Decimal everywhere inside the core.
It is only turned into a float at the JSON boundary.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    computed_field,
    field_validator,
)
from pydantic.alias_generators import to_camel


# Decimal inside Python, plain number in JSON responses
Money = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]


# Largest single amount. Keeps cents, and sums of millions of them, inside
# a signed 64-bit integer column.
MAX_AMOUNT = Decimal("999999999999.99")


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


class TransactionCategory(str, Enum):
    """
    Supported transaction categories.

    DESIGN DECISION: A closed set of categories keeps the breakdown
    stable and lets every backend group on the same keys.
    """
    FOOD = "food"
    TRANSPORT = "transport"
    SHOPPING = "shopping"
    BILLS = "bills"
    SALARY = "salary"
    FREELANCE = "freelance"
    OTHER = "other"


# =============================================================================
# TRANSACTION MODELS
# =============================================================================

class TransactionIn(BaseModel):
    """
    Validated payload for creating or replacing a transaction.

    Accepts both snake_case (Python callers) and camelCase (JSON clients).
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    title: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Short label shown in lists"
    )
    type: TransactionType
    amount: Annotated[
        Decimal,
        Field(
            gt=0,
            le=MAX_AMOUNT,
            decimal_places=2,
            allow_inf_nan=False,
            description="Positive amount in whole cents"
        )
    ]
    category: TransactionCategory
    date: date
    description: Optional[str] = Field(
        default=None,
        max_length=500,
        description="Free-text notes"
    )
    owner_id: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=64,
        description="Owning user, only set in multi-user mode"
    )

    @field_validator('date')
    @classmethod
    def reject_future_date(cls, v: date) -> date:
        """A transaction cannot happen after today."""
        if v > date.today():
            raise ValueError("Date cannot be in the future")
        return v

    @field_validator('description')
    @classmethod
    def blank_description_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class Transaction(BaseModel):
    """
    A stored transaction.

    Instances are frozen: stores build a new object on update, so a
    record handed to a reader never changes underneath it.
    """
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    # Identity
    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )

    title: str = Field(..., min_length=1, max_length=100)
    type: TransactionType
    amount: Money = Field(..., gt=0)
    category: TransactionCategory
    date: date
    owner_id: Optional[str] = None
    description: Optional[str] = Field(default=None, max_length=500)

    # Timestamps
    created_at: datetime = Field(
        default_factory=utcnow,
        description="When the transaction was first stored"
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        description="Last update timestamp"
    )

    @field_validator('created_at', 'updated_at')
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Naive timestamps (e.g. read back from SQLite) are UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @computed_field
    @property
    def formatted_amount(self) -> str:
        return f"${self.amount:,.2f}"

    @property
    def title_folded(self) -> str:
        """Case-folded title used for case-insensitive search."""
        return self.title.casefold()

    @classmethod
    def create(cls, payload: TransactionIn) -> "Transaction":
        """Build a brand-new record from a validated payload."""
        now = utcnow()
        return cls(**payload.model_dump(), created_at=now, updated_at=now)

    def apply(self, payload: TransactionIn) -> "Transaction":
        """
        Return a copy with every field the caller supplied replaced.

        id and created_at never change; updated_at is bumped.
        """
        changes = payload.model_dump(exclude_unset=True)
        changes["updated_at"] = utcnow()
        return self.model_copy(update=changes)


# =============================================================================
# QUERY MODELS
# =============================================================================

class TransactionFilter(BaseModel):
    """
    A normalized predicate over transactions.

    Every field is optional; the ones that are set are ANDed together.
    The flat file store evaluates it with matches(), the database store
    translates the same fields into SQL clauses.
    """
    model_config = ConfigDict(frozen=True)

    type: Optional[TransactionType] = None
    category: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    search: Optional[str] = Field(
        default=None,
        description="Case-folded substring to look for in the title"
    )
    owner_id: Optional[str] = None

    def matches(self, txn: Transaction) -> bool:
        if self.type is not None and txn.type != self.type:
            return False
        if self.category is not None and txn.category.value != self.category:
            return False
        if self.start_date is not None and txn.date < self.start_date:
            return False
        if self.end_date is not None and txn.date > self.end_date:
            return False
        if self.search is not None and self.search not in txn.title_folded:
            return False
        if self.owner_id is not None and txn.owner_id != self.owner_id:
            return False
        return True


class PaginationMeta(BaseModel):
    """Where a page sits in the full result set."""
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total: int = Field(ge=0)
    pages: int = Field(ge=0)


class TransactionPage(BaseModel):
    """One page of a filtered, date-sorted listing."""
    records: list[Transaction] = Field(default_factory=list)
    pagination: PaginationMeta


# =============================================================================
# AGGREGATE MODELS
# =============================================================================

class SummaryResult(BaseModel):
    """Income/expense totals over a set of transactions."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    total_income: Money = Decimal("0")
    total_expenses: Money = Decimal("0")
    current_balance: Money = Decimal("0")
    transaction_count: int = Field(default=0, ge=0)

    @classmethod
    def from_totals(
        cls,
        total_income: Decimal,
        total_expenses: Decimal,
        transaction_count: int,
    ) -> "SummaryResult":
        """The balance is always derived, never stored."""
        return cls(
            total_income=total_income,
            total_expenses=total_expenses,
            current_balance=total_income - total_expenses,
            transaction_count=transaction_count,
        )


class BreakdownEntry(BaseModel):
    """One category's share of total expenses."""
    category: TransactionCategory
    amount: Money
    count: int = Field(ge=1)
    percentage: float = Field(ge=0.0)
