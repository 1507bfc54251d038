"""
Core Data Models for Money Tracker

These models define the schemas for all transaction and category data
flowing through the system. They are designed to:
1. Enforce type safety at runtime
2. Serialize identically for local storage and the remote store
3. Keep user input (drafts/patches) separate from persisted records

DESIGN DECISION: Drafts accept any amount so that the validator can
reject bad input with a clear message BEFORE any store is touched.
Persisted records (Transaction) are strict: a stored amount is always
a finite positive number.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)


OTHER_CATEGORY = "other"
MAX_NOTE_LENGTH = 128


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(value: datetime) -> datetime:
    # Naive timestamps are treated as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _amount_to_json(amount: Decimal) -> int | float:
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction."""
    EXPENSE = "expense"
    INCOME = "income"


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(BaseModel):
    """
    A persisted income/expense record.

    Owned by exactly one store at a time: the local store while the user
    is anonymous, the remote store once authenticated.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    # Identity (assigned at creation, never changed)
    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )

    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount in the smallest currency unit"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Name of a default or custom category"
    )
    type: TransactionType = Field(
        ...,
        description="Expense or income"
    )
    date: datetime = Field(
        default_factory=utcnow,
        description="When the transaction happened"
    )
    note: Optional[str] = Field(
        default=None,
        max_length=MAX_NOTE_LENGTH,
        description="Optional free-text annotation"
    )

    @field_validator('date')
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        return _as_aware(v)

    @field_validator('note')
    @classmethod
    def empty_note_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @field_serializer('amount', when_used='json')
    def serialize_amount(self, amount: Decimal) -> int | float:
        return _amount_to_json(amount)

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME

    def to_storage_dict(self) -> dict[str, Any]:
        """Serialize for local storage (date as ISO-8601 string)."""
        return self.model_dump(mode="json")

    def to_remote_record(self, user_id: str) -> dict[str, Any]:
        """Serialize for an insert into the remote transactions table."""
        record = self.model_dump(mode="json")
        record["user_id"] = user_id
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Transaction":
        """Build from a local or remote record; unknown columns are ignored."""
        return cls.model_validate(record)


class TransactionDraft(BaseModel):
    """
    User input for a new transaction.

    CRITICAL: This is UNVALIDATED input. It must pass the
    TransactionValidator before a Transaction is created from it.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Decimal
    category: str = ""
    type: TransactionType = TransactionType.EXPENSE
    date: Optional[datetime] = None
    note: Optional[str] = None

    def to_transaction(self, other_category: str = OTHER_CATEGORY) -> Transaction:
        """Create the persisted record, assigning a fresh id."""
        category = other_category if self.type == TransactionType.INCOME else self.category
        return Transaction(
            amount=self.amount,
            category=category,
            type=self.type,
            date=self.date or utcnow(),
            note=self.note,
        )


class TransactionPatch(BaseModel):
    """Partial update of a transaction. Only fields explicitly set are sent."""
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Optional[Decimal] = None
    category: Optional[str] = None
    type: Optional[TransactionType] = None
    date: Optional[datetime] = None
    note: Optional[str] = None

    @field_validator('date')
    @classmethod
    def ensure_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_aware(v) if v is not None else None

    @field_serializer('amount', when_used='json')
    def serialize_amount(self, amount: Optional[Decimal]) -> int | float | None:
        return _amount_to_json(amount) if amount is not None else None

    def to_patch_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)

    def apply_to(self, transaction: Transaction) -> Transaction:
        """Return a copy of ``transaction`` with the patch applied and re-validated."""
        merged = transaction.model_dump()
        merged.update(self.model_dump(exclude_unset=True))
        return Transaction.model_validate(merged)


class Totals(BaseModel):
    """Derived totals. Never stored; recomputed from the current list."""

    total_spent: Decimal = Decimal(0)
    total_income: Decimal = Decimal(0)

    @property
    def balance(self) -> Decimal:
        return self.total_income - self.total_spent


class MonthlySummary(BaseModel):
    """Spending and income for one calendar month (YYYY-MM)."""

    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    spent: Decimal = Decimal(0)
    income: Decimal = Decimal(0)

    @property
    def net(self) -> Decimal:
        return self.income - self.spent


# =============================================================================
# CATEGORIES
# =============================================================================

class CategoryStyle(BaseModel):
    """
    Display view of a category (default or custom).

    The name is the key transactions reference.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    emoji: str
    background_color: str


DEFAULT_CATEGORIES: tuple[CategoryStyle, ...] = (
    CategoryStyle(name="food", emoji="🍔", background_color="#fed7aa"),
    CategoryStyle(name="transport", emoji="🚗", background_color="#fef3c7"),
    CategoryStyle(name="entertainment", emoji="🎮", background_color="#e9d5ff"),
    CategoryStyle(name="shopping", emoji="🛍️", background_color="#fce7f3"),
    CategoryStyle(name=OTHER_CATEGORY, emoji="📝", background_color="#f3f4f6"),
)


class Category(BaseModel):
    """A user-created category stored in the remote store."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID
    name: str = Field(..., min_length=1, max_length=50)
    emoji: str = Field(default="📝", max_length=16)
    background_color: str = Field(default="#f3f4f6", max_length=32)
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_style(self) -> CategoryStyle:
        return CategoryStyle(
            name=self.name,
            emoji=self.emoji,
            background_color=self.background_color,
        )


class CategoryDraft(BaseModel):
    """User input for a new custom category (validated separately)."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = ""
    emoji: str = "📝"
    background_color: str = "#f3f4f6"


class CategoryPatch(BaseModel):
    """Partial update of a custom category."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = None
    emoji: Optional[str] = None
    background_color: Optional[str] = None

    def to_patch_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)
