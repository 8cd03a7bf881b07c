import datetime as dt
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, field_validator

from config import get_settings
from formatting import format_currency, quantize_money
from periods import local_now

NOTE_MAX_LENGTH = 500
CATEGORY_MAX_LENGTH = 100


def _clean_category(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValueError("Category cannot be empty")
    return value


def _clean_note(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class BudgetEntry(BaseModel):
    """A single recorded purchase.

    Instances are frozen. Build them with :meth:`create` and derive updated
    records with :meth:`replace`; both run the full validation again.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    amount: Decimal
    category: str = Field(..., max_length=CATEGORY_MAX_LENGTH)
    date: dt.datetime
    note: Optional[str] = Field(default=None, max_length=NOTE_MAX_LENGTH)

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_positive(cls, value: Any) -> Decimal:
        amount = quantize_money(value)
        if amount <= 0:
            raise ValueError("Amount must be greater than zero")
        return amount

    @field_validator("category", mode="before")
    @classmethod
    def _category_not_blank(cls, value: Any) -> Any:
        return _clean_category(value)

    @field_validator("note", mode="before")
    @classmethod
    def _note_trimmed(cls, value: Any) -> Any:
        return _clean_note(value)

    @field_validator("date")
    @classmethod
    def _date_not_in_future(cls, value: dt.datetime) -> dt.datetime:
        if value.tzinfo is not None:
            tz = ZoneInfo(get_settings().timezone)
            value = value.astimezone(tz).replace(tzinfo=None)
        if value > local_now():
            raise ValueError("Date cannot be in the future")
        return value

    @classmethod
    def create(
        cls,
        amount: Any,
        category: str,
        date: dt.datetime,
        note: Optional[str] = None,
        *,
        id: Optional[UUID] = None,
    ) -> "BudgetEntry":
        data: dict[str, Any] = {
            "amount": amount,
            "category": category,
            "date": date,
            "note": note,
        }
        if id is not None:
            data["id"] = id
        return cls.model_validate(data)

    def replace(self, **changes: Any) -> "BudgetEntry":
        changes.pop("id", None)
        data = self.model_dump()
        data.update(changes)
        return type(self).model_validate(data)

    def formatted_amount(self, currency_code: str = "USD") -> str:
        return format_currency(self.amount, currency_code)


class MonthlyBudgetIn(BaseModel):
    category: str = Field(..., max_length=CATEGORY_MAX_LENGTH)
    year: int = Field(..., ge=1970, le=3000)
    month: int = Field(..., ge=1, le=12)
    amount: Decimal

    @field_validator("category", mode="before")
    @classmethod
    def _category_not_blank(cls, value: Any) -> Any:
        return _clean_category(value)

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_non_negative(cls, value: Any) -> Decimal:
        amount = quantize_money(value)
        if amount < 0:
            raise ValueError("Budget amount cannot be negative")
        return amount


class MonthlyBudget(MonthlyBudgetIn):
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None


class EntryIn(BaseModel):
    amount: Decimal = Field(..., gt=0)
    category: str = Field(..., min_length=1, max_length=CATEGORY_MAX_LENGTH)
    date: Optional[dt.datetime] = None
    note: Optional[str] = Field(default=None, max_length=NOTE_MAX_LENGTH)


class EntryOut(BaseModel):
    id: UUID
    date: dt.datetime
    amount: str
    category: str
    note: Optional[str]

    @classmethod
    def from_entry(cls, entry: BudgetEntry) -> "EntryOut":
        return cls(
            id=entry.id,
            date=entry.date,
            amount=f"{entry.amount:.2f}",
            category=entry.category,
            note=entry.note,
        )
