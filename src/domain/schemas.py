from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from domain.models import CategoryKind, PeriodKind, Resource, TransactionKind

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


def coerce_date(value: Any) -> Any:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if not isinstance(value, str):
        return value

    text = value.strip()
    if not text:
        return value

    # Canonical format first; full timestamps keep only their date part.
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%m/%d/%Y", "%m-%d-%Y"):
        try:
            return dt.datetime.strptime(text[:10] if fmt == "%Y-%m-%d" else text, fmt).date()
        except ValueError:
            continue
    return value


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


# ---- entities ----

class Transaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    amount: Decimal = Field(ge=0)
    type: TransactionKind
    category: str = ""
    account: str = ""
    from_account: Optional[str] = None
    to_account: Optional[str] = None
    date: dt.date
    note: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, value: Any) -> Any:
        return coerce_date(value)

    @field_validator("category", "account", mode="before")
    @classmethod
    def none_as_blank(cls, value: Any) -> Any:
        return "" if value is None else value


class Category(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: CategoryKind
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class Account(BaseModel):
    """A money container. Its current balance is derived, never stored."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    initial_balance: Decimal = Decimal("0")
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class Budget(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    category_id: str
    category_name: str = ""
    limit: Decimal
    spent: Decimal = Decimal("0")
    remaining: Decimal = Decimal("0")
    month: str = Field(pattern=MONTH_PATTERN)
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class FilterState(BaseModel):
    model_config = ConfigDict(frozen=True)

    period: PeriodKind = PeriodKind.MONTHLY
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    show_total: bool = True
    # Kept in state for the UI toggle; nothing aggregates with it yet.
    carry_over: bool = True
    search_query: str = ""

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, value: Any) -> Any:
        if value == "":
            return None
        return coerce_date(value)


# ---- forms ----

class TransactionForm(BaseModel):
    """
    User input for adding or editing a transaction.

    Income and expense entries need a category and an account; transfers
    need a from/to account pair instead.
    """

    amount: Decimal = Field(ge=0)
    type: TransactionKind = TransactionKind.EXPENSE
    category: str = ""
    account: str = ""
    from_account: str = ""
    to_account: str = ""
    date: dt.date
    note: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, value: Any) -> Any:
        return coerce_date(value)

    @field_validator("category", "account", "from_account", "to_account", mode="before")
    @classmethod
    def strip_names(cls, value: Any) -> Any:
        if value is None:
            return ""
        return _strip(value)

    @field_validator("note", mode="before")
    @classmethod
    def blank_note_as_none(cls, value: Any) -> Any:
        value = _strip(value)
        return value or None

    @model_validator(mode="after")
    def validate_kind_fields(self) -> "TransactionForm":
        if self.type == TransactionKind.TRANSFER:
            if not self.from_account or not self.to_account:
                raise ValueError("Transfers require both from_account and to_account")
            if self.from_account == self.to_account:
                raise ValueError("from_account and to_account must be different accounts")
        else:
            if not self.category:
                raise ValueError("Category is required")
            if not self.account:
                raise ValueError("Account is required")
        return self


class CategoryForm(BaseModel):
    name: str = Field(min_length=2)
    type: CategoryKind = CategoryKind.EXPENSE

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value: Any) -> Any:
        return _strip(value)


class AccountForm(BaseModel):
    name: str = Field(min_length=2)
    initial_balance: Decimal

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value: Any) -> Any:
        return _strip(value)


class BudgetForm(BaseModel):
    category_id: str = Field(min_length=1)
    limit: Decimal = Field(gt=0)
    month: str = Field(pattern=MONTH_PATTERN)

    @field_validator("category_id", "month", mode="before")
    @classmethod
    def strip_fields(cls, value: Any) -> Any:
        return _strip(value)


class FilterPatch(BaseModel):
    """Partial filter update; unset fields are left untouched."""

    period: Optional[PeriodKind] = None
    show_total: Optional[bool] = None
    carry_over: Optional[bool] = None
    search_query: Optional[str] = None

    def as_patch(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


ENTITY_TYPES: dict[Resource, type[BaseModel]] = {
    Resource.TRANSACTIONS: Transaction,
    Resource.CATEGORIES: Category,
    Resource.ACCOUNTS: Account,
    Resource.BUDGETS: Budget,
}
