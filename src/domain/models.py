from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum


class TransactionKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class CategoryKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class PeriodKind(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    THREE_MONTHS = "3months"
    FOUR_MONTHS = "4months"
    YEARLY = "yearly"


class Resource(str, Enum):
    TRANSACTIONS = "transactions"
    CATEGORIES = "categories"
    ACCOUNTS = "accounts"
    BUDGETS = "budgets"


@dataclass(frozen=True)
class DateSpan:
    start: date
    end: date


@dataclass
class AccountBalance:
    id: str
    name: str
    initial_balance: Decimal
    current_balance: Decimal


@dataclass
class BudgetStatus:
    id: str
    category_id: str
    category_name: str
    month: str
    limit: Decimal
    spent: Decimal
    remaining: Decimal

    @property
    def percent_used(self) -> float:
        if self.limit <= 0:
            return 0.0
        return float(self.spent / self.limit * 100)

    @property
    def over_budget(self) -> bool:
        return self.spent > self.limit


@dataclass
class CategoryTotal:
    name: str
    total: Decimal = Decimal("0")
    count: int = 0


@dataclass
class AccountActivity:
    account: str
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")

    @property
    def balance(self) -> Decimal:
        return self.income - self.expense


@dataclass
class PieSlice:
    name: str
    value: Decimal
    percentage: float


@dataclass
class FlowPoint:
    date: str
    amount: Decimal
    display_date: str


@dataclass
class CalendarCell:
    day: int
    date: str
    amount: Decimal
    has_transaction: bool
    is_empty: bool = False


@dataclass
class PeriodSummary:
    label: str
    start: date
    end: date
    total_income: Decimal
    total_expense: Decimal
    balance: Decimal
    transaction_count: int
    show_total: bool = True
    search_query: str = ""
