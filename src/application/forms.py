from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from application.actions import AddEntity, UpdateEntity
from application.periods import month_key
from application.reducer import AppState
from application.selectors import categories_of_kind
from domain.models import CategoryKind, Resource, TransactionKind
from domain.schemas import (
    Account,
    AccountForm,
    Budget,
    BudgetForm,
    Category,
    CategoryForm,
    Transaction,
    TransactionForm,
    utcnow,
)

if TYPE_CHECKING:
    from application.store import AppStore

logger = logging.getLogger(__name__)


class FormError(ValueError):
    pass


class DuplicateBudgetError(FormError):
    pass


class BudgetCategoryError(FormError):
    pass


class BudgetWriteError(FormError):
    pass


def new_id() -> str:
    return str(uuid.uuid4())


def build_transaction(form: TransactionForm, existing: Transaction | None = None) -> Transaction:
    now = utcnow()
    transfer = form.type == TransactionKind.TRANSFER
    return Transaction(
        id=existing.id if existing else new_id(),
        amount=form.amount,
        type=form.type,
        category="" if transfer else form.category,
        account="" if transfer else form.account,
        from_account=form.from_account if transfer else None,
        to_account=form.to_account if transfer else None,
        date=form.date,
        note=form.note,
        created_at=existing.created_at if existing and existing.created_at else now,
        updated_at=now,
    )


def build_category(form: CategoryForm, existing: Category | None = None) -> Category:
    now = utcnow()
    return Category(
        id=existing.id if existing else new_id(),
        name=form.name,
        type=form.type,
        created_at=existing.created_at if existing and existing.created_at else now,
        updated_at=now,
    )


def build_account(form: AccountForm, existing: Account | None = None) -> Account:
    now = utcnow()
    return Account(
        id=existing.id if existing else new_id(),
        name=form.name,
        initial_balance=form.initial_balance,
        created_at=existing.created_at if existing and existing.created_at else now,
        updated_at=now,
    )


def ensure_unique_budget(state: AppState, category_id: str, month: str) -> None:
    for budget in state.budgets:
        if budget.category_id == category_id and budget.month == month:
            name = next((c.name for c in state.categories if c.id == category_id), category_id)
            raise DuplicateBudgetError(f"A budget for {name} in {month} already exists.")


def build_budget(form: BudgetForm, state: AppState, existing: Budget | None = None) -> Budget:
    """Build a budget draft; new budgets are checked against existing ones first."""
    category = next((c for c in state.categories if c.id == form.category_id), None)
    if category is None or category.type != CategoryKind.EXPENSE:
        raise BudgetCategoryError("Budgets can only be set for expense categories")
    if existing is None:
        ensure_unique_budget(state, form.category_id, form.month)

    now = utcnow()
    return Budget(
        id=existing.id if existing else new_id(),
        category_id=form.category_id,
        category_name=category.name,
        limit=form.limit,
        spent=Decimal("0"),
        remaining=form.limit,
        month=form.month,
        created_at=existing.created_at if existing and existing.created_at else now,
        updated_at=now,
    )


@dataclass
class TransactionFormSession:
    """An open add/edit transaction form."""

    amount: Optional[Decimal] = None
    type: TransactionKind = TransactionKind.EXPENSE
    category: str = ""
    account: str = ""
    from_account: str = ""
    to_account: str = ""
    date: date = field(default_factory=date.today)
    note: str = ""
    editing: Optional[Transaction] = None

    @classmethod
    def edit(cls, transaction: Transaction) -> "TransactionFormSession":
        return cls(
            amount=transaction.amount,
            type=transaction.type,
            category=transaction.category,
            account=transaction.account,
            from_account=transaction.from_account or "",
            to_account=transaction.to_account or "",
            date=transaction.date,
            note=transaction.note or "",
            editing=transaction,
        )

    @property
    def category_kind(self) -> CategoryKind:
        return CategoryKind.INCOME if self.type == TransactionKind.INCOME else CategoryKind.EXPENSE

    def available_categories(self, state: AppState) -> list[Category]:
        return categories_of_kind(state, self.category_kind)

    def create_category_inline(self, store: "AppStore", name: str) -> Category:
        """Create a category of the form's kind and select it. Needs a running event loop."""
        category = build_category(CategoryForm(name=name, type=self.category_kind))
        store.submit(AddEntity(Resource.CATEGORIES, category))
        self.category = category.name
        logger.info("Inline category created id=%s type=%s", category.id, category.type.value)
        return category

    def to_form(self) -> TransactionForm:
        return TransactionForm.model_validate(
            {
                "amount": self.amount,
                "type": self.type,
                "category": self.category,
                "account": self.account,
                "from_account": self.from_account,
                "to_account": self.to_account,
                "date": self.date,
                "note": self.note,
            }
        )

    def submit(self, store: "AppStore") -> Transaction:
        transaction = build_transaction(self.to_form(), self.editing)
        action = UpdateEntity if self.editing else AddEntity
        store.submit(action(Resource.TRANSACTIONS, transaction))
        return transaction


@dataclass
class BudgetFormSession:
    """An open add/edit budget form; only expense categories are offered."""

    category_id: str = ""
    limit: Optional[Decimal] = None
    month: str = field(default_factory=lambda: month_key(date.today()))
    editing: Optional[Budget] = None

    @classmethod
    def edit(cls, budget: Budget) -> "BudgetFormSession":
        return cls(category_id=budget.category_id, limit=budget.limit, month=budget.month, editing=budget)

    def available_categories(self, state: AppState) -> list[Category]:
        return categories_of_kind(state, CategoryKind.EXPENSE)

    def create_category_inline(self, store: "AppStore", name: str) -> Category:
        category = build_category(CategoryForm(name=name, type=CategoryKind.EXPENSE))
        store.submit(AddEntity(Resource.CATEGORIES, category))
        self.category_id = category.id
        return category

    def to_form(self) -> BudgetForm:
        return BudgetForm.model_validate({"category_id": self.category_id, "limit": self.limit, "month": self.month})

    async def submit(self, store: "AppStore") -> Budget:
        """Save the budget and return the record the remote store confirmed."""
        draft = build_budget(self.to_form(), store.state, self.editing)
        action = UpdateEntity if self.editing else AddEntity
        ok, budget = await store.dispatch_confirmed(action(Resource.BUDGETS, draft))
        if not ok or budget is None:
            raise BudgetWriteError(store.state.errors[Resource.BUDGETS] or "Failed to save budget")
        return budget
