from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Sequence

from application.periods import month_key
from domain.models import AccountBalance, BudgetStatus, CategoryKind, TransactionKind
from domain.schemas import Account, Budget, Category, Transaction

ZERO = Decimal("0")


def _sum_kind(transactions: Iterable[Transaction], kind: TransactionKind) -> Decimal:
    return sum((t.amount for t in transactions if t.type == kind), ZERO)


def total_income(transactions: Iterable[Transaction]) -> Decimal:
    return _sum_kind(transactions, TransactionKind.INCOME)


def total_expense(transactions: Iterable[Transaction]) -> Decimal:
    return _sum_kind(transactions, TransactionKind.EXPENSE)


def balance(transactions: Iterable[Transaction]) -> Decimal:
    """Income minus expense in one pass; transfers count for neither side."""
    result = ZERO
    for t in transactions:
        if t.type == TransactionKind.INCOME:
            result += t.amount
        elif t.type == TransactionKind.EXPENSE:
            result -= t.amount
    return result


def account_balances(
    accounts: Sequence[Account],
    transactions: Sequence[Transaction],
) -> list[AccountBalance]:
    # Transfers are not applied to either leg until their balance rules are settled.
    rows: list[AccountBalance] = []
    for account in accounts:
        own = [t for t in transactions if t.account == account.name]
        rows.append(
            AccountBalance(
                id=account.id,
                name=account.name,
                initial_balance=account.initial_balance,
                current_balance=account.initial_balance + balance(own),
            )
        )
    return rows


def total_balance(rows: Iterable[AccountBalance]) -> Decimal:
    return sum((row.current_balance for row in rows), ZERO)


def budget_spent(category_name: str, transactions: Iterable[Transaction], month: str) -> Decimal:
    return sum(
        (
            t.amount
            for t in transactions
            if t.type == TransactionKind.EXPENSE and t.category == category_name and month_key(t.date) == month
        ),
        ZERO,
    )


def budget_statuses(
    budgets: Sequence[Budget],
    categories: Sequence[Category],
    transactions: Sequence[Transaction],
    month: str,
) -> list[BudgetStatus]:
    names = {c.id: c.name for c in categories}
    statuses: list[BudgetStatus] = []
    for budget in budgets:
        if budget.month != month:
            continue
        name = names.get(budget.category_id, "")
        spent = budget_spent(name, transactions, month) if name else ZERO
        statuses.append(
            BudgetStatus(
                id=budget.id,
                category_id=budget.category_id,
                category_name=name,
                month=budget.month,
                limit=budget.limit,
                spent=spent,
                remaining=budget.limit - spent,
            )
        )
    return statuses


def unbudgeted_categories(
    categories: Sequence[Category],
    budgets: Sequence[Budget],
    month: str,
) -> list[Category]:
    budgeted = {b.category_id for b in budgets if b.month == month}
    return [c for c in categories if c.type == CategoryKind.EXPENSE and c.id not in budgeted]
