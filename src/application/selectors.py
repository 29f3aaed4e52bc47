from __future__ import annotations

from application.aggregation import account_balances, balance, budget_statuses, total_expense, total_income
from application.periods import date_range, month_key, period_label
from application.reducer import AppState
from domain.models import AccountBalance, BudgetStatus, CategoryKind, PeriodSummary
from domain.schemas import Category, Transaction


def _matches_query(transaction: Transaction, query: str) -> bool:
    matches_note = bool(transaction.note) and query in transaction.note.lower()
    return matches_note or query in transaction.category.lower()


def filtered_transactions(state: AppState) -> list[Transaction]:
    """Transactions inside the filter's date range whose note or category matches the search text."""
    filters = state.filter_state
    if filters.start_date is None or filters.end_date is None:
        span = date_range(filters.period, state.current_period)
        start, end = span.start, span.end
    else:
        start, end = filters.start_date, filters.end_date

    query = filters.search_query.strip().lower()
    return [
        t
        for t in state.transactions
        if start <= t.date <= end and (not query or _matches_query(t, query))
    ]


def current_period_label(state: AppState) -> str:
    return period_label(state.filter_state.period, state.current_period)


def categories_of_kind(state: AppState, kind: CategoryKind) -> list[Category]:
    return [c for c in state.categories if c.type == CategoryKind(kind)]


def selected_month(state: AppState) -> str:
    return month_key(state.current_period)


def accounts_with_balances(state: AppState) -> list[AccountBalance]:
    return account_balances(state.accounts, filtered_transactions(state))


def budgets_for_current_month(state: AppState) -> list[BudgetStatus]:
    return budget_statuses(state.budgets, state.categories, state.transactions, selected_month(state))


def period_summary(state: AppState) -> PeriodSummary:
    rows = filtered_transactions(state)
    span = date_range(state.filter_state.period, state.current_period)
    return PeriodSummary(
        label=current_period_label(state),
        start=state.filter_state.start_date or span.start,
        end=state.filter_state.end_date or span.end,
        total_income=total_income(rows),
        total_expense=total_expense(rows),
        balance=balance(rows),
        transaction_count=len(rows),
        show_total=state.filter_state.show_total,
        search_query=state.filter_state.search_query,
    )
