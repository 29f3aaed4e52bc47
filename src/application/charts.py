from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Iterable, Sequence

from application.aggregation import ZERO, total_expense, total_income
from application.periods import as_period, date_range, month_bounds, shift_months
from domain.models import (
    AccountActivity,
    CalendarCell,
    CategoryTotal,
    FlowPoint,
    PeriodKind,
    PieSlice,
    TransactionKind,
)
from domain.schemas import Transaction

_DAILY_GRAIN = {PeriodKind.DAILY, PeriodKind.WEEKLY, PeriodKind.MONTHLY}


def _percentages(pairs: Sequence[tuple[str, Decimal]]) -> list[PieSlice]:
    total = sum((value for _, value in pairs), ZERO)
    return [
        PieSlice(name=name, value=value, percentage=float(value / total * 100) if total else 0.0)
        for name, value in pairs
    ]


def income_expense_overview(transactions: Sequence[Transaction]) -> list[PieSlice]:
    pairs = [("Income", total_income(transactions)), ("Expenses", total_expense(transactions))]
    return _percentages([(name, value) for name, value in pairs if value > 0])


def category_totals(transactions: Iterable[Transaction], kind: Any) -> list[CategoryTotal]:
    kind = TransactionKind(kind)
    groups: dict[str, CategoryTotal] = {}
    for t in transactions:
        if t.type != kind:
            continue
        entry = groups.setdefault(t.category, CategoryTotal(name=t.category))
        entry.total += t.amount
        entry.count += 1
    return sorted((g for g in groups.values() if g.total > 0), key=lambda g: g.total, reverse=True)


def category_slices(transactions: Iterable[Transaction], kind: Any) -> list[PieSlice]:
    return _percentages([(g.name, g.total) for g in category_totals(transactions, kind)])


def category_breakdown(transactions: Iterable[Transaction], category: str, kind: Any) -> tuple[list[Transaction], Decimal]:
    kind = TransactionKind(kind)
    rows = [t for t in transactions if t.category == category and t.type == kind]
    return rows, sum((t.amount for t in rows), ZERO)


def account_activity(transactions: Iterable[Transaction]) -> list[AccountActivity]:
    groups: dict[str, AccountActivity] = {}
    for t in transactions:
        if t.type == TransactionKind.INCOME:
            groups.setdefault(t.account, AccountActivity(account=t.account)).income += t.amount
        elif t.type == TransactionKind.EXPENSE:
            groups.setdefault(t.account, AccountActivity(account=t.account)).expense += t.amount
    active = [g for g in groups.values() if g.income > 0 or g.expense > 0]
    return sorted(active, key=lambda g: g.income + g.expense, reverse=True)


def _daily_totals(transactions: Iterable[Transaction], kind: TransactionKind) -> dict[date, Decimal]:
    totals: dict[date, Decimal] = defaultdict(lambda: ZERO)
    for t in transactions:
        if t.type == kind:
            totals[t.date] += t.amount
    return totals


def _days(start: date, end: date) -> list[date]:
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def flow_series(transactions: Iterable[Transaction], period: Any, reference: date, kind: Any) -> list[FlowPoint]:
    """
    Amounts of one transaction kind over the period.

    Daily, weekly and monthly periods get one point per day; longer periods
    get one point per calendar month, stepping a month at a time from the
    range start.
    """
    kind = TransactionKind(kind)
    period = as_period(period)
    span = date_range(period, reference)
    daily = _daily_totals(transactions, kind)

    if period in _DAILY_GRAIN:
        return [
            FlowPoint(date=d.isoformat(), amount=daily.get(d, ZERO), display_date=f"{d.strftime('%b')} {d.day}")
            for d in _days(span.start, span.end)
        ]

    points: list[FlowPoint] = []
    cursor = span.start
    step = 0
    while cursor <= span.end:
        bucket = month_bounds(cursor)
        amount = sum((v for d, v in daily.items() if bucket.start <= d <= bucket.end), ZERO)
        points.append(FlowPoint(date=cursor.isoformat(), amount=amount, display_date=cursor.strftime("%b %Y")))
        step += 1
        cursor = shift_months(span.start, step)
    return points


def calendar_cells(transactions: Iterable[Transaction], period: Any, reference: date, kind: Any) -> list[CalendarCell]:
    """Heat-map cells; monthly grids are padded so the first row starts on Sunday."""
    kind = TransactionKind(kind)
    period = as_period(period)
    if period not in _DAILY_GRAIN:
        return []

    span = date_range(period, reference)
    daily = _daily_totals(transactions, kind)
    cells: list[CalendarCell] = []
    if period == PeriodKind.MONTHLY:
        leading = (span.start.weekday() + 1) % 7
        cells.extend(
            CalendarCell(day=0, date="", amount=ZERO, has_transaction=False, is_empty=True) for _ in range(leading)
        )
    for d in _days(span.start, span.end):
        amount = daily.get(d, ZERO)
        cells.append(CalendarCell(day=d.day, date=d.isoformat(), amount=amount, has_transaction=amount > 0))
    return cells
