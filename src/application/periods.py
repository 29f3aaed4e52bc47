from __future__ import annotations

from calendar import monthrange
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from domain.models import DateSpan, PeriodKind

_LOOKBACK_MONTHS = {
    PeriodKind.THREE_MONTHS: 3,
    PeriodKind.FOUR_MONTHS: 4,
}


def as_period(value: Any) -> PeriodKind:
    """Resolve a period kind, falling back to monthly for anything unknown."""
    if isinstance(value, PeriodKind):
        return value
    try:
        return PeriodKind(str(value))
    except ValueError:
        return PeriodKind.MONTHLY


def month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def month_bounds(day: date) -> DateSpan:
    return DateSpan(
        start=day.replace(day=1),
        end=day.replace(day=monthrange(day.year, day.month)[1]),
    )


def shift_months(day: date, months: int) -> date:
    """Move by whole months, clamping the day to the target month's length."""
    index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, min(day.day, monthrange(year, month)[1]))


def week_start(day: date) -> date:
    # date.weekday(): Monday=0 .. Sunday=6
    return day - timedelta(days=(day.weekday() + 1) % 7)


def date_range(period: Any, reference: date) -> DateSpan:
    kind = as_period(period)

    if kind == PeriodKind.DAILY:
        return DateSpan(start=reference, end=reference)
    if kind == PeriodKind.WEEKLY:
        start = week_start(reference)
        return DateSpan(start=start, end=start + timedelta(days=6))
    if kind in _LOOKBACK_MONTHS:
        return DateSpan(start=shift_months(reference, -_LOOKBACK_MONTHS[kind]), end=reference)
    if kind == PeriodKind.YEARLY:
        return DateSpan(start=date(reference.year, 1, 1), end=date(reference.year, 12, 31))
    return month_bounds(reference)


def format_date(day: date) -> str:
    return f"{day.strftime('%b')} {day.day}, {day.year}"


def period_label(period: Any, reference: date) -> str:
    try:
        kind = PeriodKind(period)
    except ValueError:
        return format_date(reference)

    if kind == PeriodKind.DAILY:
        return format_date(reference)
    if kind == PeriodKind.WEEKLY:
        span = date_range(kind, reference)
        return f"{format_date(span.start)} - {format_date(span.end)}"
    if kind == PeriodKind.MONTHLY:
        return reference.strftime("%B %Y")
    if kind == PeriodKind.THREE_MONTHS:
        return "Last 3 Months"
    if kind == PeriodKind.FOUR_MONTHS:
        return "Last 4 Months"
    return str(reference.year)


def format_currency(amount: Decimal | float | int, currency: str = "USD") -> str:
    symbols = {"USD": "$", "EUR": "€", "GBP": "£"}
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    symbol = symbols.get(currency.upper())
    body = f"{abs(value):,.2f}"
    if symbol is None:
        return f"{sign}{currency.upper()} {body}"
    return f"{sign}{symbol}{body}"


def format_percentage(value: float, decimals: int = 1) -> str:
    return f"{value:.{decimals}f}%"
