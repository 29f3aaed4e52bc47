from __future__ import annotations

import unittest
from calendar import monthrange
from datetime import date, timedelta
from decimal import Decimal

from application.periods import (
    as_period,
    date_range,
    format_currency,
    format_percentage,
    month_bounds,
    month_key,
    period_label,
    shift_months,
)
from domain.models import PeriodKind


class DateRangeTests(unittest.TestCase):
    def test_daily_is_the_reference_day(self) -> None:
        span = date_range("daily", date(2024, 3, 15))
        self.assertEqual(span.start, date(2024, 3, 15))
        self.assertEqual(span.end, date(2024, 3, 15))

    def test_weekly_runs_sunday_to_saturday(self) -> None:
        span = date_range(PeriodKind.WEEKLY, date(2024, 3, 15))
        self.assertEqual(span.start, date(2024, 3, 10))
        self.assertEqual(span.end, date(2024, 3, 16))

    def test_weekly_on_a_sunday_starts_that_day(self) -> None:
        span = date_range(PeriodKind.WEEKLY, date(2024, 3, 10))
        self.assertEqual(span.start, date(2024, 3, 10))

    def test_monthly_covers_leap_february(self) -> None:
        span = date_range("monthly", date(2024, 2, 10))
        self.assertEqual(span.start, date(2024, 2, 1))
        self.assertEqual(span.end, date(2024, 2, 29))

    def test_lookbacks_end_on_reference(self) -> None:
        self.assertEqual(date_range("4months", date(2024, 3, 15)).start, date(2023, 11, 15))
        span = date_range("3months", date(2024, 5, 31))
        self.assertEqual(span.start, date(2024, 2, 29))
        self.assertEqual(span.end, date(2024, 5, 31))

    def test_yearly_is_the_calendar_year(self) -> None:
        span = date_range("yearly", date(2024, 7, 4))
        self.assertEqual((span.start, span.end), (date(2024, 1, 1), date(2024, 12, 31)))

    def test_unknown_period_falls_back_to_monthly(self) -> None:
        self.assertEqual(as_period("fortnight"), PeriodKind.MONTHLY)
        self.assertEqual(date_range("fortnight", date(2024, 3, 15)), month_bounds(date(2024, 3, 15)))

    def test_weekly_is_seven_days_from_sunday_for_every_day(self) -> None:
        day = date(2023, 1, 1)
        while day <= date(2024, 12, 31):
            span = date_range("weekly", day)
            self.assertEqual(span.start.weekday(), 6, day)
            self.assertEqual((span.end - span.start).days, 6, day)
            self.assertTrue(span.start <= day <= span.end, day)
            day += timedelta(days=1)

    def test_monthly_ends_on_last_day_for_every_day(self) -> None:
        day = date(2023, 1, 1)
        while day <= date(2024, 12, 31):
            span = date_range("monthly", day)
            self.assertEqual(span.start, day.replace(day=1), day)
            self.assertEqual(span.end.day, monthrange(day.year, day.month)[1], day)
            self.assertEqual(span.end.month, day.month, day)
            day += timedelta(days=1)

    def test_start_never_after_end(self) -> None:
        reference = date(2023, 12, 31)
        for kind in PeriodKind:
            span = date_range(kind, reference)
            self.assertLessEqual(span.start, span.end, kind)
            self.assertTrue(span.start <= reference <= span.end, kind)


class PeriodHelpersTests(unittest.TestCase):
    def test_shift_months_clamps_day(self) -> None:
        self.assertEqual(shift_months(date(2024, 1, 31), 1), date(2024, 2, 29))
        self.assertEqual(shift_months(date(2024, 1, 15), -2), date(2023, 11, 15))

    def test_month_key(self) -> None:
        self.assertEqual(month_key(date(2024, 3, 5)), "2024-03")


class PeriodLabelTests(unittest.TestCase):
    def test_labels(self) -> None:
        reference = date(2024, 3, 15)
        self.assertEqual(period_label("daily", reference), "Mar 15, 2024")
        self.assertEqual(period_label("weekly", reference), "Mar 10, 2024 - Mar 16, 2024")
        self.assertEqual(period_label("monthly", reference), "March 2024")
        self.assertEqual(period_label("3months", reference), "Last 3 Months")
        self.assertEqual(period_label("4months", reference), "Last 4 Months")
        self.assertEqual(period_label("yearly", reference), "2024")

    def test_unknown_period_shows_the_date(self) -> None:
        self.assertEqual(period_label("bogus", date(2024, 3, 15)), "Mar 15, 2024")


class FormattingTests(unittest.TestCase):
    def test_currency(self) -> None:
        self.assertEqual(format_currency(Decimal("1950")), "$1,950.00")
        self.assertEqual(format_currency(-50), "-$50.00")
        self.assertEqual(format_currency(Decimal("12.5"), "EUR"), "€12.50")
        self.assertEqual(format_currency(1, "xxx"), "XXX 1.00")

    def test_percentage(self) -> None:
        self.assertEqual(format_percentage(25.0), "25.0%")
        self.assertEqual(format_percentage(1 / 3 * 100, 2), "33.33%")


if __name__ == "__main__":
    unittest.main()
