"""
Recurring date expansion.

Pure date arithmetic: no app context needed.
"""

from datetime import date

import pytest

from filterops.services.recurrence_service import (
    RecurrenceError,
    add_months,
    generate_recurring_dates,
)


class TestFixedSteps:

    def test_weekly_includes_end_date(self):
        dates = generate_recurring_dates(date(2025, 1, 1), date(2025, 1, 15), "weekly")
        assert dates == [date(2025, 1, 1), date(2025, 1, 8), date(2025, 1, 15)]

    def test_weekly_stops_before_end(self):
        dates = generate_recurring_dates(date(2025, 1, 1), date(2025, 1, 21), "weekly")
        assert dates == [date(2025, 1, 1), date(2025, 1, 8), date(2025, 1, 15)]

    def test_daily(self):
        dates = generate_recurring_dates(date(2025, 2, 27), date(2025, 3, 2), "daily")
        assert dates == [date(2025, 2, 27), date(2025, 2, 28), date(2025, 3, 1), date(2025, 3, 2)]

    @pytest.mark.parametrize("frequency,step", [
        ("biweekly", 14),
        ("every_3rd_week", 21),
        ("every_5th_week", 35),
        ("6_weeks", 42),
        ("8_weeks", 56),
    ])
    def test_week_multiples(self, frequency, step):
        start = date(2025, 1, 6)
        dates = generate_recurring_dates(start, date(2025, 12, 31), frequency)
        assert dates[0] == start
        assert all((b - a).days == step for a, b in zip(dates, dates[1:]))

    def test_start_equals_end(self):
        assert generate_recurring_dates(date(2025, 5, 5), date(2025, 5, 5), "weekly") == [date(2025, 5, 5)]

    def test_start_after_end_is_empty(self):
        assert generate_recurring_dates(date(2025, 5, 6), date(2025, 5, 5), "daily") == []


class TestWeekdays:

    def test_skips_weekend(self):
        # 2025-01-03 is a Friday
        dates = generate_recurring_dates(date(2025, 1, 3), date(2025, 1, 7), "weekdays")
        assert dates == [date(2025, 1, 3), date(2025, 1, 6), date(2025, 1, 7)]

    def test_weekend_start_rolls_forward(self):
        # 2025-01-04 is a Saturday
        dates = generate_recurring_dates(date(2025, 1, 4), date(2025, 1, 8), "weekdays")
        assert dates[0] == date(2025, 1, 6)
        assert all(d.weekday() < 5 for d in dates)


class TestTwiceInAWeek:

    def test_alternating_gaps(self):
        dates = generate_recurring_dates(date(2025, 1, 1), date(2025, 1, 15), "twice_in_a_week")
        assert dates == [date(2025, 1, 1), date(2025, 1, 4), date(2025, 1, 8), date(2025, 1, 11), date(2025, 1, 15)]

    def test_truncate_mode(self):
        dates = generate_recurring_dates(
            date(2025, 1, 1), date(2025, 1, 10), "twice_in_a_week", twice_weekly_mode="truncate",
        )
        assert dates == [date(2025, 1, 1), date(2025, 1, 4), date(2025, 1, 7), date(2025, 1, 10)]

    def test_unknown_mode(self):
        with pytest.raises(RecurrenceError):
            generate_recurring_dates(date(2025, 1, 1), date(2025, 1, 10), "twice_in_a_week", twice_weekly_mode="odd")


class TestMonthBased:

    def test_month_end_does_not_drift(self):
        dates = generate_recurring_dates(date(2025, 1, 31), date(2025, 4, 30), "monthly")
        assert dates == [date(2025, 1, 31), date(2025, 2, 28), date(2025, 3, 31), date(2025, 4, 30)]

    def test_quarterly(self):
        dates = generate_recurring_dates(date(2025, 1, 15), date(2025, 12, 31), "quarterly")
        assert dates == [date(2025, 1, 15), date(2025, 4, 15), date(2025, 7, 15), date(2025, 10, 15)]

    def test_semi_annually_and_annually(self):
        start = date(2024, 2, 29)
        assert generate_recurring_dates(start, date(2025, 3, 1), "semi_annually") == [
            date(2024, 2, 29), date(2024, 8, 29), date(2025, 2, 28),
        ]
        assert generate_recurring_dates(start, date(2026, 3, 1), "annually") == [
            date(2024, 2, 29), date(2025, 2, 28), date(2026, 2, 28),
        ]

    def test_add_months_crosses_year(self):
        assert add_months(date(2025, 11, 30), 3) == date(2026, 2, 28)


class TestOneTime:

    def test_ignores_end(self):
        assert generate_recurring_dates(date(2025, 3, 3), None, "one_time") == [date(2025, 3, 3)]
        assert generate_recurring_dates(date(2025, 3, 3), date(2025, 1, 1), "one_time") == [date(2025, 3, 3)]


def test_unknown_frequency():
    with pytest.raises(RecurrenceError):
        generate_recurring_dates(date(2025, 1, 1), date(2025, 2, 1), "fortnightly")


def test_missing_end_for_recurring_is_empty():
    assert generate_recurring_dates(date(2025, 1, 1), None, "weekly") == []
