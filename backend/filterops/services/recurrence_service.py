# Overview: Pure date arithmetic expanding (start, end, frequency) into delivery dates.

"""
Recurring Date Generator

No database, no Flask. Every recurring series is built from the list this
module returns: the first date becomes the main order, the rest become
series members.

Rules:
- Dates are appended before advancing; generation stops once the next date
  is past `end`. If start > end the result is empty (except one_time).
- Fixed-step frequencies advance by a number of days.
- Month-based frequencies are computed from the anchor start date
  (start + k months, day clamped to the month length) so a 31st does not
  drift to the 28th after February.
- one_time ignores `end` and yields exactly [start].
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from itertools import count

from ..models import Frequency


TWICE_WEEKLY_ALTERNATE = "alternate"
TWICE_WEEKLY_TRUNCATE = "truncate"
TWICE_WEEKLY_MODES = (TWICE_WEEKLY_ALTERNATE, TWICE_WEEKLY_TRUNCATE)

FIXED_STEP_DAYS = {
    Frequency.DAILY: 1,
    Frequency.WEEKLY: 7,
    Frequency.BIWEEKLY: 14,
    Frequency.EVERY_3RD_WEEK: 21,
    Frequency.EVERY_5TH_WEEK: 35,
    Frequency.SIX_WEEKS: 42,
    Frequency.EIGHT_WEEKS: 56,
}

MONTH_STEPS = {
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 3,
    Frequency.SEMI_ANNUALLY: 6,
    Frequency.ANNUALLY: 12,
}

# Saturday, Sunday
_WEEKEND = (5, 6)


class RecurrenceError(ValueError):
    """Unknown frequency or twice-weekly mode."""


def add_months(anchor: date, months: int) -> date:
    """Calendar month arithmetic with the day clamped to the target month."""
    month_index = anchor.month - 1 + months
    year = anchor.year + month_index // 12
    month = month_index % 12 + 1
    day = min(anchor.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def _fixed_step(start: date, end: date, days: int) -> list[date]:
    dates = []
    current = start
    step = timedelta(days=days)
    while current <= end:
        dates.append(current)
        current += step
    return dates


def _weekdays(start: date, end: date) -> list[date]:
    dates = []
    current = start
    while current <= end:
        if current.weekday() not in _WEEKEND:
            dates.append(current)
        current += timedelta(days=1)
    return dates


def _twice_weekly(start: date, end: date, mode: str) -> list[date]:
    dates = []
    current = start
    gaps = (3, 4) if mode == TWICE_WEEKLY_ALTERNATE else (3,)
    for i in count():
        if current > end:
            break
        dates.append(current)
        current += timedelta(days=gaps[i % len(gaps)])
    return dates


def _by_months(start: date, end: date, months: int) -> list[date]:
    dates = []
    for k in count():
        current = add_months(start, k * months)
        if current > end:
            break
        dates.append(current)
    return dates


def generate_recurring_dates(
    start: date,
    end: date | None,
    frequency: Frequency | str,
    *,
    twice_weekly_mode: str = TWICE_WEEKLY_ALTERNATE,
) -> list[date]:
    """
    Expand a schedule into its delivery dates.

    Raises RecurrenceError for an unknown frequency or twice-weekly mode.
    """
    try:
        frequency = Frequency(frequency)
    except ValueError:
        raise RecurrenceError(f"Unknown frequency: {frequency}")

    if frequency is Frequency.ONE_TIME:
        return [start]

    if end is None or start > end:
        return []

    if frequency in FIXED_STEP_DAYS:
        return _fixed_step(start, end, FIXED_STEP_DAYS[frequency])

    if frequency is Frequency.WEEKDAYS:
        return _weekdays(start, end)

    if frequency is Frequency.TWICE_IN_A_WEEK:
        if twice_weekly_mode not in TWICE_WEEKLY_MODES:
            raise RecurrenceError(f"Unknown twice-weekly mode: {twice_weekly_mode}")
        return _twice_weekly(start, end, twice_weekly_mode)

    return _by_months(start, end, MONTH_STEPS[frequency])
