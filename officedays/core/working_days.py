"""Working-day counter — pure business logic.

A working day is any Monday–Friday calendar date; holidays are not
considered. Dates are compared by their UTC calendar day so that two
hosts in different time zones count the same range identically.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone


def to_utc_date(value: date | datetime) -> date:
    """Reduce a date or datetime to its UTC calendar date.

    Aware datetimes are converted to UTC first; naive datetimes are read
    as UTC wall-clock values.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def is_working_day(day: date) -> bool:
    return day.weekday() < 5  # Monday = 0, Friday = 4


def count_working_days(start: date | datetime, end: date | datetime) -> int:
    """Count Monday–Friday days between start and end, both inclusive.

    Returns 0 when start is after end.
    """
    current = to_utc_date(start)
    last = to_utc_date(end)

    days = 0
    while current <= last:
        if is_working_day(current):
            days += 1
        current += timedelta(days=1)
    return days
