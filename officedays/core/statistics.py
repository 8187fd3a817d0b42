"""Office-day statistics — pure business logic.

Aggregates office-day dates into PeriodStats for a month, quarter, year
or custom range.

Membership of an office day in a period is decided by the UTC calendar
components of each value (aware datetimes are converted to UTC, naive
datetimes and dates are read as UTC), while working days are counted over
the resolved calendar range. Callers that hold local-midnight datetimes
should convert them with event_normalizer.office_day_dates first.

No I/O: this module only transforms data.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime

from officedays.core.periods import resolve_month, resolve_quarter, resolve_year
from officedays.core.quarter_config import QuarterConfig
from officedays.core.working_days import count_working_days, to_utc_date
from officedays.data.models import PeriodRange, PeriodStats, SelectedPeriod

OfficeDay = date | datetime


def attendance_percentage(office_days: int, working_days: int) -> int:
    """Office days as a whole percentage of working days, rounded half up.

    0 when there are no working days. May exceed 100 when office days were
    logged on weekends.
    """
    if working_days <= 0:
        return 0
    return (200 * office_days + working_days) // (2 * working_days)


def _build_stats(period: PeriodRange, office_count: int) -> PeriodStats:
    working_days = count_working_days(period.start, period.end)
    return PeriodStats(
        working_days=working_days,
        office_days=office_count,
        percentage=attendance_percentage(office_count, working_days),
        period=period.label,
    )


def calculate_month_stats(
    year: int, month: int, office_days: Iterable[OfficeDay]
) -> PeriodStats:
    period = resolve_month(year, month)
    count = 0
    for value in office_days:
        day = to_utc_date(value)
        if day.year == year and day.month - 1 == month:
            count += 1
    return _build_stats(period, count)


def calculate_quarter_stats(
    year: int,
    quarter: str,
    office_days: Iterable[OfficeDay],
    config: QuarterConfig,
) -> PeriodStats:
    """Stats for a quarter under the given month mapping.

    Raises InvalidQuarterConfiguration rather than returning zeroed stats
    when the quarter cannot be resolved.
    """
    period = resolve_quarter(year, quarter, config)
    months = set(config.months_for(quarter))
    count = 0
    for value in office_days:
        day = to_utc_date(value)
        if day.year == year and day.month - 1 in months:
            count += 1
    return _build_stats(period, count)


def calculate_year_stats(year: int, office_days: Iterable[OfficeDay]) -> PeriodStats:
    period = resolve_year(year)
    count = sum(1 for value in office_days if to_utc_date(value).year == year)
    return _build_stats(period, count)


def calculate_period_stats(
    selection: SelectedPeriod,
    office_days: Iterable[OfficeDay],
    config: QuarterConfig,
) -> PeriodStats:
    """Dispatch on the selected period kind."""
    if selection.kind == "month":
        if selection.month is None:
            raise ValueError("A month selection needs a month index")
        return calculate_month_stats(selection.year, selection.month, office_days)
    if selection.kind == "quarter":
        return calculate_quarter_stats(
            selection.year, selection.quarter or "", office_days, config
        )
    if selection.kind == "year":
        return calculate_year_stats(selection.year, office_days)
    raise ValueError(f"Unknown period kind: {selection.kind!r}")


def _short_label(day: date) -> str:
    return f"{day:%b} {day.day}"


def calculate_custom_period_stats(
    start: OfficeDay, end: OfficeDay, office_days: Iterable[OfficeDay]
) -> PeriodStats:
    """Stats for an arbitrary inclusive range, e.g. "Jan 1 - Mar 31, 2024"."""
    first = to_utc_date(start)
    last = to_utc_date(end)
    count = sum(1 for value in office_days if first <= to_utc_date(value) <= last)
    label = f"{_short_label(first)} - {_short_label(last)}, {last.year}"
    return _build_stats(PeriodRange(start=first, end=last, label=label), count)


def get_available_years(office_days: Iterable[OfficeDay]) -> list[int]:
    """Distinct years with at least one office day, most recent first."""
    return sorted({to_utc_date(value).year for value in office_days}, reverse=True)


def get_available_months(year: int, office_days: Iterable[OfficeDay]) -> list[int]:
    """Distinct 0-based months of `year` with at least one office day."""
    months = set()
    for value in office_days:
        day = to_utc_date(value)
        if day.year == year:
            months.add(day.month - 1)
    return sorted(months)
