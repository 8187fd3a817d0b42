"""Period resolver — turns a month, quarter or year into a date range.

Ranges are local calendar dates, inclusive at both ends, and are
recomputed on every call.
"""

from __future__ import annotations

import calendar
from datetime import date

from officedays.core.errors import InvalidQuarterConfiguration
from officedays.core.quarter_config import QuarterConfig
from officedays.data.models import PeriodRange, SelectedPeriod


def _check_month(month: int) -> None:
    if not 0 <= month <= 11:
        raise ValueError(f"Month index must be between 0 and 11, got {month}")


def _last_day(year: int, month: int) -> date:
    """Last calendar day of a 0-based month."""
    return date(year, month + 1, calendar.monthrange(year, month + 1)[1])


def month_name(month: int) -> str:
    """Long English name for a 0-based month index ("January" for 0)."""
    _check_month(month)
    return calendar.month_name[month + 1]


def quarter_from_month(month: int, config: QuarterConfig) -> str:
    """Return the quarter label a month belongs to, or "Unknown"."""
    return config.quarter_for_month(month) or "Unknown"


def resolve_month(year: int, month: int) -> PeriodRange:
    _check_month(month)
    return PeriodRange(
        start=date(year, month + 1, 1),
        end=_last_day(year, month),
        label=f"{month_name(month)} {year}",
    )


def resolve_quarter(year: int, quarter: str, config: QuarterConfig) -> PeriodRange:
    """Range from day 1 of the quarter's first month to its last month's end.

    Raises InvalidQuarterConfiguration when the quarter has no months or
    when its months are not one contiguous block within the year (a set
    such as Nov, Dec, Jan cannot be expressed as a single range).
    """
    months = sorted(set(config.months_for(quarter)))
    if not months:
        raise InvalidQuarterConfiguration(quarter)

    first, last = months[0], months[-1]
    if last - first + 1 != len(months):
        raise InvalidQuarterConfiguration(
            quarter,
            f"Invalid quarter: {quarter} months {[m + 1 for m in months]} "
            "are not consecutive within one year",
        )

    return PeriodRange(
        start=date(year, first + 1, 1),
        end=_last_day(year, last),
        label=f"{quarter} {year}",
    )


def resolve_year(year: int) -> PeriodRange:
    return PeriodRange(start=date(year, 1, 1), end=date(year, 12, 31), label=str(year))


def resolve_period(selection: SelectedPeriod, config: QuarterConfig) -> PeriodRange:
    if selection.kind == "month":
        if selection.month is None:
            raise ValueError("A month selection needs a month index")
        return resolve_month(selection.year, selection.month)
    if selection.kind == "quarter":
        return resolve_quarter(selection.year, selection.quarter or "", config)
    if selection.kind == "year":
        return resolve_year(selection.year)
    raise ValueError(f"Unknown period kind: {selection.kind!r}")
