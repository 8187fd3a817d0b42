"""
Office Day Tracker — Data Models.

The calendar store is the only source of truth for office days: nothing
here is persisted. Raw events come in from a CalendarGateway, are
normalized into OfficeDayEvent records, and are aggregated into
PeriodStats for display.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal

OFFICE_DAY_TITLE = "Office Day"
OFFICE_LOCATION = "Office"

PeriodKind = Literal["month", "quarter", "year"]


@dataclass
class CalendarInfo:
    """A calendar as listed by the provider."""

    id: str
    name: str = ""
    is_primary: bool = False


@dataclass
class CalendarEvent:
    """A raw event as returned by CalendarGateway.query_events.

    `time_zone` is whatever the provider declared for the start; None when
    it declared nothing.
    """

    id: str
    title: str
    start: datetime
    end: datetime
    all_day: bool = False
    time_zone: str | None = None
    location: str | None = None
    notes: str | None = None


@dataclass
class EventDetails:
    """Payload for CalendarGateway.create_event."""

    title: str
    start: datetime
    end: datetime
    all_day: bool = True
    time_zone: str = "UTC"
    location: str = OFFICE_LOCATION
    notes: str = ""
    availability: str = "busy"
    alarms: list[int] = field(default_factory=list)
    recurrence_rule: str | None = None


@dataclass
class OfficeDayEvent:
    """One logged office day, normalized to the local calendar day."""

    id: str
    title: str
    start_date: datetime   # local midnight of the office day
    end_date: datetime     # original end as stored by the calendar


@dataclass(frozen=True)
class PeriodStats:
    """Attendance figures for one period."""

    working_days: int
    office_days: int
    percentage: int
    period: str            # e.g. "August 2025", "Q1 2024", "2024"


@dataclass(frozen=True)
class PeriodRange:
    """Inclusive calendar range of a resolved period."""

    start: date
    end: date
    label: str


@dataclass(frozen=True)
class SelectedPeriod:
    """Which period the user is looking at. Transient, never stored."""

    kind: PeriodKind
    year: int
    month: int | None = None      # 0-11, for kind == "month"
    quarter: str | None = None    # "Q1".."Q4", for kind == "quarter"
