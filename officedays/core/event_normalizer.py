"""Calendar event normalizer — raw calendar events to office-day records.

Office days are stored as all-day events from UTC midnight to the next
UTC midnight. Read back naively, "2025-08-04T00:00:00Z" shows up as
August 3 anywhere west of Greenwich. Each raw event's start is classified
by the time zone the calendar declared for it, and one pure converter per
case turns it into local midnight of the intended calendar day.

No I/O: this module only transforms data.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo

from officedays.data.models import OFFICE_DAY_TITLE, CalendarEvent, OfficeDayEvent

_UTC_NAMES = frozenset({"UTC", "Etc/UTC"})


# ---------------------------------------------------------------------------
# Start-time variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UtcDeclared:
    """The calendar declared the event in UTC (what this app writes)."""

    start: datetime


@dataclass(frozen=True)
class OtherZoneDeclared:
    """The calendar declared some other zone and normalized the instant."""

    start: datetime
    zone: str


@dataclass(frozen=True)
class NoneDeclared:
    """No zone declared; the start is taken as-is."""

    start: datetime


StartVariant = UtcDeclared | OtherZoneDeclared | NoneDeclared


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _from_utc_declared(variant: UtcDeclared, local_tz: tzinfo) -> datetime:
    # Same Y/M/D as the UTC value, but as local midnight.
    utc_start = _as_utc(variant.start)
    return datetime(utc_start.year, utc_start.month, utc_start.day, tzinfo=local_tz)


def _from_other_zone(variant: OtherZoneDeclared, local_tz: tzinfo) -> datetime:
    # Shift by the local offset so local wall clock reads the UTC wall clock.
    instant = _as_utc(variant.start)
    offset = instant.astimezone(local_tz).utcoffset()
    return (instant - offset).astimezone(local_tz)


def _from_none_declared(variant: NoneDeclared, local_tz: tzinfo) -> datetime:
    if variant.start.tzinfo is None:
        return variant.start.replace(tzinfo=local_tz)
    return variant.start.astimezone(local_tz)


_CONVERTERS: dict[type, Callable[..., datetime]] = {
    UtcDeclared: _from_utc_declared,
    OtherZoneDeclared: _from_other_zone,
    NoneDeclared: _from_none_declared,
}


def classify_start(event: CalendarEvent) -> StartVariant:
    if event.time_zone in _UTC_NAMES:
        return UtcDeclared(event.start)
    if event.time_zone:
        return OtherZoneDeclared(event.start, event.time_zone)
    return NoneDeclared(event.start)


def normalize_start(variant: StartVariant, local_tz: tzinfo) -> datetime:
    """Local datetime for the calendar day the event was meant for."""
    return _CONVERTERS[type(variant)](variant, local_tz)


# ---------------------------------------------------------------------------
# Office-day records
# ---------------------------------------------------------------------------


def is_office_day_event(event: CalendarEvent) -> bool:
    return event.title == OFFICE_DAY_TITLE and event.all_day is True


def normalize_event(event: CalendarEvent, local_tz: tzinfo) -> OfficeDayEvent:
    return OfficeDayEvent(
        id=event.id,
        title=event.title,
        start_date=normalize_start(classify_start(event), local_tz),
        end_date=event.end,
    )


def normalize_events(
    events: Iterable[CalendarEvent], local_tz: tzinfo
) -> list[OfficeDayEvent]:
    """Keep Office Day all-day events, normalized, most recent first."""
    records = [normalize_event(ev, local_tz) for ev in events if is_office_day_event(ev)]
    records.sort(key=lambda rec: rec.start_date, reverse=True)
    return records


def office_day_dates(records: Iterable[OfficeDayEvent]) -> list[datetime]:
    """UTC midnight of each record's local calendar day.

    The statistics functions compare UTC calendar components. Passing
    local-midnight datetimes from a zone east of UTC would move every
    office day to the previous UTC day, so the local day is re-expressed
    at UTC midnight here.
    """
    return [
        datetime(rec.start_date.year, rec.start_date.month, rec.start_date.day,
                 tzinfo=timezone.utc)
        for rec in records
    ]


def find_duplicate_days(records: Iterable[OfficeDayEvent]) -> set[date]:
    """Local calendar days that carry more than one office-day entry."""
    counts = Counter(rec.start_date.date() for rec in records)
    return {day for day, n in counts.items() if n > 1}
