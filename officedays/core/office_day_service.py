"""
Office Day Tracker — Office-day service.

Orchestrates the calendar gateway: picks the active calendar, logs an
office day, checks whether today is logged, deletes entries and loads the
recent history for the statistics screens.

The active calendar is carried in an explicit CalendarSession returned by
initialize() and passed back into later calls; the service itself holds
no per-user state. It also holds no cache: after log or delete, callers
reload with load_office_days() before recomputing statistics.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import TYPE_CHECKING, Literal

from officedays.core.errors import (
    CalendarInitializationError,
    EventCreationFailed,
    EventDeletionFailed,
    NoCalendarAvailable,
)
from officedays.core.event_normalizer import is_office_day_event, normalize_events
from officedays.data.models import (
    OFFICE_DAY_TITLE,
    OFFICE_LOCATION,
    CalendarInfo,
    EventDetails,
    OfficeDayEvent,
)

if TYPE_CHECKING:
    from officedays.ports.calendar_port import CalendarGateway

logger = logging.getLogger(__name__)

_NOTES = "Logged via Office Day Tracker"


@dataclass
class CalendarSession:
    """The calendar chosen by initialize(); None when the user has none."""

    calendar_id: str | None
    calendars: list[CalendarInfo] = field(default_factory=list)


def select_calendar(calendars: list[CalendarInfo]) -> CalendarInfo | None:
    """Primary calendar, else the first one, else None."""
    for cal in calendars:
        if cal.is_primary:
            return cal
    return calendars[0] if calendars else None


def utc_day_bounds(day: date) -> tuple[datetime, datetime]:
    """UTC midnight of `day` and of the following day."""
    start = datetime.combine(day, time(), tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def _months_back(day: date, months: int) -> date:
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    last = calendar.monthrange(year, month + 1)[1]
    return date(year, month + 1, min(day.day, last))


class OfficeDayService:
    """Office-day operations over a CalendarGateway.

    Args:
        gateway: Calendar provider implementation.
        local_tz: The user's local zone; decides what "today" is and how
                  UTC-stored events map onto local calendar days.
    """

    def __init__(self, gateway: CalendarGateway, local_tz: tzinfo = timezone.utc) -> None:
        self._gateway = gateway
        self._tz = local_tz

    def today(self) -> date:
        return datetime.now(self._tz).date()

    async def initialize(self) -> CalendarSession:
        """List calendars and pick the active one. Lists on every call."""
        try:
            calendars = await self._gateway.list_calendars("event")
        except Exception as exc:
            logger.error("Error initializing calendar service: %s", exc)
            raise CalendarInitializationError(
                "Failed to initialize calendar service"
            ) from exc

        chosen = select_calendar(calendars)
        if chosen is None:
            logger.warning("No calendars available")
            return CalendarSession(calendar_id=None, calendars=calendars)

        logger.info(
            "Active calendar: %s (%s)",
            chosen.id,
            "primary" if chosen.is_primary else "first available",
        )
        return CalendarSession(calendar_id=chosen.id, calendars=calendars)

    async def _ensure_session(self, session: CalendarSession | None) -> CalendarSession:
        if session is None or session.calendar_id is None:
            session = await self.initialize()
        return session

    async def log_office_day(
        self, day: date | None = None, session: CalendarSession | None = None
    ) -> str:
        """Create the all-day Office Day event for `day` (default: today).

        Returns the id the calendar assigned to the new event.
        """
        session = await self._ensure_session(session)
        if session.calendar_id is None:
            raise NoCalendarAvailable("No calendar available")

        if day is None:
            day = self.today()
        start, end = utc_day_bounds(day)
        details = EventDetails(
            title=OFFICE_DAY_TITLE,
            start=start,
            end=end,
            all_day=True,
            time_zone="UTC",
            location=OFFICE_LOCATION,
            notes=_NOTES,
            availability="busy",
            alarms=[],
            recurrence_rule=None,
        )

        try:
            event_id = await self._gateway.create_event(session.calendar_id, details)
        except Exception as exc:
            logger.error("Error logging office day for %s: %s", day, exc)
            raise EventCreationFailed("Failed to log office day to calendar") from exc

        logger.info("Office day logged for %s (event %s)", day.isoformat(), event_id)
        return event_id

    async def has_office_day_today(
        self,
        session: CalendarSession | None = None,
        *,
        today: date | None = None,
        basis: Literal["local", "utc"] = "local",
    ) -> bool:
        """True iff an Office Day all-day event exists today.

        `basis` picks the query window: today's local day or today's UTC
        day. Entries written by log_office_day span exactly the UTC day of
        their local date, so outside UTC only `basis="utc"` avoids matching
        yesterday's or tomorrow's entry. Any failure is logged and reported
        as False.
        """
        try:
            session = await self._ensure_session(session)
            if session.calendar_id is None:
                return False

            if today is None:
                today = self.today()
            if basis == "utc":
                start, end = utc_day_bounds(today)
            else:
                start = datetime.combine(today, time(), tzinfo=self._tz)
                end = datetime.combine(today + timedelta(days=1), time(), tzinfo=self._tz)

            events = await self._gateway.query_events([session.calendar_id], start, end)
            return any(is_office_day_event(ev) for ev in events)
        except Exception as exc:
            logger.error("Error checking office day today: %s", exc)
            return False

    async def delete_office_day(
        self,
        event_id: str,
        day: date | None = None,
        session: CalendarSession | None = None,
    ) -> None:
        """Delete one office-day event. Callers reload their lists afterwards."""
        calendar_id = session.calendar_id if session is not None else None
        try:
            await self._gateway.delete_event(event_id, calendar_id=calendar_id)
        except Exception as exc:
            logger.error("Error deleting office day %s: %s", event_id, exc)
            raise EventDeletionFailed("Failed to delete office day") from exc

        logger.info(
            "Office day %s deleted%s",
            event_id,
            f" ({day.isoformat()})" if day else "",
        )

    async def has_permissions(self) -> bool:
        try:
            status = await self._gateway.get_permission_status()
        except Exception as exc:
            logger.error("Error checking calendar permissions: %s", exc)
            return False
        return status == "granted"

    async def load_office_days(
        self,
        session: CalendarSession | None = None,
        *,
        months: int = 6,
        today: date | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[OfficeDayEvent]:
        """Office days between `start` and `end` (local dates, inclusive).

        Without `start` the range begins `months` months before today;
        without `end` it ends today. The query runs from local midnight of
        `start` to the end of `end`'s UTC day so that entries stored at UTC
        midnight are found in every zone; records whose local day falls
        outside the range are dropped. Most recent first. Returns [] when
        the user has no calendar; gateway failures propagate as CalendarError.
        """
        session = await self._ensure_session(session)
        if session.calendar_id is None:
            return []

        if today is None:
            today = self.today()
        if start is None:
            start = _months_back(today, months)
        if end is None:
            end = today
        window_start = datetime.combine(start, time(), tzinfo=self._tz)
        _, window_end = utc_day_bounds(end)

        events = await self._gateway.query_events(
            [session.calendar_id], window_start, window_end
        )
        records = [
            rec for rec in normalize_events(events, self._tz)
            if start <= rec.start_date.date() <= end
        ]
        logger.info(
            "Loaded %d office day(s) from %s to %s",
            len(records),
            start.isoformat(),
            end.isoformat(),
        )
        return records
