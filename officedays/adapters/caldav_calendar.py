"""CalDAV calendar adapter — implements CalendarGateway for CalDAV servers.

Supports iCloud, Nextcloud, Fastmail, and any CalDAV-compliant server.
Uses the caldav library (sync) wrapped with asyncio.to_thread for async
compatibility.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import date, datetime, timezone

import caldav
from caldav.lib.error import AuthorizationError, NotFoundError
from icalendar import Calendar as iCalendar
from icalendar import Event as iEvent

from officedays.config import settings
from officedays.data.models import CalendarEvent, CalendarInfo, EventDetails
from officedays.ports.calendar_port import CalendarError, PermissionStatus

logger = logging.getLogger(__name__)


def _get_client() -> caldav.DAVClient:
    return caldav.DAVClient(
        url=settings.CALDAV_URL,
        username=settings.CALDAV_USERNAME,
        password=settings.CALDAV_PASSWORD,
    )


def _list_calendars() -> list[caldav.Calendar]:
    """Connect to the CalDAV server and return every calendar of the principal."""
    return _get_client().principal().calendars()


def _get_calendar(calendar_id: str) -> caldav.Calendar:
    return _get_client().calendar(url=calendar_id)


def _build_vevent(details: EventDetails, uid: str | None = None) -> str:
    """Build an iCalendar VEVENT string.

    All-day events are written with VALUE=DATE boundaries taken from the
    UTC calendar day of details.start / details.end.
    """
    cal = iCalendar()
    cal.add("prodid", "-//Office Day Tracker//EN")
    cal.add("version", "2.0")

    event = iEvent()
    event.add("uid", uid or str(uuid.uuid4()))
    event.add("summary", details.title)
    if details.all_day:
        event.add("dtstart", details.start.astimezone(timezone.utc).date())
        event.add("dtend", details.end.astimezone(timezone.utc).date())
    else:
        event.add("dtstart", details.start)
        event.add("dtend", details.end)
    if details.location:
        event.add("location", details.location)
    if details.notes:
        event.add("description", details.notes)
    event.add("transp", "OPAQUE" if details.availability == "busy" else "TRANSPARENT")
    if details.recurrence_rule:
        parts = {}
        for part in details.recurrence_rule.split(";"):
            key, _, value = part.partition("=")
            parts[key] = value
        event.add("rrule", parts)

    cal.add_component(event)
    return cal.to_ical().decode("utf-8")


def _to_datetime(value: date | datetime) -> tuple[datetime, bool, str | None]:
    """Return (start, all_day, declared time zone) for a DTSTART/DTEND value."""
    if not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc), True, "UTC"
    if value.tzinfo is None:
        return value, False, None
    return value, False, str(value.tzinfo)


def _parse_vevent(event_data: caldav.Event) -> CalendarEvent | None:
    """Parse a CalDAV event into a CalendarEvent, None when unreadable."""
    try:
        cal = iCalendar.from_ical(event_data.data)
    except Exception as exc:
        logger.warning("Skipping unparseable CalDAV event: %s", exc)
        return None

    for component in cal.walk():
        if component.name != "VEVENT":
            continue
        dtstart = component.get("dtstart")
        if dtstart is None:
            return None
        start, all_day, tz_name = _to_datetime(dtstart.dt)
        dtend = component.get("dtend")
        end = _to_datetime(dtend.dt)[0] if dtend is not None else start

        return CalendarEvent(
            id=str(component.get("uid", "")),
            title=str(component.get("summary", "")),
            start=start,
            end=end,
            all_day=all_day,
            time_zone=tz_name,
            location=str(component.get("location", "")) or None,
            notes=str(component.get("description", "")) or None,
        )
    return None


class CalDAVCalendarAdapter:
    """CalDAV implementation of CalendarGateway.

    Calendar ids are the calendar URLs. The calendar named by
    CALDAV_CALENDAR_NAME is reported as primary.
    """

    async def list_calendars(self, entity_kind: str = "event") -> list[CalendarInfo]:
        try:
            calendars = await asyncio.to_thread(_list_calendars)
        except Exception as exc:
            logger.error("CalDAV error (list_calendars): %s", exc)
            raise CalendarError(f"Failed to list calendars: {exc}") from exc

        infos = [
            CalendarInfo(
                id=str(cal.url),
                name=cal.name or "",
                is_primary=bool(settings.CALDAV_CALENDAR_NAME)
                and cal.name == settings.CALDAV_CALENDAR_NAME,
            )
            for cal in calendars
        ]
        logger.info("Found %d CalDAV calendar(s)", len(infos))
        return infos

    async def create_event(self, calendar_id: str, details: EventDetails) -> str:
        uid = str(uuid.uuid4())
        vcal = _build_vevent(details, uid=uid)
        try:
            cal = await asyncio.to_thread(_get_calendar, calendar_id)
            await asyncio.to_thread(cal.save_event, vcal)
        except Exception as exc:
            logger.error("CalDAV error (create_event): %s", exc)
            raise CalendarError(f"Failed to create event: {exc}") from exc

        logger.info(
            "CalDAV event created: '%s' on %s", details.title, details.start.date().isoformat()
        )
        return uid

    async def query_events(
        self, calendar_ids: list[str], start: datetime, end: datetime
    ) -> list[CalendarEvent]:
        events: list[CalendarEvent] = []
        try:
            for calendar_id in calendar_ids:
                cal = await asyncio.to_thread(_get_calendar, calendar_id)
                results = await asyncio.to_thread(
                    cal.search, start=start, end=end, event=True, expand=True
                )
                for ev in results:
                    parsed = _parse_vevent(ev)
                    if parsed is not None:
                        events.append(parsed)
        except Exception as exc:
            logger.error("CalDAV error (query_events): %s", exc)
            raise CalendarError(f"Failed to query events: {exc}") from exc

        logger.info(
            "Found %d CalDAV event(s) between %s and %s",
            len(events),
            start.isoformat(),
            end.isoformat(),
        )
        return events

    async def delete_event(self, event_id: str, calendar_id: str | None = None) -> None:
        try:
            if calendar_id is not None:
                calendars = [await asyncio.to_thread(_get_calendar, calendar_id)]
            else:
                calendars = await asyncio.to_thread(_list_calendars)

            for cal in calendars:
                try:
                    ev = await asyncio.to_thread(cal.event_by_uid, event_id)
                except NotFoundError:
                    continue
                await asyncio.to_thread(ev.delete)
                logger.info("CalDAV event %s deleted.", event_id)
                return

            raise CalendarError(f"Event with UID {event_id} not found.")
        except CalendarError:
            raise
        except Exception as exc:
            logger.error("CalDAV error (delete_event): %s", exc)
            raise CalendarError(f"Failed to delete event: {exc}") from exc

    async def get_permission_status(self) -> PermissionStatus:
        if not settings.CALDAV_URL:
            return "undetermined"
        try:
            await asyncio.to_thread(lambda: _get_client().principal())
        except AuthorizationError as exc:
            logger.warning("CalDAV authorization refused: %s", exc)
            return "denied"
        except Exception as exc:
            logger.error("CalDAV error (get_permission_status): %s", exc)
            raise CalendarError(f"Failed to reach CalDAV server: {exc}") from exc
        return "granted"
