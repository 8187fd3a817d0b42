"""Google Calendar adapter — implements CalendarGateway for Google Calendar API.

All Google-specific logic lives here. The office-day service never imports
this directly; it depends on the CalendarGateway protocol.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timezone

from officedays.data.models import CalendarEvent, CalendarInfo, EventDetails
from officedays.integrations.google_auth import (
    SCOPES,
    get_calendar_service,
    load_stored_credentials,
)
from officedays.ports.calendar_port import CalendarError, PermissionStatus

logger = logging.getLogger(__name__)


def _build_event_body(details: EventDetails) -> dict:
    """Construct a Google Calendar API event body from EventDetails."""
    if details.all_day:
        start = {"date": details.start.astimezone(timezone.utc).date().isoformat()}
        end = {"date": details.end.astimezone(timezone.utc).date().isoformat()}
    else:
        start = {"dateTime": details.start.isoformat()}
        end = {"dateTime": details.end.isoformat()}
    start["timeZone"] = details.time_zone
    end["timeZone"] = details.time_zone

    body: dict = {
        "summary": details.title,
        "location": details.location,
        "description": details.notes,
        "start": start,
        "end": end,
        "transparency": "opaque" if details.availability == "busy" else "transparent",
        "reminders": {
            "useDefault": False,
            "overrides": [{"method": "popup", "minutes": m} for m in details.alarms],
        },
    }
    if details.recurrence_rule:
        body["recurrence"] = [f"RRULE:{details.recurrence_rule}"]
    return body


def _parse_boundary(raw: dict) -> tuple[datetime, bool, str | None]:
    """Return (value, all_day, declared time zone) for an event start/end.

    All-day boundaries ("date") become UTC midnight of that calendar day.
    """
    if "date" in raw:
        day = date.fromisoformat(raw["date"])
        return datetime(day.year, day.month, day.day, tzinfo=timezone.utc), True, "UTC"
    value = datetime.fromisoformat(raw["dateTime"].replace("Z", "+00:00"))
    return value, False, raw.get("timeZone")


def _parse_event(item: dict) -> CalendarEvent:
    start, all_day, tz_name = _parse_boundary(item.get("start", {}))
    end, _, _ = _parse_boundary(item.get("end", item.get("start", {})))
    return CalendarEvent(
        id=item.get("id", ""),
        title=item.get("summary", ""),
        start=start,
        end=end,
        all_day=all_day,
        time_zone=tz_name,
        location=item.get("location"),
        notes=item.get("description"),
    )


class GoogleCalendarAdapter:
    """Google Calendar implementation of CalendarGateway."""

    async def list_calendars(self, entity_kind: str = "event") -> list[CalendarInfo]:
        try:
            service = get_calendar_service()
            result = await asyncio.to_thread(service.calendarList().list().execute)
        except Exception as exc:
            logger.error("Google Calendar API error (list_calendars): %s", exc)
            raise CalendarError(f"Failed to list calendars: {exc}") from exc

        calendars = [
            CalendarInfo(
                id=item.get("id", ""),
                name=item.get("summary", ""),
                is_primary=bool(item.get("primary", False)),
            )
            for item in result.get("items", [])
        ]
        logger.info("Found %d Google calendar(s)", len(calendars))
        return calendars

    async def create_event(self, calendar_id: str, details: EventDetails) -> str:
        body = _build_event_body(details)
        try:
            service = get_calendar_service()
            created = await asyncio.to_thread(
                service.events().insert(calendarId=calendar_id, body=body).execute
            )
        except Exception as exc:
            logger.error("Google Calendar API error (create_event): %s", exc)
            raise CalendarError(f"Failed to create event: {exc}") from exc

        logger.info(
            "Event created: '%s' on %s — %s",
            details.title,
            body["start"].get("date", body["start"].get("dateTime")),
            created.get("htmlLink", ""),
        )
        return created.get("id", "")

    async def query_events(
        self, calendar_ids: list[str], start: datetime, end: datetime
    ) -> list[CalendarEvent]:
        events: list[CalendarEvent] = []
        try:
            service = get_calendar_service()
            for calendar_id in calendar_ids:
                page_token = None
                while True:
                    request = service.events().list(
                        calendarId=calendar_id,
                        timeMin=start.isoformat(),
                        timeMax=end.isoformat(),
                        singleEvents=True,
                        orderBy="startTime",
                        pageToken=page_token,
                    )
                    result = await asyncio.to_thread(request.execute)
                    events.extend(_parse_event(item) for item in result.get("items", []))
                    page_token = result.get("nextPageToken")
                    if not page_token:
                        break
        except Exception as exc:
            logger.error(
                "Failed to query events between %s and %s: %s",
                start.isoformat(),
                end.isoformat(),
                exc,
            )
            raise CalendarError(f"Failed to query events: {exc}") from exc

        logger.info(
            "Found %d event(s) between %s and %s",
            len(events),
            start.isoformat(),
            end.isoformat(),
        )
        return events

    async def delete_event(self, event_id: str, calendar_id: str | None = None) -> None:
        try:
            service = get_calendar_service()
            await asyncio.to_thread(
                service.events().delete(
                    calendarId=calendar_id or "primary", eventId=event_id
                ).execute
            )
            logger.info("Event with ID %s deleted successfully.", event_id)
        except Exception as exc:
            logger.error("Failed to delete event with ID %s: %s", event_id, exc)
            raise CalendarError(f"Failed to delete event: {exc}") from exc

    async def get_permission_status(self) -> PermissionStatus:
        creds = await asyncio.to_thread(load_stored_credentials)
        if creds is None:
            return "undetermined"
        if creds.scopes and not set(SCOPES).issubset(creds.scopes):
            return "denied"
        return "granted"