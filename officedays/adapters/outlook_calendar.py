"""Outlook calendar adapter — implements CalendarGateway for Microsoft Graph.

All Microsoft-specific logic lives here. The office-day service never
imports this directly; it depends on the CalendarGateway protocol.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from msgraph.generated.models.body_type import BodyType
from msgraph.generated.models.date_time_time_zone import DateTimeTimeZone
from msgraph.generated.models.event import Event
from msgraph.generated.models.free_busy_status import FreeBusyStatus
from msgraph.generated.models.item_body import ItemBody
from msgraph.generated.models.location import Location
from msgraph.generated.models.o_data_errors.o_data_error import ODataError
from msgraph.generated.users.item.calendars.item.calendar_view.calendar_view_request_builder import (
    CalendarViewRequestBuilder,
)

from officedays.data.models import CalendarEvent, CalendarInfo, EventDetails
from officedays.integrations.ms_auth import get_graph_client
from officedays.ports.calendar_port import CalendarError, PermissionStatus

logger = logging.getLogger(__name__)

_GRAPH_FORMAT = "%Y-%m-%dT%H:%M:%S"


def _graph_time(value: datetime, all_day: bool) -> DateTimeTimeZone:
    """Graph wants a wall-clock string plus a zone name; we always send UTC."""
    utc_value = value.astimezone(timezone.utc)
    if all_day:
        utc_value = utc_value.replace(hour=0, minute=0, second=0, microsecond=0)
    return DateTimeTimeZone(date_time=utc_value.strftime(_GRAPH_FORMAT), time_zone="UTC")


def _build_event(details: EventDetails) -> Event:
    return Event(
        subject=details.title,
        body=ItemBody(content=details.notes, content_type=BodyType.Text),
        start=_graph_time(details.start, details.all_day),
        end=_graph_time(details.end, details.all_day),
        is_all_day=details.all_day,
        location=Location(display_name=details.location) if details.location else None,
        show_as=FreeBusyStatus.Busy if details.availability == "busy" else FreeBusyStatus.Free,
        is_reminder_on=bool(details.alarms),
    )


def _parse_graph_time(raw: DateTimeTimeZone | None) -> datetime | None:
    """Parse Graph's "2025-08-04T00:00:00.0000000" (UTC, see Prefer header)."""
    if raw is None or not raw.date_time:
        return None
    wall = datetime.strptime(raw.date_time.split(".")[0], _GRAPH_FORMAT)
    return wall.replace(tzinfo=timezone.utc)


def _normalize_event(event: Event) -> CalendarEvent | None:
    """Convert a Graph Event into a CalendarEvent, None without a start."""
    start = _parse_graph_time(event.start)
    if start is None:
        return None
    end = _parse_graph_time(event.end) or start
    return CalendarEvent(
        id=event.id or "",
        title=event.subject or "",
        start=start,
        end=end,
        all_day=bool(event.is_all_day),
        time_zone=event.start.time_zone or None,
        location=event.location.display_name if event.location else None,
        notes=event.body.content if event.body else None,
    )


class OutlookCalendarAdapter:
    """Microsoft Outlook/365 implementation of CalendarGateway."""

    async def list_calendars(self, entity_kind: str = "event") -> list[CalendarInfo]:
        try:
            client = get_graph_client()
            result = await client.me.calendars.get()
        except Exception as exc:
            logger.error("Outlook API error (list_calendars): %s", exc)
            raise CalendarError(f"Failed to list calendars: {exc}") from exc

        calendars = [
            CalendarInfo(
                id=cal.id or "",
                name=cal.name or "",
                is_primary=bool(cal.is_default_calendar),
            )
            for cal in (result.value or [])
        ]
        logger.info("Found %d Outlook calendar(s)", len(calendars))
        return calendars

    async def create_event(self, calendar_id: str, details: EventDetails) -> str:
        event = _build_event(details)
        try:
            client = get_graph_client()
            created = await client.me.calendars.by_calendar_id(calendar_id).events.post(event)
        except Exception as exc:
            logger.error("Outlook API error (create_event): %s", exc)
            raise CalendarError(f"Failed to create event: {exc}") from exc

        logger.info(
            "Outlook event created: '%s' on %s",
            details.title,
            event.start.date_time,
        )
        return created.id or ""

    async def query_events(
        self, calendar_ids: list[str], start: datetime, end: datetime
    ) -> list[CalendarEvent]:
        query_params = CalendarViewRequestBuilder.CalendarViewRequestBuilderGetQueryParameters(
            start_date_time=start.astimezone(timezone.utc).strftime(_GRAPH_FORMAT) + "Z",
            end_date_time=end.astimezone(timezone.utc).strftime(_GRAPH_FORMAT) + "Z",
            orderby=["start/dateTime"],
            top=500,
        )
        config = CalendarViewRequestBuilder.CalendarViewRequestBuilderGetRequestConfiguration(
            query_parameters=query_params,
            headers={"Prefer": 'outlook.timezone="UTC"'},
        )

        events: list[CalendarEvent] = []
        try:
            client = get_graph_client()
            for calendar_id in calendar_ids:
                result = await client.me.calendars.by_calendar_id(
                    calendar_id
                ).calendar_view.get(request_configuration=config)
                for item in result.value or []:
                    parsed = _normalize_event(item)
                    if parsed is not None:
                        events.append(parsed)
        except Exception as exc:
            logger.error("Outlook API error (query_events): %s", exc)
            raise CalendarError(f"Failed to query events: {exc}") from exc

        logger.info(
            "Found %d Outlook event(s) between %s and %s",
            len(events),
            start.isoformat(),
            end.isoformat(),
        )
        return events

    async def delete_event(self, event_id: str, calendar_id: str | None = None) -> None:
        try:
            client = get_graph_client()
            await client.me.events.by_event_id(event_id).delete()
            logger.info("Outlook event %s deleted.", event_id)
        except Exception as exc:
            logger.error("Outlook API error (delete_event): %s", exc)
            raise CalendarError(f"Failed to delete event: {exc}") from exc

    async def get_permission_status(self) -> PermissionStatus:
        try:
            client = get_graph_client()
            await client.me.calendars.get()
        except ODataError as exc:
            if exc.response_status_code in (401, 403):
                logger.warning("Outlook calendar access refused: %s", exc)
                return "denied"
            logger.error("Outlook API error (get_permission_status): %s", exc)
            raise CalendarError(f"Failed to check Outlook access: {exc}") from exc
        except RuntimeError as exc:
            logger.warning("Outlook not configured: %s", exc)
            return "undetermined"
        return "granted"
