"""Shared test fixtures and configuration.

Sets up fake environment variables so officedays.config doesn't sys.exit(),
and provides a mocked calendar gateway.
"""

import os

# Patch env vars BEFORE any officedays imports
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ.setdefault("ALLOWED_USER_IDS", "12345")
os.environ.setdefault("CALENDAR_PROVIDER", "caldav")
os.environ.setdefault("TIMEZONE", "UTC")
os.environ.setdefault("REMINDER_ENABLED", "false")

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from officedays.data.models import CalendarEvent, CalendarInfo


def make_office_event(
    event_id: str,
    year: int,
    month: int,
    day: int,
    title: str = "Office Day",
    all_day: bool = True,
    time_zone: str | None = "UTC",
) -> CalendarEvent:
    """An event as this app writes it: UTC midnight to next UTC midnight."""
    start = datetime(year, month, day, tzinfo=timezone.utc)
    return CalendarEvent(
        id=event_id,
        title=title,
        start=start,
        end=start + timedelta(days=1),
        all_day=all_day,
        time_zone=time_zone,
    )


@pytest.fixture
def calendars():
    return [
        CalendarInfo(id="cal-work", name="Work", is_primary=False),
        CalendarInfo(id="cal-home", name="Home", is_primary=True),
    ]


@pytest.fixture
def gateway(calendars):
    """A CalendarGateway double with every operation as an AsyncMock."""
    gw = MagicMock()
    gw.list_calendars = AsyncMock(return_value=calendars)
    gw.create_event = AsyncMock(return_value="evt-1")
    gw.query_events = AsyncMock(return_value=[])
    gw.delete_event = AsyncMock(return_value=None)
    gw.get_permission_status = AsyncMock(return_value="granted")
    return gw


@pytest.fixture
def office_event():
    """Factory for Office Day events, see make_office_event."""
    return make_office_event


@pytest.fixture
def stored_events(gateway):
    """Events held by the mocked calendar.

    query_events returns the stored events that overlap the window, as
    CalDAV time-range queries and Graph calendarView do.
    """
    events: list[CalendarEvent] = []

    async def _overlapping(calendar_ids, start, end):
        return [ev for ev in events if ev.start < end and ev.end > start]

    gateway.query_events.side_effect = _overlapping
    return events
