"""Tests for OfficeDayService against a mocked CalendarGateway."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from officedays.core.errors import (
    CalendarInitializationError,
    EventCreationFailed,
    EventDeletionFailed,
    NoCalendarAvailable,
)
from officedays.core.office_day_service import (
    CalendarSession,
    OfficeDayService,
    select_calendar,
    utc_day_bounds,
)
from officedays.data.models import CalendarInfo
from officedays.ports.calendar_port import CalendarError

NEW_YORK = ZoneInfo("America/New_York")


@pytest.fixture
def service(gateway):
    return OfficeDayService(gateway, NEW_YORK)


class TestHelpers:
    def test_select_primary(self, calendars):
        assert select_calendar(calendars).id == "cal-home"

    def test_select_first_without_primary(self):
        cals = [CalendarInfo(id="a"), CalendarInfo(id="b")]
        assert select_calendar(cals).id == "a"

    def test_select_none(self):
        assert select_calendar([]) is None

    def test_utc_day_bounds(self):
        start, end = utc_day_bounds(date(2024, 12, 31))
        assert start == datetime(2024, 12, 31, tzinfo=timezone.utc)
        assert end == datetime(2025, 1, 1, tzinfo=timezone.utc)


class TestInitialize:
    @pytest.mark.asyncio
    async def test_picks_primary(self, service, gateway):
        session = await service.initialize()
        assert session.calendar_id == "cal-home"
        gateway.list_calendars.assert_awaited_once_with("event")

    @pytest.mark.asyncio
    async def test_no_calendars_is_not_an_error(self, service, gateway):
        gateway.list_calendars.return_value = []
        session = await service.initialize()
        assert session.calendar_id is None

    @pytest.mark.asyncio
    async def test_listing_failure(self, service, gateway):
        gateway.list_calendars.side_effect = CalendarError("boom")
        with pytest.raises(CalendarInitializationError, match="Failed to initialize"):
            await service.initialize()

    @pytest.mark.asyncio
    async def test_lists_on_every_call(self, service, gateway):
        first = await service.initialize()
        second = await service.initialize()
        assert first.calendar_id == second.calendar_id
        assert gateway.list_calendars.await_count == 2


class TestLogOfficeDay:
    @pytest.mark.asyncio
    async def test_creates_all_day_utc_event(self, service, gateway):
        session = CalendarSession(calendar_id="cal-home")
        event_id = await service.log_office_day(date(2024, 1, 15), session)

        assert event_id == "evt-1"
        calendar_id, details = gateway.create_event.await_args.args
        assert calendar_id == "cal-home"
        assert details.title == "Office Day"
        assert details.start == datetime(2024, 1, 15, tzinfo=timezone.utc)
        assert details.end == datetime(2024, 1, 16, tzinfo=timezone.utc)
        assert details.all_day is True
        assert details.time_zone == "UTC"
        assert details.location == "Office"
        assert details.availability == "busy"
        assert details.alarms == []
        assert details.recurrence_rule is None
        gateway.list_calendars.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_initializes_without_session(self, service, gateway):
        await service.log_office_day(date(2024, 1, 15))
        gateway.list_calendars.assert_awaited_once()
        assert gateway.create_event.await_args.args[0] == "cal-home"

    @pytest.mark.asyncio
    async def test_defaults_to_today(self, service, gateway, monkeypatch):
        monkeypatch.setattr(service, "today", lambda: date(2025, 8, 4))
        await service.log_office_day(session=CalendarSession(calendar_id="cal-home"))
        details = gateway.create_event.await_args.args[1]
        assert details.start == datetime(2025, 8, 4, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_no_calendar(self, service, gateway):
        gateway.list_calendars.return_value = []
        with pytest.raises(NoCalendarAvailable):
            await service.log_office_day(date(2024, 1, 15))
        gateway.create_event.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_creation_failure(self, service, gateway):
        gateway.create_event.side_effect = CalendarError("rejected")
        with pytest.raises(EventCreationFailed) as exc_info:
            await service.log_office_day(date(2024, 1, 15))
        assert isinstance(exc_info.value.__cause__, CalendarError)


class TestHasOfficeDayToday:
    @pytest.mark.asyncio
    async def test_true_when_logged(self, service, gateway, office_event):
        gateway.query_events.return_value = [office_event("e", 2025, 8, 4)]
        assert await service.has_office_day_today(today=date(2025, 8, 4)) is True

    @pytest.mark.asyncio
    async def test_ignores_other_events(self, service, gateway, office_event):
        gateway.query_events.return_value = [
            office_event("e1", 2025, 8, 4, title="Standup"),
            office_event("e2", 2025, 8, 4, all_day=False),
        ]
        assert await service.has_office_day_today(today=date(2025, 8, 4)) is False

    @pytest.mark.asyncio
    async def test_local_window(self, service, gateway):
        await service.has_office_day_today(today=date(2025, 8, 4))
        calendar_ids, start, end = gateway.query_events.await_args.args
        assert calendar_ids == ["cal-home"]
        assert start == datetime(2025, 8, 4, tzinfo=NEW_YORK)
        assert end == datetime(2025, 8, 5, tzinfo=NEW_YORK)

    @pytest.mark.asyncio
    async def test_utc_window(self, service, gateway):
        await service.has_office_day_today(today=date(2025, 8, 4), basis="utc")
        _, start, end = gateway.query_events.await_args.args
        assert start == datetime(2025, 8, 4, tzinfo=timezone.utc)
        assert end == datetime(2025, 8, 5, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_query_failure_is_false(self, service, gateway):
        gateway.query_events.side_effect = CalendarError("offline")
        assert await service.has_office_day_today(today=date(2025, 8, 4)) is False

    @pytest.mark.asyncio
    async def test_init_failure_is_false(self, service, gateway):
        gateway.list_calendars.side_effect = CalendarError("offline")
        assert await service.has_office_day_today() is False

    @pytest.mark.asyncio
    async def test_no_calendar_is_false(self, service, gateway):
        gateway.list_calendars.return_value = []
        assert await service.has_office_day_today() is False
        gateway.query_events.assert_not_awaited()


class TestDeleteOfficeDay:
    @pytest.mark.asyncio
    async def test_deletes_in_session_calendar(self, service, gateway):
        session = CalendarSession(calendar_id="cal-home")
        await service.delete_office_day("evt-9", date(2025, 8, 4), session)
        gateway.delete_event.assert_awaited_once_with("evt-9", calendar_id="cal-home")

    @pytest.mark.asyncio
    async def test_without_session(self, service, gateway):
        await service.delete_office_day("evt-9")
        gateway.delete_event.assert_awaited_once_with("evt-9", calendar_id=None)

    @pytest.mark.asyncio
    async def test_failure(self, service, gateway):
        gateway.delete_event.side_effect = CalendarError("gone")
        with pytest.raises(EventDeletionFailed, match="Failed to delete office day"):
            await service.delete_office_day("evt-9")


class TestHasPermissions:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status, expected",
        [("granted", True), ("denied", False), ("undetermined", False)],
    )
    async def test_status(self, service, gateway, status, expected):
        gateway.get_permission_status.return_value = status
        assert await service.has_permissions() is expected

    @pytest.mark.asyncio
    async def test_failure_is_false(self, service, gateway):
        gateway.get_permission_status.side_effect = CalendarError("offline")
        assert await service.has_permissions() is False


class TestLoadOfficeDays:
    @pytest.mark.asyncio
    async def test_window(self, service, gateway):
        await service.load_office_days(today=date(2025, 8, 4))
        calendar_ids, start, end = gateway.query_events.await_args.args
        assert calendar_ids == ["cal-home"]
        assert start == datetime(2025, 2, 4, tzinfo=NEW_YORK)
        assert end == datetime(2025, 8, 5, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_window_clamps_month_end(self, service, gateway):
        await service.load_office_days(today=date(2025, 8, 31))
        start = gateway.query_events.await_args.args[1]
        assert start.date() == date(2025, 2, 28)

    @pytest.mark.asyncio
    async def test_window_crosses_year(self, service, gateway):
        await service.load_office_days(months=3, today=date(2025, 2, 15))
        start = gateway.query_events.await_args.args[1]
        assert start.date() == date(2024, 11, 15)

    @pytest.mark.asyncio
    async def test_returns_normalized_records(self, service, gateway, office_event):
        gateway.query_events.return_value = [
            office_event("old", 2025, 7, 1),
            office_event("new", 2025, 8, 4),
            office_event("other", 2025, 8, 1, title="Dentist"),
        ]
        records = await service.load_office_days(today=date(2025, 8, 4))
        assert [r.id for r in records] == ["new", "old"]
        assert records[0].start_date == datetime(2025, 8, 4, tzinfo=NEW_YORK)

    @pytest.mark.asyncio
    async def test_no_calendar(self, service, gateway):
        gateway.list_calendars.return_value = []
        assert await service.load_office_days() == []
        gateway.query_events.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_query_failure_propagates(self, service, gateway):
        gateway.query_events.side_effect = CalendarError("offline")
        with pytest.raises(CalendarError):
            await service.load_office_days(today=date(2025, 8, 4))

    @pytest.mark.asyncio
    async def test_explicit_range(self, gateway, stored_events, office_event):
        tokyo = ZoneInfo("Asia/Tokyo")
        service = OfficeDayService(gateway, tokyo)
        stored_events.extend([
            office_event("eve", 2024, 12, 31),
            office_event("first", 2025, 1, 1),
            office_event("last", 2025, 12, 31),
        ])
        records = await service.load_office_days(
            start=date(2025, 1, 1), end=date(2025, 12, 31)
        )

        assert [r.id for r in records] == ["last", "first"]
        _, start, end = gateway.query_events.await_args.args
        assert start == datetime(2025, 1, 1, tzinfo=tokyo)
        assert end == datetime(2026, 1, 1, tzinfo=timezone.utc)
