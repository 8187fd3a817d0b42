"""Tests for mapping raw calendar events onto local office days."""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from officedays.core.event_normalizer import (
    NoneDeclared,
    OtherZoneDeclared,
    UtcDeclared,
    classify_start,
    find_duplicate_days,
    is_office_day_event,
    normalize_event,
    normalize_events,
    normalize_start,
    office_day_dates,
)
from officedays.core.statistics import calculate_month_stats
from officedays.data.models import CalendarEvent

ZONES = [
    "America/Los_Angeles",
    "America/New_York",
    "Europe/London",
    "Asia/Tokyo",
    "Pacific/Kiritimati",  # UTC+14
    "Pacific/Pago_Pago",   # UTC-11
]


def _event(start, time_zone, title="Office Day", all_day=True):
    return CalendarEvent(
        id="e1", title=title, start=start, end=start + timedelta(days=1),
        all_day=all_day, time_zone=time_zone,
    )


class TestClassifyStart:
    @pytest.mark.parametrize("name", ["UTC", "Etc/UTC"])
    def test_utc_names(self, name):
        start = datetime(2025, 8, 4, tzinfo=timezone.utc)
        assert classify_start(_event(start, name)) == UtcDeclared(start)

    def test_other_zone(self):
        start = datetime(2025, 8, 4, tzinfo=timezone.utc)
        variant = classify_start(_event(start, "Europe/Berlin"))
        assert variant == OtherZoneDeclared(start, "Europe/Berlin")

    @pytest.mark.parametrize("name", [None, ""])
    def test_no_zone(self, name):
        start = datetime(2025, 8, 4, tzinfo=timezone.utc)
        assert isinstance(classify_start(_event(start, name)), NoneDeclared)


class TestNormalizeStart:
    @pytest.mark.parametrize("zone", ZONES)
    def test_utc_declared_keeps_calendar_day(self, zone):
        local_tz = ZoneInfo(zone)
        result = normalize_start(UtcDeclared(datetime(2025, 8, 4, tzinfo=timezone.utc)), local_tz)
        assert result == datetime(2025, 8, 4, tzinfo=local_tz)
        assert (result.hour, result.minute) == (0, 0)

    def test_utc_declared_naive_start(self):
        local_tz = ZoneInfo("America/New_York")
        result = normalize_start(UtcDeclared(datetime(2025, 8, 4)), local_tz)
        assert result.date() == date(2025, 8, 4)

    @pytest.mark.parametrize("zone", ["America/New_York", "Asia/Tokyo"])
    def test_other_zone_shifted_by_local_offset(self, zone):
        local_tz = ZoneInfo(zone)
        variant = OtherZoneDeclared(datetime(2025, 8, 4, tzinfo=timezone.utc), "Europe/Berlin")
        result = normalize_start(variant, local_tz)
        assert result.tzinfo is local_tz
        assert (result.date(), result.hour) == (date(2025, 8, 4), 0)

    def test_none_declared_same_instant(self):
        local_tz = ZoneInfo("America/New_York")
        start = datetime(2025, 8, 4, tzinfo=timezone.utc)
        result = normalize_start(NoneDeclared(start), local_tz)
        assert result == start
        assert result.date() == date(2025, 8, 3)

    def test_none_declared_naive_read_as_local(self):
        local_tz = ZoneInfo("Asia/Tokyo")
        result = normalize_start(NoneDeclared(datetime(2025, 8, 4, 9)), local_tz)
        assert result == datetime(2025, 8, 4, 9, tzinfo=local_tz)


class TestOfficeDayRecords:
    def test_is_office_day_event(self):
        start = datetime(2025, 8, 4, tzinfo=timezone.utc)
        assert is_office_day_event(_event(start, "UTC"))
        assert not is_office_day_event(_event(start, "UTC", title="Standup"))
        assert not is_office_day_event(_event(start, "UTC", all_day=False))

    def test_normalize_event_keeps_id_and_end(self, office_event):
        event = office_event("abc", 2025, 8, 4)
        record = normalize_event(event, ZoneInfo("America/Los_Angeles"))
        assert record.id == "abc"
        assert record.title == "Office Day"
        assert record.start_date.date() == date(2025, 8, 4)
        assert record.end_date == event.end

    def test_normalize_events_filters_and_sorts(self, office_event):
        events = [
            office_event("a", 2025, 8, 1),
            office_event("b", 2025, 8, 4),
            office_event("c", 2025, 8, 2, title="Lunch"),
            office_event("d", 2025, 8, 3, all_day=False),
        ]
        records = normalize_events(events, ZoneInfo("America/New_York"))
        assert [r.id for r in records] == ["b", "a"]

    def test_office_day_dates_counts_local_day(self, office_event):
        local_tz = ZoneInfo("Asia/Tokyo")
        records = normalize_events([office_event("a", 2025, 8, 1)], local_tz)
        dates = office_day_dates(records)
        assert dates == [datetime(2025, 8, 1, tzinfo=timezone.utc)]
        assert calculate_month_stats(2025, 7, dates).office_days == 1
        assert calculate_month_stats(2025, 6, dates).office_days == 0

    def test_find_duplicate_days(self, office_event):
        records = normalize_events(
            [
                office_event("a", 2025, 8, 4),
                office_event("b", 2025, 8, 4),
                office_event("c", 2025, 8, 5),
            ],
            ZoneInfo("Europe/London"),
        )
        assert find_duplicate_days(records) == {date(2025, 8, 4)}

    def test_no_duplicates(self, office_event):
        records = normalize_events([office_event("a", 2025, 8, 4)], timezone.utc)
        assert find_duplicate_days(records) == set()
