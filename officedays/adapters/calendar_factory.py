"""Calendar adapter factory — creates the right gateway based on config."""

from __future__ import annotations

from officedays.config import settings
from officedays.ports.calendar_port import CalendarGateway


def create_calendar_adapter() -> CalendarGateway:
    """Return the calendar gateway matching the CALENDAR_PROVIDER setting."""
    provider = settings.CALENDAR_PROVIDER.lower()

    if provider == "caldav":
        from officedays.adapters.caldav_calendar import CalDAVCalendarAdapter

        return CalDAVCalendarAdapter()

    if provider == "google":
        from officedays.adapters.google_calendar import GoogleCalendarAdapter

        return GoogleCalendarAdapter()

    if provider == "outlook":
        from officedays.adapters.outlook_calendar import OutlookCalendarAdapter

        return OutlookCalendarAdapter()

    raise ValueError(f"Unknown CALENDAR_PROVIDER: {provider!r}")
