"""Office-day error taxonomy.

Provider-level failures are CalendarError (see ports.calendar_port); the
errors below are what the service and the period resolver raise to callers.
"""

from __future__ import annotations


class OfficeDayError(Exception):
    """Base class for office-day failures surfaced to the presentation layer."""


class CalendarInitializationError(OfficeDayError):
    """Listing calendars failed. Not raised when zero calendars exist."""


class NoCalendarAvailable(OfficeDayError):
    """An operation needed an active calendar and none could be found."""


class EventCreationFailed(OfficeDayError):
    """The calendar rejected the new office-day event."""


class EventDeletionFailed(OfficeDayError):
    """The calendar rejected deleting an office-day event."""


class InvalidQuarterConfiguration(OfficeDayError):
    """A quarter resolves to no usable month range."""

    def __init__(self, quarter: str, message: str | None = None) -> None:
        self.quarter = quarter
        super().__init__(message or f"Invalid quarter: {quarter}")
