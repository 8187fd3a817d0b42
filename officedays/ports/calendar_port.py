"""Calendar port — abstract interface for the device/provider calendar.

The office-day service depends on this protocol, never on a specific
provider. Every method is a suspension point; failures surface as
CalendarError.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Literal, Protocol

if TYPE_CHECKING:
    from officedays.data.models import CalendarEvent, CalendarInfo, EventDetails

PermissionStatus = Literal["granted", "denied", "undetermined"]


class CalendarError(Exception):
    """Raised when any calendar provider operation fails."""


class CalendarGateway(Protocol):
    """The four calendar operations the core needs, plus a permission probe."""

    async def list_calendars(self, entity_kind: str = "event") -> list[CalendarInfo]: ...

    async def create_event(self, calendar_id: str, details: EventDetails) -> str: ...

    async def query_events(
        self, calendar_ids: list[str], start: datetime, end: datetime
    ) -> list[CalendarEvent]: ...

    async def delete_event(
        self, event_id: str, calendar_id: str | None = None
    ) -> None: ...

    async def get_permission_status(self) -> PermissionStatus: ...
