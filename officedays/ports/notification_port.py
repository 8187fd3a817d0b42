"""Notification port — abstract interface for pushing messages to users.

The reminder job depends on this protocol, never on a specific messaging
provider.
"""

from __future__ import annotations

from typing import Protocol


class NotificationPort(Protocol):
    """Abstract notification interface used by the reminder job."""

    async def send_message(self, user_id: int, text: str) -> None: ...
