"""
Office Day Tracker — Weekday reminder.

Once a day on weekdays the bot nudges each authorized user who has not
logged an office day yet. Users who already logged today get nothing.

This module is provider-agnostic: it depends on OfficeDayService (and
through it CalendarGateway) and on NotificationPort.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from officedays.core.office_day_service import CalendarSession, OfficeDayService
    from officedays.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)

REMINDER_TEXT = (
    "🏢 Are you in the office today?\n"
    "Send /log to record it, or ignore this if you're working from home."
)


async def send_office_day_reminders(
    service: OfficeDayService,
    notifier: NotificationPort,
    user_ids: list[int],
    session: CalendarSession | None = None,
) -> int:
    """Remind every user in `user_ids` who has not logged today.

    Returns the number of reminders sent. A failure for one user is
    logged and does not stop the others.
    """
    if await service.has_office_day_today(session, basis="utc"):
        logger.info("Office day already logged today, skipping reminders")
        return 0

    sent = 0
    for user_id in user_ids:
        try:
            await notifier.send_message(user_id, REMINDER_TEXT)
            sent += 1
            logger.info("Office day reminder sent to user %d", user_id)
        except Exception as exc:
            logger.error("Failed to send office day reminder to %d: %s", user_id, exc)
    return sent
