"""Telegram delivery for office-day reminders (NotificationPort)."""

from __future__ import annotations

import logging

from telegram import Bot
from telegram.error import Forbidden

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Sends plain-text messages to a user's private chat with the bot.

    Users who blocked the bot raise Forbidden; it is logged here and
    re-raised so the reminder job counts the message as not sent.
    """

    def __init__(self, bot: Bot) -> None:
        self._bot = bot

    async def send_message(self, user_id: int, text: str) -> None:
        try:
            await self._bot.send_message(chat_id=user_id, text=text)
        except Forbidden:
            logger.warning("User %d has blocked the bot; reminder not delivered", user_id)
            raise
