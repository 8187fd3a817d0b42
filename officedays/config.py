"""
Office Day Tracker — Centralized configuration.

Loads all settings from .env and validates required keys.
The statistics engine never reads these; only the bot, the calendar
adapters and the reminder job do.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from officedays/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Telegram
    TELEGRAM_BOT_TOKEN: str

    # Calendar provider: "caldav" | "google" | "outlook"
    CALENDAR_PROVIDER: str = "caldav"

    # Google Calendar (only needed when CALENDAR_PROVIDER=google)
    GOOGLE_CREDENTIALS_PATH: str = "credentials.json"
    GOOGLE_TOKEN_PATH: str = "token.json"

    # Microsoft Outlook/365 (only needed when CALENDAR_PROVIDER=outlook)
    MS_CLIENT_ID: str = ""
    MS_CLIENT_SECRET: str = ""
    MS_TENANT_ID: str = "common"

    # CalDAV (only needed when CALENDAR_PROVIDER=caldav)
    CALDAV_URL: str = ""
    CALDAV_USERNAME: str = ""
    CALDAV_PASSWORD: str = ""
    CALDAV_CALENDAR_NAME: str = ""

    # Security
    ALLOWED_USER_IDS: list[int] = []

    # Local calendar zone used to turn UTC-stored office days into local days
    TIMEZONE: str = "UTC"

    # How far back /history and the statistics screens look
    HISTORY_MONTHS: int = 6

    # Weekday "did you go to the office?" reminder
    REMINDER_ENABLED: bool = True
    REMINDER_HOUR: int = 9

    @field_validator("ALLOWED_USER_IDS", mode="before")
    @classmethod
    def parse_user_ids(cls, v: str | list[int]) -> list[int]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [int(uid.strip()) for uid in v.split(",") if uid.strip()]
        return []

    @field_validator("REMINDER_HOUR", "HISTORY_MONTHS", mode="before")
    @classmethod
    def parse_int(cls, v: str | int) -> int:
        return int(v)

    @field_validator("REMINDER_HOUR")
    @classmethod
    def check_hour(cls, v: int) -> int:
        if not 0 <= v <= 23:
            raise ValueError(f"REMINDER_HOUR must be between 0 and 23, got {v}")
        return v

    @field_validator("REMINDER_ENABLED", mode="before")
    @classmethod
    def parse_flag(cls, v: str | bool) -> bool:
        if isinstance(v, bool):
            return v
        return str(v).strip().lower() in ("1", "true", "yes", "on")


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    token = os.getenv("TELEGRAM_BOT_TOKEN", "")

    if not token or token.startswith("your-"):
        print("ERROR: TELEGRAM_BOT_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        TELEGRAM_BOT_TOKEN=token,
        CALENDAR_PROVIDER=os.getenv("CALENDAR_PROVIDER", "caldav"),
        GOOGLE_CREDENTIALS_PATH=os.getenv("GOOGLE_CREDENTIALS_PATH", "credentials.json"),
        GOOGLE_TOKEN_PATH=os.getenv("GOOGLE_TOKEN_PATH", "token.json"),
        MS_CLIENT_ID=os.getenv("MS_CLIENT_ID", ""),
        MS_CLIENT_SECRET=os.getenv("MS_CLIENT_SECRET", ""),
        MS_TENANT_ID=os.getenv("MS_TENANT_ID", "common"),
        CALDAV_URL=os.getenv("CALDAV_URL", ""),
        CALDAV_USERNAME=os.getenv("CALDAV_USERNAME", ""),
        CALDAV_PASSWORD=os.getenv("CALDAV_PASSWORD", ""),
        CALDAV_CALENDAR_NAME=os.getenv("CALDAV_CALENDAR_NAME", ""),
        ALLOWED_USER_IDS=os.getenv("ALLOWED_USER_IDS", ""),
        TIMEZONE=os.getenv("TIMEZONE", "UTC"),
        HISTORY_MONTHS=os.getenv("HISTORY_MONTHS", "6"),
        REMINDER_ENABLED=os.getenv("REMINDER_ENABLED", "true"),
        REMINDER_HOUR=os.getenv("REMINDER_HOUR", "9"),
    )


# Singleton — imported by the bot and adapters as:
#   from officedays.config import settings
settings = _load_settings()
