"""
Office Day Tracker — Google Calendar Authentication.

Office days are written to and read from the user's Google Calendar when
CALENDAR_PROVIDER=google. Without valid credentials the bot can neither
log nor report attendance.
"""

from __future__ import annotations

import logging
from pathlib import Path

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar"]


def load_stored_credentials() -> Credentials | None:
    """Return saved credentials, refreshed if needed, or None.

    Never starts the interactive consent flow, so it is safe to call from
    a permission check.
    """
    from officedays.config import settings

    token_path = Path(settings.GOOGLE_TOKEN_PATH)
    if not token_path.exists():
        return None

    creds = Credentials.from_authorized_user_file(str(token_path), SCOPES)
    logger.debug("Loaded existing token from %s", token_path)

    if creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
            token_path.write_text(creds.to_json())
            logger.info("Token refreshed successfully")
        except Exception as exc:
            logger.warning("Token refresh failed: %s", exc)
            return None

    return creds if creds.valid else None


def get_calendar_service():
    """Authenticate and return a Google Calendar API v3 service object.

    Flow:
    1. Try the stored (and possibly refreshed) token.
    2. If there is none, run the interactive OAuth2 consent flow.
    3. Persist the new token for next time.
    """
    from officedays.config import settings

    creds = load_stored_credentials()

    if creds is None:
        creds_path = Path(settings.GOOGLE_CREDENTIALS_PATH)
        if not creds_path.exists():
            raise FileNotFoundError(
                f"Google credentials file not found at {creds_path}. "
                "Download it from the Google Cloud Console."
            )
        flow = InstalledAppFlow.from_client_secrets_file(str(creds_path), SCOPES)
        creds = flow.run_local_server(port=0)
        logger.info("New credentials obtained via OAuth2 consent flow")

        token_path = Path(settings.GOOGLE_TOKEN_PATH)
        token_path.parent.mkdir(parents=True, exist_ok=True)
        token_path.write_text(creds.to_json())
        logger.debug("Token saved to %s", token_path)

    service = build("calendar", "v3", credentials=creds)
    logger.info("Google Calendar service built successfully")
    return service


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    print("Running Google Calendar authorization flow...")
    svc = get_calendar_service()
    calendars = svc.calendarList().list().execute().get("items", [])
    print(f"Auth successful! Found {len(calendars)} calendar(s).")
    for item in calendars:
        marker = " (primary)" if item.get("primary") else ""
        print(f"  - {item.get('summary', '(no title)')}{marker}")
