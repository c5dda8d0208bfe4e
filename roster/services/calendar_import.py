"""
Google Calendar adapter: turns one day of calendar events into draft rows.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional

import pytz
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .. import config
from ..schemas import DraftRow
from ..scheduling.core.interval import EN_DASH

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar.readonly"]
TOKEN_URI = "https://oauth2.googleapis.com/token"

ALL_DAY_START = "00:00"
ALL_DAY_END = "23:59"


class CalendarImportError(Exception):
    """Raised when the calendar cannot be read"""
    pass


def _hhmm(value: datetime) -> str:
    return value.strftime("%H:%M")


def _event_clock(moment: dict, tz, all_day_value: str) -> Optional[str]:
    if moment.get("dateTime"):
        parsed = datetime.fromisoformat(moment["dateTime"].replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            parsed = tz.localize(parsed)
        return _hhmm(parsed.astimezone(tz))
    if moment.get("date"):
        return all_day_value
    return None


def event_to_draft(event: dict, tz) -> DraftRow:
    start = _event_clock(event.get("start") or {}, tz, ALL_DAY_START)
    end = _event_clock(event.get("end") or {}, tz, ALL_DAY_END)
    if start and end:
        time_range = f"{start}{EN_DASH}{end}"
    else:
        time_range = start or ""

    organizer = event.get("organizer") or {}
    attendees = event.get("attendees") or [{}]
    worker = (
        organizer.get("displayName")
        or organizer.get("email")
        or attendees[0].get("displayName")
        or attendees[0].get("email")
        or ""
    )
    return DraftRow(
        time_range=time_range,
        worker=worker,
        client=event.get("summary") or "",
        address=event.get("location") or "",
        note=event.get("description") or "",
        group="",
    )


class CalendarImporter:
    """Reads a shared calendar with a service account."""

    def __init__(self, calendar_id: Optional[str] = None, service=None, timezone: Optional[str] = None):
        self.calendar_id = calendar_id or config.GOOGLE_CALENDAR_ID
        self.tz = pytz.timezone(timezone or config.CALENDAR_TIMEZONE)
        self._service = service

    def _build_service(self):
        client_email = config.GOOGLE_CLIENT_EMAIL
        private_key = config.google_private_key()
        if not client_email or not private_key or not self.calendar_id:
            raise CalendarImportError("Missing GOOGLE_CLIENT_EMAIL, GOOGLE_PRIVATE_KEY or GOOGLE_CALENDAR_ID")
        creds = service_account.Credentials.from_service_account_info(
            {
                "type": "service_account",
                "client_email": client_email,
                "private_key": private_key,
                "token_uri": TOKEN_URI,
            },
            scopes=SCOPES,
        )
        return build("calendar", "v3", credentials=creds, cache_discovery=False)

    @property
    def service(self):
        if self._service is None:
            self._service = self._build_service()
        return self._service

    def fetch_drafts(self, date_key: str) -> List[DraftRow]:
        day = date.fromisoformat(date_key)
        start = self.tz.localize(datetime.combine(day, time.min))
        end = self.tz.localize(datetime.combine(day + timedelta(days=1), time.min))
        try:
            response = (
                self.service.events().list(
                    calendarId=self.calendar_id,
                    timeMin=start.isoformat(),
                    timeMax=end.isoformat(),
                    singleEvents=True,
                    orderBy="startTime",
                ).execute()
            )
        except HttpError as e:
            logger.error(f"Calendar request for {date_key} failed: {e}")
            raise CalendarImportError(f"Calendar request failed: {e}") from e
        items = response.get("items", [])
        logger.info(f"Fetched {len(items)} calendar events for {date_key}")
        return [event_to_draft(item, self.tz) for item in items]
