"""Google Calendar provider for calendar sync.

Acts with a user's OAuth credential. API calls run in a worker thread and
are retried on rate limiting and server errors.
"""

import asyncio

import structlog
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from roundrobin.adapters.calendar_sync import CalendarProviderError
from roundrobin.config import Settings, get_settings
from roundrobin.models import CalendarEvent, CalendarReference, Credential

logger = structlog.get_logger()

CALENDAR_SCOPES = ["https://www.googleapis.com/auth/calendar.events"]
TOKEN_URI = "https://oauth2.googleapis.com/token"

# Statuses worth retrying
TRANSIENT_STATUSES = frozenset({429, 500, 502, 503, 504})


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, HttpError) and exc.resp.status in TRANSIENT_STATUSES


def _status(exc: HttpError) -> int:
    return exc.resp.status


def event_body(event: CalendarEvent) -> dict:
    """Google event resource for ``event``."""
    attendees = [{"email": a.email, "displayName": a.name} for a in event.attendees]
    if event.team:
        seen = {a["email"] for a in attendees}
        attendees.extend(
            {"email": m.email, "displayName": m.name}
            for m in event.team.members
            if m.email not in seen and m.email != event.organizer.email
        )
    body = {
        "summary": event.title,
        "description": event.description or "",
        "start": {
            "dateTime": event.start_time.isoformat(),
            "timeZone": event.organizer.time_zone,
        },
        "end": {
            "dateTime": event.end_time.isoformat(),
            "timeZone": event.organizer.time_zone,
        },
        "attendees": attendees,
        "organizer": {
            "email": event.organizer.email,
            "displayName": event.organizer.name,
        },
        "reminders": {"useDefault": True},
        "guestsCanSeeOtherGuests": True,
    }
    if event.location:
        body["location"] = event.location
    return body


class GoogleCalendarProvider:
    """Creates, updates and deletes events with one Google credential."""

    integration = "google_calendar"

    def __init__(
        self,
        credential: Credential,
        settings: Settings | None = None,
        service=None,
    ):
        """Initialize with an OAuth credential.

        Args:
            credential: Credential whose key holds access/refresh tokens
            settings: Settings with the OAuth client id/secret
            service: Prebuilt Calendar API service (tests)
        """
        self._credential = credential
        self._settings = settings or get_settings()
        self._service = service

    def _get_service(self):
        """Get or create Calendar API service."""
        if self._service is None:
            key = self._credential.key
            if not key.get("access_token") and not key.get("refresh_token"):
                raise CalendarProviderError(
                    f"Credential {self._credential.id} has no Google tokens"
                )
            creds = Credentials(
                token=key.get("access_token"),
                refresh_token=key.get("refresh_token"),
                token_uri=TOKEN_URI,
                client_id=self._settings.google_client_id,
                client_secret=self._settings.google_client_secret,
                scopes=CALENDAR_SCOPES,
            )
            self._service = build(
                "calendar", "v3", credentials=creds, cache_discovery=False
            )
        return self._service

    @retry(
        stop=stop_after_attempt(4),
        wait=wait_exponential(multiplier=1, min=1, max=16),
        retry=retry_if_exception(_is_transient),
        before_sleep=before_sleep_log(logger, log_level=20),  # INFO level
        reraise=True,
    )
    async def _execute(self, request) -> dict:
        return await asyncio.to_thread(request.execute) or {}

    def _reference(self, data: dict, external_calendar_id: str) -> CalendarReference:
        return CalendarReference(
            type=self.integration,
            uid=data["id"],
            meeting_id=data["id"],
            meeting_url=data.get("hangoutLink"),
            external_calendar_id=external_calendar_id,
            credential_id=self._credential.id,
        )

    async def create_event(
        self, event: CalendarEvent, external_calendar_id: str
    ) -> CalendarReference:
        """Insert ``event`` into a calendar.

        Args:
            event: Event to create
            external_calendar_id: Google calendar id

        Returns:
            Reference to the created Google event
        """
        request = self._get_service().events().insert(
            calendarId=external_calendar_id,
            body=event_body(event),
            sendUpdates="none",
        )
        try:
            data = await self._execute(request)
        except HttpError as e:
            raise CalendarProviderError(
                f"Google Calendar insert failed with status {_status(e)}"
            ) from e
        logger.info(
            "Google event created",
            calendar_id=external_calendar_id,
            event_id=data.get("id"),
            credential_id=self._credential.id,
        )
        return self._reference(data, external_calendar_id)

    async def update_event(
        self, uid: str, event: CalendarEvent, external_calendar_id: str
    ) -> CalendarReference:
        request = self._get_service().events().patch(
            calendarId=external_calendar_id,
            eventId=uid,
            body=event_body(event),
            sendUpdates="none",
        )
        try:
            data = await self._execute(request)
        except HttpError as e:
            raise CalendarProviderError(
                f"Google Calendar update of {uid} failed with status {_status(e)}"
            ) from e
        return self._reference({"id": uid, **data}, external_calendar_id)

    async def delete_event(self, uid: str, external_calendar_id: str) -> None:
        """Delete an event. Events already gone count as deleted."""
        request = self._get_service().events().delete(
            calendarId=external_calendar_id,
            eventId=uid,
            sendUpdates="none",
        )
        try:
            await self._execute(request)
        except HttpError as e:
            if _status(e) in (404, 410):
                logger.info(
                    "Google event already deleted",
                    calendar_id=external_calendar_id,
                    event_id=uid,
                )
                return
            raise CalendarProviderError(
                f"Google Calendar delete of {uid} failed with status {_status(e)}"
            ) from e
