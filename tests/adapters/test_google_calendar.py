"""Tests for GoogleCalendarProvider."""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
from googleapiclient.errors import HttpError
from tenacity import wait_none

from roundrobin.adapters.calendar_sync import CalendarProviderError
from roundrobin.adapters.google_calendar import GoogleCalendarProvider, event_body
from roundrobin.models import CalendarEvent, Credential, Language, Person, TeamRoster


def _http_error(status: int) -> HttpError:
    return HttpError(MagicMock(status=status, reason="error"), b"{}")


@pytest.fixture(autouse=True)
def no_retry_wait(monkeypatch):
    """Retry immediately in tests."""
    monkeypatch.setattr(GoogleCalendarProvider._execute.retry, "wait", wait_none())


@pytest.fixture
def mock_service():
    return MagicMock()


@pytest.fixture
def provider(mock_service, settings) -> GoogleCalendarProvider:
    credential = Credential(id=72, type="google_calendar", key={"access_token": "b"})
    return GoogleCalendarProvider(credential, settings=settings, service=mock_service)


@pytest.fixture
def event(en) -> CalendarEvent:
    language = Language(locale="en", translate=en)
    return CalendarEvent(
        type="intro",
        title="Intro Call",
        description="First chat",
        start_time=datetime(2030, 1, 15, 10, 0, tzinfo=UTC),
        end_time=datetime(2030, 1, 15, 10, 30, tzinfo=UTC),
        organizer=Person(
            email="bob@example.com",
            name="Bob Baker",
            time_zone="America/New_York",
            language=language,
        ),
        attendees=(Person(email="jane@example.com", name="Jane Doe", language=language),),
        team=TeamRoster(
            id=10,
            name="Sales",
            members=(
                Person(email="carol@example.com", name="Carol Cole", language=language),
                Person(email="jane@example.com", name="Jane Doe", language=language),
            ),
        ),
        uid="bk-500",
        location="https://meet.example.com/abc",
    )


class TestEventBody:
    def test_body(self, event):
        body = event_body(event)

        assert body["summary"] == "Intro Call"
        assert body["start"] == {
            "dateTime": "2030-01-15T10:00:00+00:00",
            "timeZone": "America/New_York",
        }
        assert [a["email"] for a in body["attendees"]] == [
            "jane@example.com",
            "carol@example.com",
        ]
        assert body["location"] == "https://meet.example.com/abc"


class TestCreateEvent:
    """Tests for event creation."""

    @pytest.mark.asyncio
    async def test_returns_reference(self, provider, mock_service, event):
        insert = mock_service.events.return_value.insert
        insert.return_value.execute.return_value = {
            "id": "evt-1",
            "hangoutLink": "https://meet.google.com/x",
        }

        reference = await provider.create_event(event, "bob@example.com")

        assert reference.type == "google_calendar"
        assert reference.uid == "evt-1"
        assert reference.meeting_url == "https://meet.google.com/x"
        assert reference.external_calendar_id == "bob@example.com"
        assert reference.credential_id == 72
        assert insert.call_args.kwargs["calendarId"] == "bob@example.com"

    @pytest.mark.asyncio
    async def test_transient_error_retried(self, provider, mock_service, event):
        execute = mock_service.events.return_value.insert.return_value.execute
        execute.side_effect = [_http_error(503), {"id": "evt-2"}]

        reference = await provider.create_event(event, "primary")

        assert reference.uid == "evt-2"
        assert execute.call_count == 2

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, provider, mock_service, event):
        execute = mock_service.events.return_value.insert.return_value.execute
        execute.side_effect = _http_error(429)

        with pytest.raises(CalendarProviderError):
            await provider.create_event(event, "primary")

        assert execute.call_count == 4

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, provider, mock_service, event):
        execute = mock_service.events.return_value.insert.return_value.execute
        execute.side_effect = _http_error(403)

        with pytest.raises(CalendarProviderError, match="403"):
            await provider.create_event(event, "primary")

        assert execute.call_count == 1


class TestUpdateAndDelete:
    @pytest.mark.asyncio
    async def test_update_keeps_uid(self, provider, mock_service, event):
        mock_service.events.return_value.patch.return_value.execute.return_value = {}

        reference = await provider.update_event("g-old", event, "alice@example.com")

        assert reference.uid == "g-old"
        assert reference.external_calendar_id == "alice@example.com"

    @pytest.mark.asyncio
    async def test_delete(self, provider, mock_service):
        delete = mock_service.events.return_value.delete
        delete.return_value.execute.return_value = ""

        await provider.delete_event("g-old", "alice@example.com")

        assert delete.call_args.kwargs["eventId"] == "g-old"

    @pytest.mark.asyncio
    async def test_delete_already_gone(self, provider, mock_service):
        mock_service.events.return_value.delete.return_value.execute.side_effect = (
            _http_error(410)
        )

        await provider.delete_event("g-old", "alice@example.com")

    @pytest.mark.asyncio
    async def test_delete_failure(self, provider, mock_service):
        mock_service.events.return_value.delete.return_value.execute.side_effect = (
            _http_error(401)
        )

        with pytest.raises(CalendarProviderError):
            await provider.delete_event("g-old", "alice@example.com")


def test_missing_tokens(settings):
    provider = GoogleCalendarProvider(
        Credential(id=1, type="google_calendar", key={}), settings=settings
    )

    with pytest.raises(CalendarProviderError):
        provider._get_service()
