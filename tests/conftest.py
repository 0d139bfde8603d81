"""Pytest configuration and fixtures.

Fixtures describe a small world: a "Sales" team with round-robin hosts
Alice and Bob, a fixed host Carol, and Dave who hosts nothing. Booking 500
is owned by Alice; booking 501 is owned by Carol with Alice attending as
the round-robin host.
"""

from collections.abc import AsyncIterator, Sequence
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from roundrobin.config import Settings
from roundrobin.i18n import Translator, load_catalog
from roundrobin.main import app
from roundrobin.models import (
    Attendee,
    Booking,
    BookingField,
    CalendarReference,
    Credential,
    DestinationCalendar,
    EventType,
    Host,
    ReminderFilter,
    Team,
    User,
    Workflow,
    WorkflowFilter,
    WorkflowReminder,
)
from roundrobin.reassignment.ports import (
    AttendeePatch,
    BookingPatch,
    RescheduleResult,
)


class InMemoryStorage:
    """Storage double keeping everything in dicts and recording writes."""

    def __init__(self):
        self.bookings: dict[int, Booking] = {}
        self.event_types: dict[int, EventType] = {}
        self.users: dict[int, User] = {}
        self.teams: dict[int, Team] = {}
        self.credentials: dict[int, Credential] = {}
        self.destination_calendars: dict[int, DestinationCalendar] = {}
        self.reminders: list[WorkflowReminder] = []
        self.workflows: list[Workflow] = []
        self.writes: list[str] = []
        self.workflow_filters: list[WorkflowFilter] = []

    async def get_booking(self, booking_id: int) -> Booking | None:
        booking = self.bookings.get(booking_id)
        return booking.model_copy(deep=True) if booking else None

    async def get_event_type(self, event_type_id: int) -> EventType | None:
        return self.event_types.get(event_type_id)

    async def update_booking(self, booking_id: int, patch: BookingPatch) -> Booking:
        self.writes.append("update_booking")
        data = patch.model_dump(exclude_unset=True)
        booking = self.bookings[booking_id]
        user = self.users.get(data.get("user_id", booking.user_id))
        self.bookings[booking_id] = booking.model_copy(update={**data, "user": user})
        return await self.get_booking(booking_id)

    async def update_attendee(self, attendee_id: int, patch: AttendeePatch) -> None:
        self.writes.append("update_attendee")
        for booking in self.bookings.values():
            booking.attendees = [
                a.model_copy(update=patch.model_dump()) if a.id == attendee_id else a
                for a in booking.attendees
            ]

    async def replace_calendar_references(
        self, booking_id: int, references: Sequence[CalendarReference]
    ) -> None:
        self.writes.append("replace_calendar_references")
        self.bookings[booking_id].references = list(references)

    async def find_references(self, booking_uid: str) -> list[CalendarReference]:
        for booking in self.bookings.values():
            if booking.uid == booking_uid:
                return list(booking.references)
        return []

    async def find_credentials(self, user_id: int) -> list[Credential]:
        return [c for c in self.credentials.values() if c.user_id == user_id]

    async def get_credential(self, credential_id: int) -> Credential | None:
        return self.credentials.get(credential_id)

    async def find_destination_calendar(self, user_id: int) -> DestinationCalendar | None:
        return self.destination_calendars.get(user_id)

    async def find_pending_reminders(
        self, booking_uid: str, reminder_filter: ReminderFilter
    ) -> list[WorkflowReminder]:
        return [r for r in self.reminders if r.booking_uid == booking_uid]

    async def find_workflows(self, workflow_filter: WorkflowFilter) -> list[Workflow]:
        self.workflow_filters.append(workflow_filter)
        return list(self.workflows)

    async def get_team(self, team_id: int) -> Team | None:
        return self.teams.get(team_id)


class RecordingCalendarSync:
    """CalendarSync double returning a fixed set of references."""

    def __init__(self, references: list[CalendarReference], error: Exception | None = None):
        self.references = references
        self.error = error
        self.calls: list[dict] = []
        self.built_for: list[tuple[User, list[Credential]]] = []

    def factory(self, user: User, credentials: list[Credential]) -> "RecordingCalendarSync":
        self.built_for.append((user, credentials))
        return self

    async def reschedule(self, event, uid, change_details, remove_from_calendars):
        self.calls.append(
            {
                "event": event,
                "uid": uid,
                "change_details": change_details,
                "remove_from_calendars": list(remove_from_calendars),
            }
        )
        if self.error:
            raise self.error
        return RescheduleResult(references_to_create=list(self.references))


@pytest.fixture
def settings() -> Settings:
    return Settings(
        website_url="https://app.example.com",
        website_domain="example.com",
        default_locale="en",
        smtp_host="smtp.example.com",
    )


@pytest.fixture
def en() -> Translator:
    """English translator."""
    return Translator("en", load_catalog("en", "common"))


@pytest.fixture
def alice() -> User:
    return User(
        id=1,
        username="alice",
        name="Alice Able",
        email="alice@example.com",
        locale="en",
        time_zone="Europe/Amsterdam",
        time_format=24,
    )


@pytest.fixture
def bob() -> User:
    return User(
        id=2,
        username="bob",
        name="Bob Baker",
        email="bob@example.com",
        locale="en",
        time_zone="America/New_York",
    )


@pytest.fixture
def carol() -> User:
    return User(id=3, username="carol", name="Carol Cole", email="carol@example.com")


@pytest.fixture
def dave() -> User:
    return User(id=4, username="dave", name="Dave Dunn", email="dave@example.com")


@pytest.fixture
def team() -> Team:
    return Team(id=10, name="Sales", slug="sales")


@pytest.fixture
def booking_fields() -> list[BookingField]:
    return [
        BookingField(name="name", type="name", label="Your name", required=True),
        BookingField(name="email", type="email", label="Email", required=True),
        BookingField(name="company", type="text", label="Company"),
    ]


@pytest.fixture
def rr_event_type(alice, bob, team, booking_fields) -> EventType:
    """Round-robin event type with hosts Alice and Bob."""
    return EventType(
        id=100,
        slug="intro",
        title="Intro Call",
        length=30,
        locations=[{"type": "integrations:daily"}],
        booking_fields=booking_fields,
        team_id=team.id,
        team=team,
        hosts=[Host(user=alice), Host(user=bob)],
    )


@pytest.fixture
def fixed_event_type(alice, bob, carol, team, booking_fields) -> EventType:
    """Event type with fixed host Carol and round-robin hosts Alice and Bob."""
    return EventType(
        id=101,
        slug="demo",
        title="Demo",
        length=45,
        booking_fields=booking_fields,
        team_id=team.id,
        team=team,
        hosts=[Host(user=carol, is_fixed=True), Host(user=alice), Host(user=bob)],
        metadata={"disableStandardEmails": {"all": {"host": False}}},
    )


@pytest.fixture
def jane() -> Attendee:
    return Attendee(id=900, name="Jane Doe", email="jane@example.com", time_zone="Europe/London")


@pytest.fixture
def google_reference() -> CalendarReference:
    return CalendarReference(
        type="google_calendar",
        uid="g-old",
        external_calendar_id="alice@example.com",
        credential_id=71,
    )


@pytest.fixture
def video_reference() -> CalendarReference:
    return CalendarReference(
        type="daily_video",
        uid="daily-room",
        meeting_url="https://video.example.com/daily-room",
    )


@pytest.fixture
def rr_booking(alice, jane, google_reference, video_reference) -> Booking:
    """Booking 500, owned by Alice."""
    return Booking(
        id=500,
        uid="bk-500",
        title="Intro Call between Sales and Jane Doe",
        start_time=datetime(2030, 1, 15, 10, 0, tzinfo=UTC),
        end_time=datetime(2030, 1, 15, 10, 30, tzinfo=UTC),
        location="integrations:daily",
        user_id=alice.id,
        user=alice,
        user_primary_email=alice.email,
        event_type_id=100,
        attendees=[jane],
        references=[video_reference, google_reference],
        responses={"name": "Jane Doe", "email": "jane@example.com", "company": "Acme"},
    )


@pytest.fixture
def fixed_booking(carol, alice, jane) -> Booking:
    """Booking 501, owned by fixed host Carol with Alice attending."""
    return Booking(
        id=501,
        uid="bk-501",
        title="Demo between Carol Cole and Jane Doe",
        start_time=datetime(2030, 2, 1, 15, 0, tzinfo=UTC),
        end_time=datetime(2030, 2, 1, 15, 45, tzinfo=UTC),
        location="https://meet.example.com/demo",
        user_id=carol.id,
        user=carol,
        event_type_id=101,
        attendees=[
            jane.model_copy(update={"id": 899}),
            Attendee(id=901, name=alice.name, email=alice.email, time_zone=alice.time_zone),
        ],
        responses={"name": "Jane Doe", "email": "jane@example.com"},
    )


@pytest.fixture
def storage(
    alice, bob, carol, dave, team, rr_event_type, fixed_event_type, rr_booking, fixed_booking
) -> InMemoryStorage:
    """In-memory storage seeded with the fixture world."""
    store = InMemoryStorage()
    for user in (alice, bob, carol, dave):
        store.users[user.id] = user
    store.teams[team.id] = team
    store.event_types = {rr_event_type.id: rr_event_type, fixed_event_type.id: fixed_event_type}
    store.bookings = {rr_booking.id: rr_booking, fixed_booking.id: fixed_booking}
    store.credentials = {
        71: Credential(id=71, type="google_calendar", user_id=alice.id, key={"access_token": "a"}),
        72: Credential(id=72, type="google_calendar", user_id=bob.id, key={"access_token": "b"}),
    }
    store.destination_calendars = {
        alice.id: DestinationCalendar(
            id=81, integration="google_calendar", external_id=alice.email,
            user_id=alice.id, credential_id=71,
        ),
        bob.id: DestinationCalendar(
            id=82, integration="google_calendar", external_id=bob.email,
            user_id=bob.id, credential_id=72,
        ),
    }
    return store


@pytest.fixture
def new_google_reference() -> CalendarReference:
    return CalendarReference(
        type="google_calendar",
        uid="g-new",
        external_calendar_id="bob@example.com",
        credential_id=72,
    )


@pytest.fixture
def calendar_sync(video_reference, new_google_reference) -> RecordingCalendarSync:
    return RecordingCalendarSync([video_reference, new_google_reference])


@pytest.fixture
def notifications() -> MagicMock:
    """Mock notification transport."""
    transport = MagicMock()
    transport.send_scheduled = AsyncMock()
    transport.send_cancelled = AsyncMock()
    return transport


@pytest.fixture
def scheduler() -> MagicMock:
    """Mock workflow scheduler."""
    mock = MagicMock()
    mock.schedule_email_reminder = AsyncMock()
    mock.delete_scheduled_email_reminder = AsyncMock()
    mock.schedule_workflow_reminders = AsyncMock()
    return mock


@pytest.fixture
async def client() -> AsyncIterator[AsyncClient]:
    """Async test client for the FastAPI app without lifespan wiring."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    for name in ("reassigner", "db"):
        if hasattr(app.state, name):
            delattr(app.state, name)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "test_roundrobin.db"
