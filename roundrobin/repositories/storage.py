"""Storage facade combining the repositories behind one object."""

from collections.abc import Sequence

from roundrobin.db.turso import TursoClient
from roundrobin.models import (
    Booking,
    CalendarReference,
    Credential,
    DestinationCalendar,
    EventType,
    ReminderFilter,
    Team,
    Workflow,
    WorkflowFilter,
    WorkflowReminder,
)
from roundrobin.reassignment.ports import AttendeePatch, BookingPatch
from roundrobin.repositories.booking_repo import BookingRepository
from roundrobin.repositories.event_type_repo import EventTypeRepository
from roundrobin.repositories.user_repo import UserRepository
from roundrobin.repositories.workflow_repo import WorkflowRepository


class TursoStorage:
    """libSQL-backed storage used by the reassignment service."""

    def __init__(self, db_client: TursoClient):
        self.users = UserRepository(db_client)
        self.bookings = BookingRepository(db_client, self.users)
        self.event_types = EventTypeRepository(db_client, self.users)
        self.workflows = WorkflowRepository(db_client)

    async def initialize(self) -> None:
        """Create all tables if not exists."""
        await self.users.initialize()
        await self.bookings.initialize()
        await self.event_types.initialize()
        await self.workflows.initialize()

    async def get_booking(self, booking_id: int) -> Booking | None:
        return await self.bookings.get_booking(booking_id)

    async def get_event_type(self, event_type_id: int) -> EventType | None:
        return await self.event_types.get_event_type(event_type_id)

    async def update_booking(self, booking_id: int, patch: BookingPatch) -> Booking:
        return await self.bookings.update_booking(booking_id, patch)

    async def update_attendee(self, attendee_id: int, patch: AttendeePatch) -> None:
        await self.bookings.update_attendee(attendee_id, patch)

    async def replace_calendar_references(
        self, booking_id: int, references: Sequence[CalendarReference]
    ) -> None:
        await self.bookings.replace_references(booking_id, references)

    async def find_references(self, booking_uid: str) -> list[CalendarReference]:
        return await self.bookings.find_references_by_uid(booking_uid)

    async def find_credentials(self, user_id: int) -> list[Credential]:
        return await self.users.find_credentials(user_id)

    async def get_credential(self, credential_id: int) -> Credential | None:
        return await self.users.get_credential(credential_id)

    async def find_destination_calendar(self, user_id: int) -> DestinationCalendar | None:
        return await self.users.find_destination_calendar(user_id)

    async def find_pending_reminders(
        self, booking_uid: str, reminder_filter: ReminderFilter
    ) -> list[WorkflowReminder]:
        return await self.workflows.find_pending_reminders(booking_uid, reminder_filter)

    async def find_workflows(self, workflow_filter: WorkflowFilter) -> list[Workflow]:
        return await self.workflows.find_workflows(workflow_filter)

    async def get_team(self, team_id: int) -> Team | None:
        return await self.users.get_team(team_id)
