"""Collaborator contracts consumed by the reassignment core.

Concrete implementations live in ``roundrobin.repositories`` (storage),
``roundrobin.adapters`` (calendar sync), ``roundrobin.notifications``
(email transport), ``roundrobin.reminders`` (workflow scheduler) and
``roundrobin.i18n`` (translation). Adapters implement these protocols
structurally; they don't need to inherit.
"""

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from roundrobin.i18n import Translator
from roundrobin.models import (
    Booking,
    CalendarEvent,
    CalendarReference,
    Credential,
    DestinationCalendar,
    EventType,
    Person,
    ReminderFilter,
    Team,
    TimeUnit,
    User,
    Workflow,
    WorkflowAction,
    WorkflowFilter,
    WorkflowReminder,
    WorkflowTemplate,
    WorkflowTrigger,
)


class BookingPatch(BaseModel):
    """Fields written when the organizer changes. Unset fields are untouched."""

    user_id: int | None = None
    title: str | None = None
    user_primary_email: str | None = None
    location: str | None = None


class AttendeePatch(BaseModel):
    """Fields written to the round-robin attendee."""

    name: str
    email: str
    time_zone: str
    locale: str | None = None


class RescheduleResult(BaseModel):
    """Outcome of a calendar sync reschedule."""

    references_to_create: list[CalendarReference] = Field(default_factory=list)


class TimeSpan(BaseModel):
    time: int | None = None
    time_unit: TimeUnit | None = None


class EmailReminderRequest(BaseModel):
    """Request to schedule one email reminder for a booking."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    event: CalendarEvent
    action: WorkflowAction
    trigger: WorkflowTrigger
    time_span: TimeSpan = Field(default_factory=TimeSpan)
    send_to: str
    template: WorkflowTemplate = WorkflowTemplate.REMINDER
    workflow_step_id: int | None = None
    email_subject: str | None = None
    email_body: str | None = None
    sender_name: str | None = None


class WorkflowRemindersRequest(BaseModel):
    """Request to schedule every step of ``workflows`` for an event."""

    workflows: list[Workflow]
    calendar_event: CalendarEvent
    sms_reminder_number: str | None = None
    hide_branding: bool = False


@runtime_checkable
class Storage(Protocol):
    """Persistent storage of bookings, users and workflows."""

    async def get_booking(self, booking_id: int) -> Booking | None: ...

    async def get_event_type(self, event_type_id: int) -> EventType | None: ...

    async def update_booking(self, booking_id: int, patch: BookingPatch) -> Booking: ...

    async def update_attendee(self, attendee_id: int, patch: AttendeePatch) -> None: ...

    async def replace_calendar_references(
        self, booking_id: int, references: Sequence[CalendarReference]
    ) -> None: ...

    async def find_references(self, booking_uid: str) -> list[CalendarReference]: ...

    async def find_credentials(self, user_id: int) -> list[Credential]: ...

    async def get_credential(self, credential_id: int) -> Credential | None: ...

    async def find_destination_calendar(
        self, user_id: int
    ) -> DestinationCalendar | None: ...

    async def find_pending_reminders(
        self, booking_uid: str, reminder_filter: ReminderFilter
    ) -> list[WorkflowReminder]: ...

    async def find_workflows(self, workflow_filter: WorkflowFilter) -> list[Workflow]: ...

    async def get_team(self, team_id: int) -> Team | None: ...


@runtime_checkable
class CalendarSync(Protocol):
    """Provider-agnostic calendar synchronisation for one organizer."""

    async def reschedule(
        self,
        event: CalendarEvent,
        uid: str,
        change_details: bool,
        remove_from_calendars: Sequence[DestinationCalendar],
    ) -> RescheduleResult: ...


class CalendarSyncFactory(Protocol):
    """Builds a CalendarSync acting with ``user``'s credentials."""

    def __call__(self, user: User, credentials: list[Credential]) -> CalendarSync: ...


@runtime_checkable
class NotificationTransport(Protocol):
    """Delivers round-robin notifications."""

    async def send_scheduled(
        self, event: CalendarEvent, recipients: Sequence[Person]
    ) -> None: ...

    async def send_cancelled(
        self,
        event: CalendarEvent,
        recipients: Sequence[Person],
        metadata: dict[str, Any] | None = None,
    ) -> None: ...


class TranslationProvider(Protocol):
    """Returns a translator for a locale. Pure function of its inputs."""

    async def __call__(self, locale: str | None, namespace: str = "common") -> Translator: ...


@runtime_checkable
class WorkflowScheduler(Protocol):
    """Schedules and cancels workflow reminder jobs."""

    async def schedule_email_reminder(self, request: EmailReminderRequest) -> None: ...

    async def delete_scheduled_email_reminder(
        self, reminder_id: int, reference_id: str | None
    ) -> None: ...

    async def schedule_workflow_reminders(self, request: WorkflowRemindersRequest) -> None: ...
