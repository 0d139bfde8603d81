"""Workflow, step and reminder models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class WorkflowTrigger(str, Enum):
    """When a workflow fires relative to a booking."""

    BEFORE_EVENT = "BEFORE_EVENT"
    NEW_EVENT = "NEW_EVENT"
    AFTER_EVENT = "AFTER_EVENT"
    EVENT_CANCELLED = "EVENT_CANCELLED"
    RESCHEDULE_EVENT = "RESCHEDULE_EVENT"


class WorkflowAction(str, Enum):
    """What a workflow step does."""

    EMAIL_HOST = "EMAIL_HOST"
    EMAIL_ATTENDEE = "EMAIL_ATTENDEE"
    EMAIL_ADDRESS = "EMAIL_ADDRESS"
    SMS_ATTENDEE = "SMS_ATTENDEE"
    SMS_NUMBER = "SMS_NUMBER"


class WorkflowMethod(str, Enum):
    """Delivery channel of a reminder."""

    EMAIL = "EMAIL"
    SMS = "SMS"
    WHATSAPP = "WHATSAPP"


class TimeUnit(str, Enum):
    DAY = "DAY"
    HOUR = "HOUR"
    MINUTE = "MINUTE"


class WorkflowTemplate(str, Enum):
    REMINDER = "REMINDER"
    CUSTOM = "CUSTOM"
    RATING = "RATING"
    THANKYOU = "THANKYOU"


class WorkflowStep(BaseModel):
    """A single action of a workflow."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    workflow_id: int
    step_number: int = 1
    action: WorkflowAction
    send_to: str | None = None
    template: WorkflowTemplate = WorkflowTemplate.REMINDER
    reminder_body: str | None = None
    email_subject: str | None = None
    sender_name: str | None = None


class Workflow(BaseModel):
    """A rule producing scheduled reminders for bookings."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str = ""
    user_id: int | None = None
    team_id: int | None = None
    trigger: WorkflowTrigger
    time: int | None = Field(default=None, description="Offset amount")
    time_unit: TimeUnit | None = None
    is_active_on_all: bool = False
    steps: list[WorkflowStep] = Field(default_factory=list)


class WorkflowReminder(BaseModel):
    """A pending notification job bound to a booking.

    ``step`` and ``workflow`` are populated when loaded for migration.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    booking_uid: str
    method: WorkflowMethod = WorkflowMethod.EMAIL
    scheduled_date: datetime | None = None
    reference_id: str | None = Field(
        default=None, description="Id of the job at the delivery provider"
    )
    scheduled: bool = False
    workflow_step_id: int | None = None
    step: WorkflowStep | None = None
    workflow: Workflow | None = None


class ReminderFilter(BaseModel):
    """Selects pending reminders of a booking."""

    model_config = ConfigDict(frozen=True)

    method: WorkflowMethod = WorkflowMethod.EMAIL
    action: WorkflowAction = WorkflowAction.EMAIL_HOST
    triggers: frozenset[WorkflowTrigger] = frozenset(
        {
            WorkflowTrigger.BEFORE_EVENT,
            WorkflowTrigger.NEW_EVENT,
            WorkflowTrigger.AFTER_EVENT,
        }
    )


class WorkflowFilter(BaseModel):
    """Selects workflows that apply to an event type.

    A workflow matches when its trigger is ``trigger`` and it is active on
    ``event_type_id``, active on all for one of ``active_on_all_team_ids``,
    or explicitly active on ``team_id``.
    """

    model_config = ConfigDict(frozen=True)

    trigger: WorkflowTrigger
    event_type_id: int
    team_id: int | None = None
    active_on_all_team_ids: tuple[int, ...] = ()
    step_action: WorkflowAction | None = None
