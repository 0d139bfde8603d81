"""Domain models for round-robin reassignment.

- User, Host, Team, Credential, DestinationCalendar: who hosts and where
  their calendars live
- Booking, Attendee, CalendarReference: the meeting being reassigned
- EventType, BookingField: the booking template (read-only)
- Workflow, WorkflowStep, WorkflowReminder: scheduled communications
- CalendarEvent, Person: the materialized representation sent outward
"""

from roundrobin.models.booking import Attendee, Booking, CalendarReference
from roundrobin.models.calendar_event import (
    MANUAL_REASSIGNMENT_REASON,
    CalendarEvent,
    FieldResponse,
    Language,
    Person,
    TeamRoster,
    VideoCallData,
    get_video_call_url,
    time_format_string,
)
from roundrobin.models.event_type import BookingField, EventType, EventTypeOwner
from roundrobin.models.user import (
    Credential,
    DestinationCalendar,
    Host,
    Team,
    User,
)
from roundrobin.models.workflow import (
    ReminderFilter,
    TimeUnit,
    Workflow,
    WorkflowAction,
    WorkflowFilter,
    WorkflowMethod,
    WorkflowReminder,
    WorkflowStep,
    WorkflowTemplate,
    WorkflowTrigger,
)

__all__ = [
    # Users and hosts
    "Credential",
    "DestinationCalendar",
    "Host",
    "Team",
    "User",
    # Booking
    "Attendee",
    "Booking",
    "CalendarReference",
    # Event type
    "BookingField",
    "EventType",
    "EventTypeOwner",
    # Calendar event
    "MANUAL_REASSIGNMENT_REASON",
    "CalendarEvent",
    "FieldResponse",
    "Language",
    "Person",
    "TeamRoster",
    "VideoCallData",
    "get_video_call_url",
    "time_format_string",
    # Workflows
    "ReminderFilter",
    "TimeUnit",
    "Workflow",
    "WorkflowAction",
    "WorkflowFilter",
    "WorkflowMethod",
    "WorkflowReminder",
    "WorkflowStep",
    "WorkflowTemplate",
    "WorkflowTrigger",
]
