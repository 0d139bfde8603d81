"""Calendar event representation sent to calendar sync and notifications.

The representation is derived fresh for each reassignment and is immutable:
variants (the cancellation copy, workflow copies) are produced with
``model_copy(update=..., deep=True)`` so the original instance and its
nested response dicts are never shared or changed.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from roundrobin.i18n import Translator
from roundrobin.models.user import DestinationCalendar

MANUAL_REASSIGNMENT_REASON = "Manually re-assigned"


class Language(BaseModel):
    """Locale plus the translator bound to it."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    locale: str
    translate: Translator


class Person(BaseModel):
    """Organizer, attendee or team member on a calendar event."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    email: str
    name: str = ""
    username: str | None = None
    time_zone: str = "UTC"
    time_format: str = Field(default="h:mma", description="Clock format for rendering")
    language: Language
    phone_number: str | None = None


class TeamRoster(BaseModel):
    """Team information included with the event."""

    model_config = ConfigDict(frozen=True)

    id: int = 0
    name: str = ""
    members: tuple[Person, ...] = ()


class FieldResponse(BaseModel):
    """A labelled booking form response."""

    model_config = ConfigDict(frozen=True)

    label: str
    value: Any = None
    is_hidden: bool = False


class VideoCallData(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    id: str | None = None
    password: str | None = None
    url: str | None = None


class CalendarEvent(BaseModel):
    """Materialized payload describing a booking to external collaborators."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(description="Event type slug")
    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime
    organizer: Person
    attendees: tuple[Person, ...] = ()
    uid: str
    location: str | None = None
    destination_calendars: tuple[DestinationCalendar, ...] = ()
    team: TeamRoster | None = None
    custom_inputs: dict[str, Any] | None = None
    responses: dict[str, FieldResponse] = Field(default_factory=dict)
    user_fields_responses: dict[str, FieldResponse] = Field(default_factory=dict)
    video_call_data: VideoCallData | None = None
    cancellation_reason: str | None = None
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="Workflow metadata such as video_call_url"
    )
    booker_url: str | None = None
    hide_branding: bool = False

    def with_organizer(self, organizer: Person) -> "CalendarEvent":
        """Return a copy addressed from ``organizer``."""
        return self.model_copy(update={"organizer": organizer}, deep=True)


def get_video_call_url(event: CalendarEvent) -> str | None:
    """Return the join URL of ``event`` if it has one."""
    if event.video_call_data and event.video_call_data.url:
        return event.video_call_data.url
    if event.location and event.location.startswith(("http://", "https://")):
        return event.location
    return None


def time_format_string(time_format: int | None) -> str:
    """Map a user's 12/24 clock preference to a rendering format."""
    return "HH:mm" if time_format == 24 else "h:mma"
