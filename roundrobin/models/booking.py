"""Booking (meeting) model with its attendees and calendar references."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from roundrobin.models.user import User


class Attendee(BaseModel):
    """A person record on a booking."""

    model_config = ConfigDict(str_strip_whitespace=True, from_attributes=True)

    id: int
    name: str = ""
    email: str
    time_zone: str = "UTC"
    locale: str | None = None
    phone_number: str | None = None


class CalendarReference(BaseModel):
    """Pointer from a booking to an entry in a third-party system."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    type: str = Field(description="Provider type, e.g. google_calendar, daily_video")
    uid: str = Field(description="Identifier of the entry at the provider")
    meeting_id: str | None = None
    meeting_password: str | None = None
    meeting_url: str | None = None
    external_calendar_id: str | None = Field(
        default=None, description="Calendar holding the entry"
    )
    credential_id: int | None = Field(
        default=None, description="Credential used to create the entry"
    )

    @property
    def is_calendar(self) -> bool:
        return self.type.endswith("_calendar")


class Booking(BaseModel):
    """A confirmed meeting instance.

    The organizer is ``user``; round-robin participants other than the
    organizer appear in ``attendees``.
    """

    model_config = ConfigDict(str_strip_whitespace=True, from_attributes=True)

    id: int
    uid: str = Field(description="Stable external identifier")
    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime
    location: str | None = None
    user_id: int | None = Field(default=None, description="Organizer user id")
    user: User | None = Field(default=None, description="Organizer")
    user_primary_email: str | None = None
    event_type_id: int | None = None
    attendees: list[Attendee] = Field(default_factory=list)
    references: list[CalendarReference] = Field(default_factory=list)
    responses: dict[str, Any] = Field(
        default_factory=dict, description="Booking form responses"
    )
    custom_inputs: dict[str, Any] | None = None
