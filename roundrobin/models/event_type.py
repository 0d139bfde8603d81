"""Event type (booking template) models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from roundrobin.models.user import DestinationCalendar, Host, Team, User


class BookingField(BaseModel):
    """One field of an event type's booking form."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    type: str = "text"
    label: str | None = None
    required: bool = False
    hidden: bool = False
    editable: str | None = Field(
        default=None, description="system, system-but-optional, user, ..."
    )
    options: list[dict[str, Any]] | None = None


class EventTypeOwner(BaseModel):
    """Subset of the owning user relevant to workflows."""

    id: int
    hide_branding: bool = False


class EventType(BaseModel):
    """Template metadata for bookings. Read-only for reassignment."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    slug: str
    title: str
    event_name: str | None = Field(default=None, description="Custom title template")
    description: str | None = None
    length: int = Field(default=30, description="Duration in minutes")
    locations: list[dict[str, Any]] = Field(default_factory=list)
    booking_fields: list[BookingField] = Field(default_factory=list)
    team_id: int | None = None
    team: Team | None = None
    owner: EventTypeOwner | None = None
    hosts: list[Host] = Field(default_factory=list)
    users: list[User] = Field(default_factory=list)
    destination_calendar: DestinationCalendar | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
