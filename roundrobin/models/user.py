"""User, host and credential models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class User(BaseModel):
    """A person who can host bookings."""

    model_config = ConfigDict(str_strip_whitespace=True, from_attributes=True)

    id: int = Field(description="User identifier")
    username: str | None = Field(default=None, description="Public username")
    name: str | None = Field(default=None, description="Display name")
    email: EmailStr = Field(description="Primary email address")
    locale: str | None = Field(default=None, description="Preferred locale (en, nl, ...)")
    time_zone: str = Field(default="UTC", description="IANA time zone")
    time_format: int | None = Field(
        default=None, description="Preferred clock format (12 or 24)"
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Free-form profile metadata (default conferencing app, ...)",
    )


class Host(BaseModel):
    """A user attached to an event type as fixed or round-robin host."""

    model_config = ConfigDict(from_attributes=True)

    user: User = Field(description="The hosting user")
    is_fixed: bool = Field(default=False, description="Always included on bookings")
    priority: int | None = Field(default=2, description="Round-robin priority")
    weight: int | None = Field(default=100, description="Round-robin weight")
    weight_adjustment: int | None = Field(default=0)
    schedule_id: int | None = Field(default=None, description="Explicit schedule")


class Credential(BaseModel):
    """App credential owned by a user (calendar or conferencing integration)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str = Field(description="Integration type, e.g. google_calendar")
    key: dict[str, Any] = Field(default_factory=dict, description="Provider secrets")
    user_id: int | None = None
    app_id: str | None = None
    invalid: bool = False


class DestinationCalendar(BaseModel):
    """Calendar a user or event type designates as the sync target."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    integration: str = Field(description="Integration type, e.g. google_calendar")
    external_id: str = Field(description="Calendar id at the provider")
    primary_email: str | None = None
    user_id: int | None = None
    event_type_id: int | None = None
    credential_id: int | None = None


class Team(BaseModel):
    """A team (or organization) owning event types."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str | None = None
    parent_id: int | None = None
    hide_branding: bool = False
