"""Booking location resolution.

Locations are stored either as a provider type (``integrations:daily``) or as
a concrete value (a link, an address). Dynamic-link providers generate their
URL later and are stored as their type.
"""

from dataclasses import dataclass
from typing import Any, Literal

from roundrobin.models import EventType, User

ORGANIZER_DEFAULT_CONFERENCING_APP = "conferencing"
DEFAULT_LOCATION = "integrations:daily"


@dataclass(frozen=True)
class LocationType:
    type: str
    label: str
    link_type: Literal["static", "dynamic"] | None = None
    default_value_variable: str | None = None
    default: bool = False


LOCATION_TYPES: dict[str, LocationType] = {
    loc.type: loc
    for loc in (
        LocationType("integrations:daily", "Cal Video", link_type="dynamic", default=True),
        LocationType("integrations:zoom", "Zoom", link_type="dynamic"),
        LocationType("integrations:google:meet", "Google Meet", link_type="dynamic"),
        LocationType("integrations:office365_video", "MS Teams", link_type="dynamic"),
        LocationType(ORGANIZER_DEFAULT_CONFERENCING_APP, "Organizer Default App"),
        LocationType("inPerson", "In Person (Organizer Address)", default_value_variable="address"),
        LocationType("attendeeInPerson", "In Person (Attendee Address)", default_value_variable="address"),
        LocationType("link", "Link meeting", link_type="static", default_value_variable="link"),
        LocationType("userPhone", "Organizer Phone Number", default_value_variable="hostPhoneNumber"),
        LocationType("phone", "Attendee Phone Number", default_value_variable="phone"),
    )
}


def get_location_type(value: str | None) -> LocationType | None:
    if not value:
        return None
    return LOCATION_TYPES.get(value)


def location_label(value: str | None) -> str:
    """Human label for ``value``; plain values are returned unchanged."""
    location_type = get_location_type(value)
    if location_type:
        return location_type.label
    return value or ""


def get_location_value_for_db(
    location: str,
    event_locations: list[dict[str, Any]],
) -> tuple[str, int | None]:
    """Resolve a location type against the event type's configured locations.

    Args:
        location: Location type or value
        event_locations: Locations configured on the event type

    Returns:
        Tuple of (booking_location, conference_credential_id)
    """
    booking_location = location
    credential_id = None
    for configured in event_locations:
        if configured.get("type") != location:
            continue
        location_type = get_location_type(location)
        credential_id = configured.get("credentialId")
        if location_type is None:
            continue
        if not location_type.default and location_type.link_type == "dynamic":
            continue
        if location_type.default_value_variable:
            booking_location = (
                configured.get(location_type.default_value_variable) or booking_location
            )
    return booking_location, credential_id


def uses_organizer_default_app(event_type: EventType) -> bool:
    return any(
        loc.get("type") == ORGANIZER_DEFAULT_CONFERENCING_APP
        for loc in event_type.locations
    )


def default_conferencing_link(user: User) -> str | None:
    """App link of the user's default conferencing app, if configured."""
    app = (user.metadata or {}).get("defaultConferencingApp")
    if isinstance(app, dict):
        link = app.get("appLink")
        if isinstance(link, str) and link:
            return link
    return None


def resolve_booking_location(
    event_type: EventType,
    current_location: str | None,
    new_organizer: User,
    default_location: str = DEFAULT_LOCATION,
) -> str | None:
    """Location the booking should have once ``new_organizer`` owns it.

    The new organizer's default conferencing link wins when the event type
    uses the organizer's default app. Otherwise the current location is
    kept, resolved against the event type's configured locations.
    """
    if not uses_organizer_default_app(event_type):
        return current_location
    link = default_conferencing_link(new_organizer)
    if link:
        return link
    resolved, _ = get_location_value_for_db(
        current_location or default_location, event_type.locations
    )
    return resolved
