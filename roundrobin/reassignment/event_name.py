"""Booking title templating."""

import re
from dataclasses import dataclass, field
from typing import Any

from roundrobin.i18n import Translator
from roundrobin.reassignment.locations import location_label

_VARIABLE = re.compile(r"\{(.+?)\}")


@dataclass(frozen=True)
class EventNameInput:
    """Everything a booking title can be derived from."""

    attendee_name: str
    event_type: str
    host: str
    t: Translator
    event_name: str | None = None
    team_name: str | None = None
    location: str | None = None
    booking_fields: dict[str, Any] = field(default_factory=dict)
    event_duration: int | None = None


def _first_name(name: str) -> str:
    return name.split(" ")[0] if name else ""


def _field_value(value: Any) -> str | None:
    if isinstance(value, dict):
        inner = value.get("value")
        return str(inner) if inner is not None else None
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    if value is None:
        return None
    return str(value)


def get_event_name(data: EventNameInput, for_attendee_view: bool = False) -> str:
    """Render the booking title.

    Without a custom template the translated "between" title is used, naming
    the team instead of the host for team event types.
    """
    if not data.event_name:
        return data.t(
            "event_between_users",
            eventName=data.event_type,
            host=data.team_name or data.host,
            attendeeName=data.attendee_name,
        )

    name = data.event_name
    if "{Location}" in name or "{LOCATION}" in name:
        label = location_label(data.location)
        name = name.replace("{Location}", label).replace("{LOCATION}", label)

    duration = f"{data.event_duration} {data.t('mins')}" if data.event_duration else ""
    replacements = {
        "{Event type title}": data.event_type,
        "{Scheduler}": data.attendee_name,
        "{Organiser}": data.host,
        "{Organiser first name}": _first_name(data.host),
        "{Scheduler first name}": _first_name(data.attendee_name),
        "{ATTENDEE_FIRST_NAME}": _first_name(data.attendee_name),
        "{USER}": data.attendee_name,
        "{ATTENDEE}": data.attendee_name,
        "{HOST}": data.host,
        "{HOST/ATTENDEE}": data.host if for_attendee_view else data.attendee_name,
        "{Event duration}": duration,
    }
    for variable, value in replacements.items():
        name = name.replace(variable, value)

    for variable in _VARIABLE.findall(name):
        if variable in data.booking_fields:
            value = _field_value(data.booking_fields[variable])
            if value is not None:
                name = name.replace(f"{{{variable}}}", value)
    return name
