"""Booking form response parsing.

Responses are validated against a pydantic model generated from the event
type's booking fields. The outcome is a tagged result so callers decide
explicitly what to do when stored responses no longer fit the form.
"""

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, create_model

from roundrobin.models import Booking, BookingField, FieldResponse

SYSTEM_FIELDS = frozenset(
    {
        "name",
        "email",
        "location",
        "title",
        "notes",
        "guests",
        "rescheduleReason",
        "smsReminderNumber",
        "attendeePhoneNumber",
    }
)

# Never required when re-validating an existing booking.
RESCHEDULE_OPTIONAL_FIELDS = frozenset({"rescheduleReason"})

View = Literal["booking", "reschedule"]


class FullName(BaseModel):
    firstName: str
    lastName: str = ""


class OptionValue(BaseModel):
    model_config = ConfigDict(extra="allow")

    value: str
    optionValue: str | None = None


_FIELD_TYPES: dict[str, Any] = {
    "text": str,
    "textarea": str,
    "email": str,
    "phone": str,
    "address": str,
    "url": str,
    "select": str,
    "radio": str,
    "number": float,
    "boolean": bool,
    "checkbox": list[str],
    "multiselect": list[str],
    "multiemail": list[str],
    "name": str | FullName,
    "radioInput": OptionValue | str,
}


@dataclass(frozen=True)
class ParsedResponses:
    data: dict[str, Any]
    ok: Literal[True] = True


@dataclass(frozen=True)
class UnparsedResponses:
    errors: list[str] = field(default_factory=list)
    ok: Literal[False] = False

    @property
    def data(self) -> None:
        return None


ResponsesResult = ParsedResponses | UnparsedResponses


def _is_required(booking_field: BookingField, view: View) -> bool:
    if booking_field.hidden or not booking_field.required:
        return False
    if view == "reschedule" and booking_field.name in RESCHEDULE_OPTIONAL_FIELDS:
        return False
    return True


def build_responses_model(
    booking_fields: list[BookingField], view: View = "booking"
) -> type[BaseModel]:
    """Create a pydantic model validating responses for ``booking_fields``."""
    definitions: dict[str, Any] = {}
    for booking_field in booking_fields:
        annotation = _FIELD_TYPES.get(booking_field.type, Any)
        if _is_required(booking_field, view):
            definitions[booking_field.name] = (annotation, Field(...))
        else:
            definitions[booking_field.name] = (annotation | None, Field(default=None))
    return create_model(
        "BookingResponses",
        __config__=ConfigDict(extra="allow"),
        **definitions,
    )


def parse_booking_responses(
    responses: dict[str, Any],
    booking_fields: list[BookingField],
    view: View = "reschedule",
) -> ResponsesResult:
    """Validate stored responses against the booking form.

    Args:
        responses: Raw responses stored on the booking
        booking_fields: Booking form of the event type
        view: Which form view to validate for

    Returns:
        ParsedResponses with normalized data, or UnparsedResponses
    """
    model = build_responses_model(booking_fields, view)
    try:
        parsed = model.model_validate(responses or {})
    except ValidationError as e:
        return UnparsedResponses(
            errors=[f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()]
        )
    data = parsed.model_dump(exclude_none=True)
    return ParsedResponses(data=data)


def attendee_name(result: ResponsesResult) -> str | None:
    """Return the booker's name from parsed responses, joining name objects."""
    if not isinstance(result, ParsedResponses):
        return None
    name = result.data.get("name")
    if isinstance(name, dict):
        return " ".join(p for p in (name.get("firstName"), name.get("lastName")) if p)
    return name or None


def build_event_responses(
    booking_fields: list[BookingField] | None,
    booking: Booking,
) -> tuple[dict[str, FieldResponse], dict[str, FieldResponse]]:
    """Label the booking's responses for the calendar event.

    Returns:
        Tuple of (responses, user_fields_responses). The second mapping only
        holds fields that aren't system fields.
    """
    responses: dict[str, FieldResponse] = {}
    user_fields: dict[str, FieldResponse] = {}
    stored = booking.responses or {}

    if not booking_fields:
        for name, value in stored.items():
            responses[name] = FieldResponse(label=name, value=value)
        return responses, user_fields

    for booking_field in booking_fields:
        if booking_field.name not in stored:
            continue
        response = FieldResponse(
            label=booking_field.label or booking_field.name,
            value=stored[booking_field.name],
            is_hidden=booking_field.hidden,
        )
        responses[booking_field.name] = response
        if booking_field.name not in SYSTEM_FIELDS:
            user_fields[booking_field.name] = response
    return responses, user_fields
