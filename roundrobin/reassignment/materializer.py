"""Builds the calendar event representation of a reassigned booking.

The materializer recomputes what depends on the organizer (title, location,
organizer identity, team roster) and assembles the immutable CalendarEvent
handed to calendar sync and notifications.
"""

import asyncio
from collections.abc import Sequence
from datetime import UTC, datetime

from roundrobin.context import ReassignmentContext
from roundrobin.i18n import Translator
from roundrobin.models import (
    MANUAL_REASSIGNMENT_REASON,
    Attendee,
    Booking,
    CalendarEvent,
    DestinationCalendar,
    EventType,
    Host,
    Language,
    Person,
    TeamRoster,
    User,
    VideoCallData,
    time_format_string,
)
from roundrobin.reassignment.event_name import EventNameInput, get_event_name
from roundrobin.reassignment.locations import resolve_booking_location
from roundrobin.reassignment.ports import BookingPatch
from roundrobin.reassignment.responses import (
    ParsedResponses,
    attendee_name,
    build_event_responses,
    parse_booking_responses,
)

NAMELESS = "Nameless"


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def video_call_data(booking: Booking) -> VideoCallData | None:
    """Join details of the booking's video conference reference, if any."""
    video = next((ref for ref in booking.references if ref.type.endswith("_video")), None)
    if video is None:
        return None
    return VideoCallData(
        type=video.type,
        id=video.meeting_id,
        password=video.meeting_password,
        url=video.meeting_url,
    )


def person_from_user(user: User, t: Translator) -> Person:
    return Person(
        id=user.id,
        email=user.email,
        name=user.name or "",
        username=user.username or "",
        time_zone=user.time_zone,
        time_format=time_format_string(user.time_format),
        language=Language(locale=user.locale or t.locale, translate=t),
    )


def person_from_attendee(attendee: Attendee, t: Translator) -> Person:
    return Person(
        email=attendee.email,
        name=attendee.name,
        time_zone=attendee.time_zone,
        language=Language(locale=attendee.locale or t.locale, translate=t),
        phone_number=attendee.phone_number or None,
    )


class MeetingMaterializer:
    """Derives title, location and the calendar event for a new organizer."""

    def __init__(self, ctx: ReassignmentContext):
        self._ctx = ctx

    async def _translator(self, locale: str | None) -> Translator:
        return await self._ctx.translations(locale or self._ctx.default_locale, "common")

    def organizer_update(
        self,
        booking: Booking,
        event_type: EventType,
        new_organizer: User,
        t: Translator,
    ) -> BookingPatch:
        """Booking fields to persist when ``new_organizer`` takes ownership.

        Responses that no longer fit the booking form only cost the title its
        booker name; they never abort the reassignment.
        """
        parsed = parse_booking_responses(
            booking.responses, event_type.booking_fields, view="reschedule"
        )
        if not isinstance(parsed, ParsedResponses):
            self._ctx.log.warning(
                "booking responses did not parse", errors=parsed.errors
            )
        responses = parsed.data or {}

        location = resolve_booking_location(
            event_type,
            booking.location,
            new_organizer,
            default_location=self._ctx.settings.default_conferencing_location,
        )
        title = get_event_name(
            EventNameInput(
                attendee_name=attendee_name(parsed) or NAMELESS,
                event_type=event_type.title,
                event_name=event_type.event_name,
                team_name=event_type.team.name if event_type.team else None,
                host=new_organizer.name or NAMELESS,
                location=location or self._ctx.settings.default_conferencing_location,
                booking_fields=dict(responses),
                event_duration=event_type.length,
                t=t,
            )
        )
        return BookingPatch(
            user_id=new_organizer.id,
            title=title,
            user_primary_email=new_organizer.email,
            location=location,
        )

    async def build_team_members(
        self,
        hosts: Sequence[Host],
        attendees: Sequence[Attendee],
        organizer: User,
        previous_host: User,
        reassigned_host: User,
    ) -> tuple[Person, ...]:
        """Team roster: attending hosts other than the organizer and previous host.

        The reassigned host is always listed unless they are the organizer.
        """
        attendee_emails = {attendee.email for attendee in attendees}
        members = [
            host.user
            for host in hosts
            if host.user.email not in (previous_host.email, organizer.email)
            and host.user.email in attendee_emails
        ]
        if reassigned_host.email != organizer.email:
            members.append(reassigned_host)

        unique: dict[str, User] = {}
        for user in members:
            unique.setdefault(user.email, user)
        translators = await asyncio.gather(
            *(self._translator(user.locale) for user in unique.values())
        )
        return tuple(
            person_from_user(user, t) for user, t in zip(unique.values(), translators)
        )

    async def build_attendees(self, attendees: Sequence[Attendee]) -> tuple[Person, ...]:
        translators = await asyncio.gather(
            *(self._translator(attendee.locale) for attendee in attendees)
        )
        return tuple(
            person_from_attendee(attendee, t)
            for attendee, t in zip(attendees, translators)
        )

    async def build_calendar_event(
        self,
        booking: Booking,
        event_type: EventType,
        organizer: User,
        organizer_t: Translator,
        previous_organizer: User,
        hosts: Sequence[Host],
        destination_calendars: Sequence[DestinationCalendar],
    ) -> CalendarEvent:
        """Assemble the calendar event for ``booking`` owned by ``organizer``.

        Args:
            booking: Booking as persisted after the mutation step
            event_type: Event type of the booking
            organizer: New organizer (or reassigned round-robin host)
            organizer_t: Translator for the organizer's locale
            previous_organizer: Organizer before reassignment
            hosts: Effective hosts of the event type
            destination_calendars: Calendars the event should be written to

        Returns:
            Immutable CalendarEvent
        """
        attendees, team_members = await asyncio.gather(
            self.build_attendees(booking.attendees),
            self.build_team_members(
                hosts,
                booking.attendees,
                organizer=organizer,
                previous_host=previous_organizer,
                reassigned_host=organizer,
            ),
        )
        responses, user_fields_responses = build_event_responses(
            event_type.booking_fields, booking
        )
        team = event_type.team
        return CalendarEvent(
            type=event_type.slug,
            title=booking.title,
            description=event_type.description,
            start_time=_utc(booking.start_time),
            end_time=_utc(booking.end_time),
            organizer=person_from_user(organizer, organizer_t),
            attendees=attendees,
            uid=booking.uid,
            location=booking.location,
            destination_calendars=tuple(destination_calendars),
            team=TeamRoster(
                members=team_members,
                name=team.name if team else "",
                id=team.id if team else 0,
            ),
            custom_inputs=booking.custom_inputs
            if isinstance(booking.custom_inputs, dict)
            else None,
            responses=responses,
            user_fields_responses=user_fields_responses,
            video_call_data=video_call_data(booking),
            cancellation_reason=MANUAL_REASSIGNMENT_REASON,
        )
