"""Notification service for round-robin reassignment emails.

Renders localized emails per recipient, sends them through the email
transport and keeps an audit trail of every attempt.
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any, Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

from roundrobin.models import CalendarEvent, Person, get_video_call_url
from roundrobin.notifications.renderer import EmailRenderer
from roundrobin.notifications.schemas import NotificationRecord, OutgoingEmail

logger = structlog.get_logger()

SCHEDULED_TEMPLATE = "round_robin_scheduled"
CANCELLED_TEMPLATE = "round_robin_cancelled"
REMINDER_TEMPLATE = "workflow_reminder"


class EmailTransport(Protocol):
    async def send(self, message: OutgoingEmail) -> None: ...


def host_emails_disabled(metadata: dict[str, Any] | None) -> bool:
    """Whether the event type turned off standard emails to hosts."""
    disabled = (metadata or {}).get("disableStandardEmails") or {}
    return bool((disabled.get("all") or {}).get("host"))


def _zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


def format_time(value: datetime, person: Person) -> str:
    """Clock time of ``value`` in the person's zone and clock format."""
    local = value.astimezone(_zone(person.time_zone))
    if person.time_format == "HH:mm":
        return local.strftime("%H:%M")
    return local.strftime("%I:%M%p").lstrip("0").lower()


def format_date(value: datetime, person: Person) -> str:
    local = value.astimezone(_zone(person.time_zone))
    return f"{local:%A}, {local:%B} {local.day}, {local.year}"


def format_when(event: CalendarEvent, person: Person) -> str:
    """Date and time range of the event as seen by ``person``."""
    return (
        f"{format_date(event.start_time, person)} "
        f"{format_time(event.start_time, person)} - {format_time(event.end_time, person)} "
        f"({person.time_zone})"
    )


def fill_placeholders(text: str, event: CalendarEvent, person: Person) -> str:
    """Replace reminder variables such as ``{EVENT_NAME}`` in custom text."""
    attendee = event.attendees[0].name if event.attendees else ""
    values = {
        "{EVENT_NAME}": event.title,
        "{ORGANIZER}": event.organizer.name,
        "{ATTENDEE}": attendee,
        "{EVENT_DATE}": format_date(event.start_time, person),
        "{EVENT_TIME}": format_time(event.start_time, person),
        "{TIMEZONE}": person.time_zone,
        "{LOCATION}": event.location or "",
        "{MEETING_URL}": get_video_call_url(event) or "",
    }
    for variable, value in values.items():
        text = text.replace(variable, value)
    return text


class NotificationService:
    """Service for sending and auditing reassignment notifications."""

    def __init__(self, transport: EmailTransport, renderer: EmailRenderer | None = None):
        """Initialize with an email transport.

        Args:
            transport: Transport delivering rendered messages
            renderer: Template renderer. Defaults to packaged templates.
        """
        self._transport = transport
        self._renderer = renderer or EmailRenderer()
        self._audit_log: list[NotificationRecord] = []

    def _context(self, event: CalendarEvent, recipient: Person) -> dict[str, Any]:
        return {
            "t": recipient.language.translate,
            "event": event,
            "recipient": recipient,
            "when": format_when(event, recipient),
            "video_url": get_video_call_url(event),
            "hide_branding": event.hide_branding,
        }

    async def _deliver(
        self,
        template: str,
        subject: str,
        event: CalendarEvent,
        recipient: Person,
        context: dict[str, Any],
        sender_name: str | None = None,
    ) -> None:
        rendered = self._renderer.render(template, subject, context)
        message = OutgoingEmail(
            to=recipient.email,
            to_name=recipient.name or None,
            subject=rendered.subject,
            text=rendered.text,
            html=rendered.html,
            sender_name=sender_name,
            reply_to=event.organizer.email if recipient.email != event.organizer.email else None,
        )
        try:
            await self._transport.send(message)
        except Exception as e:
            self._record_audit(recipient.email, template, event, subject, error=str(e))
            raise
        self._record_audit(recipient.email, template, event, subject)

    async def send_scheduled(
        self, event: CalendarEvent, recipients: Sequence[Person]
    ) -> None:
        """Tell each recipient they now host ``event``.

        Args:
            event: Event built for the new organizer
            recipients: Newly assigned hosts
        """
        for recipient in recipients:
            t = recipient.language.translate
            await self._deliver(
                SCHEDULED_TEMPLATE,
                t("round_robin_scheduled_subject", title=event.title),
                event,
                recipient,
                self._context(event, recipient),
            )

    async def send_cancelled(
        self,
        event: CalendarEvent,
        recipients: Sequence[Person],
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Tell each recipient they no longer host ``event``.

        Skipped entirely when the event type disables standard host emails.

        Args:
            event: Cancellation copy of the event
            recipients: Hosts removed from the booking
            metadata: Event type metadata
        """
        if host_emails_disabled(metadata):
            logger.info(
                "Host emails disabled, skipping cancellation",
                booking_uid=event.uid,
                recipients=len(recipients),
            )
            return
        for recipient in recipients:
            t = recipient.language.translate
            await self._deliver(
                CANCELLED_TEMPLATE,
                t("round_robin_cancelled_subject", title=event.title),
                event,
                recipient,
                self._context(event, recipient),
            )

    async def send_workflow_reminder(
        self,
        event: CalendarEvent,
        recipient: Person,
        email_subject: str | None = None,
        email_body: str | None = None,
        sender_name: str | None = None,
    ) -> None:
        """Send a workflow reminder, using custom text when the step has one.

        Args:
            event: Event the reminder is about
            recipient: Who receives the reminder
            email_subject: Custom subject with reminder variables
            email_body: Custom body with reminder variables
            sender_name: Custom From name
        """
        t = recipient.language.translate
        if email_subject:
            subject = fill_placeholders(email_subject, event, recipient)
        else:
            subject = t(
                "reminder_subject",
                title=event.title,
                date=format_date(event.start_time, recipient),
            )
        context = self._context(event, recipient)
        context["custom_body"] = (
            fill_placeholders(email_body, event, recipient) if email_body else None
        )
        await self._deliver(
            REMINDER_TEMPLATE, subject, event, recipient, context, sender_name=sender_name
        )

    def _record_audit(
        self,
        email: str,
        template: str,
        event: CalendarEvent,
        subject: str,
        error: str | None = None,
    ) -> None:
        record = NotificationRecord(
            recipient_email=email,
            template=template,
            booking_uid=event.uid,
            subject=subject,
            sent_at=datetime.now(UTC),
            success=error is None,
            error=error,
        )
        self._audit_log.append(record)
        logger.info(
            "notification recorded",
            email=email,
            template=template,
            success=record.success,
        )

    def get_audit_log(self) -> list[NotificationRecord]:
        """Return copy of audit log.

        Returns:
            Copy of the audit log list
        """
        return list(self._audit_log)

    def clear_audit_log(self) -> None:
        """Clear audit log."""
        self._audit_log.clear()
