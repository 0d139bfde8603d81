"""Email reminder scheduling for workflow steps.

Immediate triggers are sent right away. Timed reminders are stored as
reminder jobs: jobs due inside the scheduling window are marked scheduled
with a delivery reference, later ones wait for a future sweep.
"""

import uuid
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import structlog

from roundrobin.config import Settings, get_settings
from roundrobin.models import (
    CalendarEvent,
    Person,
    TimeUnit,
    WorkflowAction,
    WorkflowMethod,
    WorkflowTrigger,
)
from roundrobin.notifications import NotificationService
from roundrobin.reassignment.ports import (
    EmailReminderRequest,
    TimeSpan,
    WorkflowRemindersRequest,
)
from roundrobin.repositories import WorkflowRepository

logger = structlog.get_logger()

IMMEDIATE_TRIGGERS = frozenset(
    {
        WorkflowTrigger.NEW_EVENT,
        WorkflowTrigger.EVENT_CANCELLED,
        WorkflowTrigger.RESCHEDULE_EVENT,
    }
)

_UNITS = {
    TimeUnit.DAY: "days",
    TimeUnit.HOUR: "hours",
    TimeUnit.MINUTE: "minutes",
}


def offset(time_span: TimeSpan) -> timedelta:
    if time_span.time is None or time_span.time_unit is None:
        return timedelta(0)
    return timedelta(**{_UNITS[time_span.time_unit]: time_span.time})


def send_date(
    trigger: WorkflowTrigger, event: CalendarEvent, time_span: TimeSpan
) -> datetime | None:
    """When a timed reminder goes out, or None for immediate triggers."""
    if trigger == WorkflowTrigger.BEFORE_EVENT:
        return event.start_time - offset(time_span)
    if trigger == WorkflowTrigger.AFTER_EVENT:
        return event.end_time + offset(time_span)
    return None


def recipient_for(event: CalendarEvent, email: str) -> Person:
    """The event participant with ``email``, or a guest in the organizer's locale."""
    people = [event.organizer, *event.attendees]
    if event.team:
        people.extend(event.team.members)
    for person in people:
        if person.email.lower() == email.lower():
            return person
    return Person(
        email=email,
        time_zone=event.organizer.time_zone,
        time_format=event.organizer.time_format,
        language=event.organizer.language,
    )


class ReminderScheduler:
    """Schedules and cancels workflow email reminders."""

    def __init__(
        self,
        workflows: WorkflowRepository,
        notifications: NotificationService,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize the scheduler.

        Args:
            workflows: Repository storing reminder jobs
            notifications: Service sending emails
            settings: Settings with the scheduling window
            clock: Returns the current time. Defaults to UTC now.
        """
        self._workflows = workflows
        self._notifications = notifications
        self._settings = settings or get_settings()
        self._clock = clock or (lambda: datetime.now(UTC))

    async def schedule_email_reminder(self, request: EmailReminderRequest) -> None:
        """Send or store one email reminder.

        Args:
            request: Reminder to schedule
        """
        event = request.event
        if request.trigger in IMMEDIATE_TRIGGERS:
            await self._notifications.send_workflow_reminder(
                event,
                recipient_for(event, request.send_to),
                email_subject=request.email_subject,
                email_body=request.email_body,
                sender_name=request.sender_name,
            )
            logger.info(
                "Reminder sent immediately",
                booking_uid=event.uid,
                trigger=request.trigger.value,
                send_to=request.send_to,
            )
            return

        scheduled_date = send_date(request.trigger, event, request.time_span)
        now = self._clock()
        if scheduled_date is None or scheduled_date < now:
            logger.info(
                "Reminder date passed, skipping",
                booking_uid=event.uid,
                trigger=request.trigger.value,
                scheduled_date=scheduled_date.isoformat() if scheduled_date else None,
            )
            return

        window = timedelta(hours=self._settings.reminder_schedule_window_hours)
        scheduled = scheduled_date <= now + window
        reminder_id = await self._workflows.create_reminder(
            booking_uid=event.uid,
            method=WorkflowMethod.EMAIL,
            scheduled_date=scheduled_date,
            workflow_step_id=request.workflow_step_id,
            reference_id=uuid.uuid4().hex if scheduled else None,
            scheduled=scheduled,
        )
        logger.info(
            "Reminder stored",
            reminder_id=reminder_id,
            booking_uid=event.uid,
            scheduled_date=scheduled_date.isoformat(),
            scheduled=scheduled,
        )

    async def delete_scheduled_email_reminder(
        self, reminder_id: int, reference_id: str | None
    ) -> None:
        """Cancel a reminder job and forget it."""
        deleted = await self._workflows.delete_reminder(reminder_id)
        logger.info(
            "Reminder deleted",
            reminder_id=reminder_id,
            reference_id=reference_id,
            found=deleted,
        )

    async def schedule_workflow_reminders(self, request: WorkflowRemindersRequest) -> None:
        """Schedule every email step of ``request.workflows``.

        SMS steps are not delivered by this scheduler and are skipped.
        """
        event = request.calendar_event
        for workflow in request.workflows:
            for step in workflow.steps:
                if step.action == WorkflowAction.EMAIL_HOST:
                    recipients = [event.organizer.email]
                elif step.action == WorkflowAction.EMAIL_ATTENDEE:
                    recipients = [a.email for a in event.attendees]
                elif step.action == WorkflowAction.EMAIL_ADDRESS and step.send_to:
                    recipients = [step.send_to]
                else:
                    logger.info(
                        "Skipping non-email workflow step",
                        workflow_id=workflow.id,
                        step_id=step.id,
                        action=step.action.value,
                    )
                    continue
                for send_to in recipients:
                    await self.schedule_email_reminder(
                        EmailReminderRequest(
                            event=event,
                            action=step.action,
                            trigger=workflow.trigger,
                            time_span=TimeSpan(
                                time=workflow.time, time_unit=workflow.time_unit
                            ),
                            send_to=send_to,
                            template=step.template,
                            workflow_step_id=step.id,
                            email_subject=step.email_subject,
                            email_body=step.reminder_body,
                            sender_name=step.sender_name,
                        )
                    )

    async def sweep_due_reminders(self) -> int:
        """Hand stored reminders entering the scheduling window to delivery.

        Reminders whose date already passed without being scheduled are
        dropped.

        Returns:
            Number of reminders newly scheduled
        """
        now = self._clock()
        window = timedelta(hours=self._settings.reminder_schedule_window_hours)
        due = await self._workflows.find_unscheduled_reminders(now + window)
        scheduled = 0
        for reminder in due:
            if reminder.scheduled_date < now:
                await self._workflows.delete_reminder(reminder.id)
                logger.info(
                    "Expired reminder dropped",
                    reminder_id=reminder.id,
                    booking_uid=reminder.booking_uid,
                )
                continue
            if await self._workflows.mark_reminder_scheduled(reminder.id, uuid.uuid4().hex):
                scheduled += 1
        if due:
            logger.info("Reminder sweep finished", due=len(due), scheduled=scheduled)
        return scheduled
