"""Moves host-email workflow reminders to a booking's new organizer.

Runs only when reassignment changed the organizer. Each pending reminder is
replaced before it is cancelled, so a crash mid-migration can duplicate a
reminder but never drop one.
"""

from dataclasses import dataclass

from roundrobin.context import ReassignmentContext
from roundrobin.models import (
    Booking,
    CalendarEvent,
    EventType,
    ReminderFilter,
    User,
    WorkflowAction,
    WorkflowFilter,
    WorkflowTrigger,
    get_video_call_url,
)
from roundrobin.reassignment.ports import (
    EmailReminderRequest,
    Storage,
    TimeSpan,
    WorkflowRemindersRequest,
    WorkflowScheduler,
)
from roundrobin.reassignment.state import ReassignmentRun


@dataclass
class MigrationSummary:
    rescheduled: int = 0
    cancelled: int = 0
    new_event_workflows: int = 0


def new_event_workflow_filter(event_type: EventType) -> WorkflowFilter:
    """Workflows that treat the new organizer as having just been booked."""
    team_ids: list[int] = []
    if event_type.team_id is not None:
        team_ids.append(event_type.team_id)
    if event_type.team and event_type.team.parent_id is not None:
        team_ids.append(event_type.team.parent_id)
    return WorkflowFilter(
        trigger=WorkflowTrigger.NEW_EVENT,
        event_type_id=event_type.id,
        team_id=event_type.team_id,
        active_on_all_team_ids=tuple(team_ids),
        step_action=WorkflowAction.EMAIL_HOST,
    )


class WorkflowMigrator:
    """Reschedules host reminders and fires new-event workflows for a new organizer."""

    def __init__(
        self,
        ctx: ReassignmentContext,
        storage: Storage,
        scheduler: WorkflowScheduler,
        run: ReassignmentRun | None = None,
    ):
        self._ctx = ctx
        self._storage = storage
        self._scheduler = scheduler
        self._run = run or ReassignmentRun(ctx.log)

    async def booker_base_url(self) -> str:
        """Origin bookers use: the organization's subdomain, else the website."""
        settings = self._ctx.settings
        if self._ctx.org_id is None:
            return settings.website_url
        async with self._run.collaborator("storage"):
            org = await self._storage.get_team(self._ctx.org_id)
        if org is None or not org.slug:
            return settings.website_url
        scheme = settings.website_url.split("://", 1)[0] if "://" in settings.website_url else "https"
        return f"{scheme}://{org.slug}.{settings.website_domain}"

    async def migrate(
        self,
        booking: Booking,
        new_organizer: User,
        event: CalendarEvent,
        event_type: EventType,
    ) -> MigrationSummary:
        """Point pending host-email reminders and new-event workflows at ``new_organizer``.

        Args:
            booking: Booking after reassignment
            new_organizer: User now owning the booking
            event: Calendar event built for the new organizer
            event_type: Event type of the booking

        Returns:
            MigrationSummary with counts of what was moved
        """
        summary = MigrationSummary()
        log = self._ctx.log

        async with self._run.collaborator("storage"):
            reminders = await self._storage.find_pending_reminders(
                booking.uid, ReminderFilter()
            )

        booker_url = await self.booker_base_url()
        workflow_event = event.model_copy(
            update={
                "metadata": {"video_call_url": get_video_call_url(event)},
                "booker_url": booker_url,
            },
            deep=True,
        )

        for reminder in reminders:
            step, workflow = reminder.step, reminder.workflow
            if step and workflow:
                async with self._run.collaborator("workflow_scheduler"):
                    await self._scheduler.schedule_email_reminder(
                        EmailReminderRequest(
                            event=workflow_event,
                            action=WorkflowAction.EMAIL_HOST,
                            trigger=workflow.trigger,
                            time_span=TimeSpan(time=workflow.time, time_unit=workflow.time_unit),
                            send_to=new_organizer.email,
                            template=step.template,
                            workflow_step_id=step.id,
                        )
                    )
                summary.rescheduled += 1
            async with self._run.collaborator("workflow_scheduler"):
                await self._scheduler.delete_scheduled_email_reminder(
                    reminder.id, reminder.reference_id
                )
            summary.cancelled += 1

        async with self._run.collaborator("storage"):
            workflows = await self._storage.find_workflows(
                new_event_workflow_filter(event_type)
            )
        hide_branding = bool(event_type.owner and event_type.owner.hide_branding)
        async with self._run.collaborator("workflow_scheduler"):
            await self._scheduler.schedule_workflow_reminders(
                WorkflowRemindersRequest(
                    workflows=workflows,
                    calendar_event=workflow_event.model_copy(
                        update={"hide_branding": hide_branding}, deep=True
                    ),
                    sms_reminder_number=None,
                    hide_branding=hide_branding,
                )
            )
        summary.new_event_workflows = len(workflows)

        log.info(
            "workflows migrated",
            new_organizer_id=new_organizer.id,
            rescheduled=summary.rescheduled,
            cancelled=summary.cancelled,
            new_event_workflows=summary.new_event_workflows,
        )
        return summary
