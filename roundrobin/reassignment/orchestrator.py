"""Manual round-robin reassignment of a confirmed booking.

Sequences validation, state mutation, calendar sync, reference replacement,
notification dispatch and workflow migration. The first failure aborts the
flow; steps already committed are left in place.
"""

import asyncio

from roundrobin.config import Settings, get_settings
from roundrobin.context import ReassignmentContext
from roundrobin.errors import NotFoundError, ReassignmentError
from roundrobin.i18n import get_translation
from roundrobin.models import Booking, DestinationCalendar, EventType, User
from roundrobin.reassignment.hosts import organizer_changes, resolve_hosts
from roundrobin.reassignment.materializer import MeetingMaterializer, person_from_user
from roundrobin.reassignment.ports import (
    AttendeePatch,
    CalendarSyncFactory,
    NotificationTransport,
    Storage,
    TranslationProvider,
    WorkflowScheduler,
)
from roundrobin.reassignment.state import ReassignmentRun, ReassignmentState
from roundrobin.reassignment.workflows import WorkflowMigrator


class RoundRobinReassigner:
    """Reassigns a booking to another round-robin host.

    Callers must not run two reassignments of the same booking at once;
    there is no locking here.
    """

    def __init__(
        self,
        storage: Storage,
        calendar_sync_factory: CalendarSyncFactory,
        notifications: NotificationTransport,
        scheduler: WorkflowScheduler,
        translations: TranslationProvider = get_translation,
        settings: Settings | None = None,
    ):
        """Initialize with collaborators.

        Args:
            storage: Booking, user and workflow persistence
            calendar_sync_factory: Builds calendar sync for the new organizer
            notifications: Email transport for scheduled/cancelled notices
            scheduler: Workflow reminder scheduler
            translations: Locale to translator lookup
            settings: Application settings (cached settings if None)
        """
        self._storage = storage
        self._calendar_sync_factory = calendar_sync_factory
        self._notifications = notifications
        self._scheduler = scheduler
        self._translations = translations
        self._settings = settings or get_settings()

    async def reassign(
        self,
        booking_id: int,
        new_user_id: int,
        org_id: int | None = None,
    ) -> Booking:
        """Reassign ``booking_id`` to ``new_user_id``.

        Args:
            booking_id: Booking to reassign
            new_user_id: User id of the round-robin host taking over
            org_id: Organization of the requester (drives booker URLs)

        Returns:
            The booking as persisted after reassignment

        Raises:
            NotFoundError: Booking, organizer or event type missing
            InvalidTargetError: Target isn't a host of the event type
            FixedHostTargetError: Target is a fixed host
            CollaboratorFailure: A storage, calendar, notification,
                translation or scheduler call failed
        """
        ctx = ReassignmentContext(
            booking_id=booking_id,
            org_id=org_id,
            translations=self._translations,
            settings=self._settings,
        )
        run = ReassignmentRun(ctx.log)
        try:
            booking = await self._run(ctx, run, new_user_id)
        except ReassignmentError as e:
            run.fail(e)
            raise
        ctx.log.info("booking reassigned", new_user_id=new_user_id, states=len(run.history))
        return booking

    async def _load(self, run: ReassignmentRun, booking_id: int) -> Booking:
        async with run.collaborator("storage"):
            booking = await self._storage.get_booking(booking_id)
        if booking is None or booking.user is None:
            raise NotFoundError(f"Booking {booking_id} not found or has no associated user")
        return booking

    async def _destination_calendars(
        self,
        event_type: EventType,
        booking: Booking,
        new_user: User,
        changed: bool,
    ) -> list[DestinationCalendar]:
        if event_type.destination_calendar:
            return [event_type.destination_calendar]
        owner_id = new_user.id if changed else booking.user.id
        calendar = await self._storage.find_destination_calendar(owner_id)
        return [calendar] if calendar else []

    async def _run(
        self,
        ctx: ReassignmentContext,
        run: ReassignmentRun,
        new_user_id: int,
    ) -> Booking:
        log = ctx.log
        storage = self._storage

        # Validating
        booking = await self._load(run, ctx.booking_id)
        if booking.event_type_id is None:
            log.error("booking has no event type id")
            raise NotFoundError("Event type not found")
        async with run.collaborator("storage"):
            event_type = await storage.get_event_type(booking.event_type_id)
        if event_type is None:
            log.error("event type not found", event_type_id=booking.event_type_id)
            raise NotFoundError("Event type not found")
        resolution = resolve_hosts(event_type, booking.attendees, new_user_id)

        # Mutating
        run.advance(ReassignmentState.MUTATING)
        original_organizer = booking.user
        new_user = resolution.target.user
        changed = organizer_changes(booking, resolution)
        log.info(
            "reassigning booking",
            previous_organizer_id=original_organizer.id,
            new_user_id=new_user.id,
            organizer_changed=changed,
        )

        async with run.collaborator("translation"):
            new_user_t, original_t = await asyncio.gather(
                ctx.translations(new_user.locale or ctx.default_locale, "common"),
                ctx.translations(original_organizer.locale or ctx.default_locale, "common"),
            )
        materializer = MeetingMaterializer(ctx)

        if changed:
            patch = materializer.organizer_update(booking, event_type, new_user, new_user_t)
            async with run.collaborator("storage"):
                booking = await storage.update_booking(booking.id, patch)
        elif resolution.current_rr_attendee is not None:
            async with run.collaborator("storage"):
                await storage.update_attendee(
                    resolution.current_rr_attendee.id,
                    AttendeePatch(
                        name=new_user.name or "",
                        email=new_user.email,
                        time_zone=new_user.time_zone,
                        locale=new_user.locale,
                    ),
                )
            booking = await self._load(run, booking.id)

        # Syncing
        run.advance(ReassignmentState.SYNCING)
        async with run.collaborator("storage"):
            destination_calendars = await self._destination_calendars(
                event_type, booking, new_user, changed
            )
            previous_host_calendar = (
                await storage.find_destination_calendar(original_organizer.id)
                if changed
                else None
            )
            credentials = await storage.find_credentials(new_user.id)

        async with run.collaborator("translation"):
            event = await materializer.build_calendar_event(
                booking,
                event_type,
                organizer=new_user,
                organizer_t=new_user_t,
                previous_organizer=original_organizer,
                hosts=resolution.hosts,
                destination_calendars=destination_calendars,
            )

        async with run.collaborator("calendar_sync"):
            calendar_sync = self._calendar_sync_factory(new_user, credentials)
            result = await calendar_sync.reschedule(
                event,
                booking.uid,
                changed,
                [previous_host_calendar] if previous_host_calendar else [],
            )
        references = [ref.model_copy() for ref in result.references_to_create]

        # References replaced
        run.advance(ReassignmentState.REFERENCES_REPLACED)
        async with run.collaborator("storage"):
            await storage.replace_calendar_references(booking.id, references)
        log.info("calendar references replaced", count=len(references))

        # Notifying
        run.advance(ReassignmentState.NOTIFYING)
        new_host = person_from_user(new_user, new_user_t)
        previous_host = person_from_user(original_organizer, original_t)
        async with run.collaborator("notifications"):
            await self._notifications.send_scheduled(event, [new_host])
        async with run.collaborator("notifications"):
            await self._notifications.send_cancelled(
                event.with_organizer(previous_host),
                [previous_host],
                event_type.metadata,
            )

        if changed:
            run.advance(ReassignmentState.MIGRATING_WORKFLOWS)
            migrator = WorkflowMigrator(ctx, storage, self._scheduler, run)
            await migrator.migrate(booking, new_user, event, event_type)

        final = await self._load(run, booking.id)
        run.advance(ReassignmentState.DONE)
        return final
