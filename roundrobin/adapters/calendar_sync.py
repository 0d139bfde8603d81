"""Provider-agnostic calendar synchronisation for a reassigned booking.

Moves or updates the external calendar events recorded as a booking's
calendar references. Each reference is handled by the provider registered
for its type, acting with the credential that created it.
"""

from collections.abc import Callable, Mapping, Sequence
from typing import Protocol

import structlog

from roundrobin.models import (
    CalendarEvent,
    CalendarReference,
    Credential,
    DestinationCalendar,
    User,
)
from roundrobin.reassignment.ports import (
    CalendarSync,
    CalendarSyncFactory,
    RescheduleResult,
    Storage,
)

logger = structlog.get_logger()

PRIMARY_CALENDAR = "primary"


class CalendarProviderError(Exception):
    """A calendar provider could not complete an operation."""


class CalendarProvider(Protocol):
    """One calendar integration acting with one credential."""

    async def create_event(
        self, event: CalendarEvent, external_calendar_id: str
    ) -> CalendarReference: ...

    async def update_event(
        self, uid: str, event: CalendarEvent, external_calendar_id: str
    ) -> CalendarReference: ...

    async def delete_event(self, uid: str, external_calendar_id: str) -> None: ...


ProviderFactory = Callable[[Credential], CalendarProvider]


class CalendarSyncService:
    """Reschedules a booking's calendar events for its (new) organizer."""

    def __init__(
        self,
        storage: Storage,
        user: User,
        credentials: Sequence[Credential],
        providers: Mapping[str, ProviderFactory],
    ):
        """Initialize the service.

        Args:
            storage: Storage used to load references and their credentials
            user: Organizer the events are written for
            credentials: The organizer's credentials
            providers: Provider factories keyed by integration type
        """
        self._storage = storage
        self._user = user
        self._credentials = [c for c in credentials if not c.invalid]
        self._providers = providers

    def _provider(self, credential: Credential) -> CalendarProvider | None:
        factory = self._providers.get(credential.type)
        if factory is None:
            logger.warning(
                "No calendar provider for integration",
                integration=credential.type,
                credential_id=credential.id,
            )
            return None
        return factory(credential)

    def _own_credential(
        self, integration: str, credential_id: int | None = None
    ) -> Credential | None:
        for credential in self._credentials:
            if credential_id is not None and credential.id == credential_id:
                return credential
        for credential in self._credentials:
            if credential.type == integration:
                return credential
        return None

    async def _reference_credential(self, reference: CalendarReference) -> Credential | None:
        if reference.credential_id is not None:
            credential = await self._storage.get_credential(reference.credential_id)
            if credential is not None:
                return credential
        return self._own_credential(reference.type)

    async def _removal_credential(
        self, calendars: Sequence[DestinationCalendar]
    ) -> Credential | None:
        """Credential of the first removal calendar that names one."""
        for calendar in calendars:
            if calendar.credential_id is not None:
                credential = await self._storage.get_credential(calendar.credential_id)
                if credential is not None:
                    return credential
        return None

    def _targets(self, event: CalendarEvent) -> list[tuple[Credential, str]]:
        """Credentials and calendar ids new events are written to."""
        targets: list[tuple[Credential, str]] = []
        for calendar in event.destination_calendars:
            credential = self._own_credential(calendar.integration, calendar.credential_id)
            if credential is None:
                logger.warning(
                    "No credential for destination calendar",
                    integration=calendar.integration,
                    external_id=calendar.external_id,
                    user_id=self._user.id,
                )
                continue
            targets.append((credential, calendar.external_id))
        if not targets and not event.destination_calendars:
            for credential in self._credentials:
                if credential.type.endswith("_calendar"):
                    targets.append((credential, PRIMARY_CALENDAR))
                    break
        return targets

    async def _create(self, event: CalendarEvent) -> list[CalendarReference]:
        created: list[CalendarReference] = []
        for credential, calendar_id in self._targets(event):
            provider = self._provider(credential)
            if provider is None:
                continue
            created.append(await provider.create_event(event, calendar_id))
        return created

    async def reschedule(
        self,
        event: CalendarEvent,
        uid: str,
        change_details: bool,
        remove_from_calendars: Sequence[DestinationCalendar],
    ) -> RescheduleResult:
        """Bring external calendars in line with ``event``.

        Args:
            event: Event built for the organizer
            uid: Booking uid whose references are synchronised
            change_details: Whether the organizer changed
            remove_from_calendars: Previous host calendars, used for credentials
                when an old calendar reference names none

        Returns:
            RescheduleResult listing every reference the booking should keep
        """
        existing = await self._storage.find_references(uid)
        kept = [r for r in existing if not r.is_calendar]
        calendar_refs = [r for r in existing if r.is_calendar]

        if change_details:
            fallback = await self._removal_credential(remove_from_calendars)
            for reference in calendar_refs:
                credential = await self._reference_credential(reference) or fallback
                provider = self._provider(credential) if credential else None
                if provider is None:
                    logger.warning(
                        "Cannot remove calendar event without credential",
                        booking_uid=uid,
                        reference_uid=reference.uid,
                    )
                    continue
                await provider.delete_event(
                    reference.uid, reference.external_calendar_id or PRIMARY_CALENDAR
                )
            kept.extend(await self._create(event))
        elif calendar_refs:
            for reference in calendar_refs:
                credential = await self._reference_credential(reference)
                provider = self._provider(credential) if credential else None
                if provider is None:
                    kept.append(reference)
                    continue
                kept.append(
                    await provider.update_event(
                        reference.uid,
                        event,
                        reference.external_calendar_id or PRIMARY_CALENDAR,
                    )
                )
        else:
            kept.extend(await self._create(event))

        logger.info(
            "Calendar events rescheduled",
            booking_uid=uid,
            organizer_id=self._user.id,
            change_details=change_details,
            references=len(kept),
        )
        return RescheduleResult(references_to_create=kept)


def calendar_sync_factory(
    storage: Storage,
    providers: Mapping[str, ProviderFactory] | None = None,
) -> CalendarSyncFactory:
    """Build a factory creating a CalendarSyncService per organizer.

    Args:
        storage: Storage shared by every service
        providers: Provider factories keyed by integration type.
            Defaults to Google Calendar.
    """
    if providers is None:
        from roundrobin.adapters.google_calendar import GoogleCalendarProvider

        providers = {GoogleCalendarProvider.integration: GoogleCalendarProvider}

    def build(user: User, credentials: list[Credential]) -> CalendarSync:
        return CalendarSyncService(storage, user, credentials, providers)

    return build
