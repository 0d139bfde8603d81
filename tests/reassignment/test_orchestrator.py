"""Tests for RoundRobinReassigner."""

import pytest

from roundrobin.adapters.calendar_sync import CalendarProviderError
from roundrobin.errors import (
    CollaboratorFailure,
    FixedHostTargetError,
    InvalidTargetError,
    NotFoundError,
)
from roundrobin.models import MANUAL_REASSIGNMENT_REASON
from roundrobin.reassignment import RoundRobinReassigner


@pytest.fixture
def reassigner(storage, calendar_sync, notifications, scheduler, settings):
    return RoundRobinReassigner(
        storage=storage,
        calendar_sync_factory=calendar_sync.factory,
        notifications=notifications,
        scheduler=scheduler,
        settings=settings,
    )


class TestOrganizerChange:
    """Reassigning a round-robin booking without a fixed host."""

    @pytest.mark.asyncio
    async def test_booking_moves_to_new_host(self, reassigner, storage, bob):
        booking = await reassigner.reassign(500, bob.id)

        assert booking.user_id == bob.id
        assert booking.user.email == bob.email
        assert booking.user_primary_email == bob.email
        assert booking.title == "Intro Call between Sales and Jane Doe"
        assert storage.bookings[500].user_id == bob.id

    @pytest.mark.asyncio
    async def test_calendar_synced_for_new_organizer(
        self, reassigner, calendar_sync, storage, alice, bob
    ):
        await reassigner.reassign(500, bob.id)

        user, credentials = calendar_sync.built_for[0]
        assert user.id == bob.id
        assert [c.id for c in credentials] == [72]

        call = calendar_sync.calls[0]
        assert call["uid"] == "bk-500"
        assert call["change_details"] is True
        assert call["remove_from_calendars"] == [storage.destination_calendars[alice.id]]
        assert call["event"].organizer.email == bob.email
        assert call["event"].destination_calendars == (storage.destination_calendars[bob.id],)

    @pytest.mark.asyncio
    async def test_event_type_calendar_wins(self, reassigner, calendar_sync, storage, bob):
        calendar = storage.destination_calendars[bob.id].model_copy(
            update={"id": 99, "external_id": "team@example.com", "event_type_id": 100}
        )
        storage.event_types[100] = storage.event_types[100].model_copy(
            update={"destination_calendar": calendar}
        )

        await reassigner.reassign(500, bob.id)

        assert calendar_sync.calls[0]["event"].destination_calendars == (calendar,)

    @pytest.mark.asyncio
    async def test_references_replaced_with_sync_result(
        self, reassigner, storage, bob, video_reference, new_google_reference
    ):
        booking = await reassigner.reassign(500, bob.id)

        assert booking.references == [video_reference, new_google_reference]
        assert storage.bookings[500].references == [video_reference, new_google_reference]

    @pytest.mark.asyncio
    async def test_notifications(self, reassigner, notifications, alice, bob):
        await reassigner.reassign(500, bob.id)

        event, recipients = notifications.send_scheduled.await_args.args
        assert [r.email for r in recipients] == [bob.email]
        assert event.organizer.email == bob.email

        cancelled, removed, metadata = notifications.send_cancelled.await_args.args
        assert [r.email for r in removed] == [alice.email]
        assert cancelled.organizer.email == alice.email
        assert cancelled.cancellation_reason == MANUAL_REASSIGNMENT_REASON
        assert metadata == {}

    @pytest.mark.asyncio
    async def test_cancellation_copy_leaves_event_untouched(self, reassigner, notifications, bob):
        await reassigner.reassign(500, bob.id)

        event, _ = notifications.send_scheduled.await_args.args
        assert event.organizer.email == bob.email

    @pytest.mark.asyncio
    async def test_workflows_migrated(self, reassigner, scheduler, storage, bob):
        await reassigner.reassign(500, bob.id)

        scheduler.schedule_workflow_reminders.assert_awaited_once()
        assert storage.workflow_filters[0].event_type_id == 100

    @pytest.mark.asyncio
    async def test_write_order(self, reassigner, storage, bob):
        await reassigner.reassign(500, bob.id)

        assert storage.writes == ["update_booking", "replace_calendar_references"]


class TestFixedHost:
    """Reassigning the round-robin seat of a booking owned by a fixed host."""

    @pytest.mark.asyncio
    async def test_attendee_swapped(self, reassigner, storage, bob, carol):
        booking = await reassigner.reassign(501, bob.id)

        assert booking.user_id == carol.id
        assert [a.email for a in booking.attendees] == ["jane@example.com", bob.email]
        assert booking.attendees[1].name == bob.name
        assert booking.attendees[1].time_zone == bob.time_zone
        assert storage.writes == ["update_attendee", "replace_calendar_references"]

    @pytest.mark.asyncio
    async def test_calendar_updated_in_place(self, reassigner, calendar_sync, carol):
        await reassigner.reassign(501, 2)

        call = calendar_sync.calls[0]
        assert call["change_details"] is False
        assert call["remove_from_calendars"] == []
        assert [a.email for a in call["event"].attendees] == ["jane@example.com", "bob@example.com"]

    @pytest.mark.asyncio
    async def test_no_workflow_migration(self, reassigner, scheduler):
        await reassigner.reassign(501, 2)

        scheduler.schedule_workflow_reminders.assert_not_awaited()
        scheduler.schedule_email_reminder.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cancellation_sent_to_previous_organizer(
        self, reassigner, notifications, carol, fixed_event_type
    ):
        await reassigner.reassign(501, 2)

        _, removed, metadata = notifications.send_cancelled.await_args.args
        assert [r.email for r in removed] == [carol.email]
        assert metadata == fixed_event_type.metadata


class TestRejectedRequests:
    """Requests rejected before anything is written."""

    @pytest.mark.asyncio
    async def test_unknown_booking(self, reassigner, storage):
        with pytest.raises(NotFoundError):
            await reassigner.reassign(999, 2)

        assert storage.writes == []

    @pytest.mark.asyncio
    async def test_booking_without_user(self, reassigner, storage):
        storage.bookings[500] = storage.bookings[500].model_copy(update={"user": None})

        with pytest.raises(NotFoundError):
            await reassigner.reassign(500, 2)

    @pytest.mark.asyncio
    async def test_missing_event_type(self, reassigner, storage):
        del storage.event_types[100]

        with pytest.raises(NotFoundError, match="Event type not found"):
            await reassigner.reassign(500, 2)

    @pytest.mark.asyncio
    async def test_target_not_a_host(self, reassigner, storage, calendar_sync, notifications, dave):
        with pytest.raises(InvalidTargetError):
            await reassigner.reassign(500, dave.id)

        assert storage.writes == []
        assert calendar_sync.calls == []
        notifications.send_scheduled.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_target_is_fixed(self, reassigner, storage, carol):
        with pytest.raises(FixedHostTargetError):
            await reassigner.reassign(501, carol.id)

        assert storage.writes == []


class TestCollaboratorFailures:
    """A failing collaborator aborts the flow and names itself."""

    @pytest.mark.asyncio
    async def test_calendar_failure_stops_later_steps(
        self, reassigner, calendar_sync, storage, notifications, scheduler, bob
    ):
        calendar_sync.error = CalendarProviderError("quota exceeded")

        with pytest.raises(CollaboratorFailure) as exc_info:
            await reassigner.reassign(500, bob.id)

        failure = exc_info.value
        assert failure.collaborator == "calendar_sync"
        assert failure.state == "syncing"
        assert isinstance(failure.cause, CalendarProviderError)
        # The booking update stays committed; nothing after the sync runs.
        assert storage.writes == ["update_booking"]
        notifications.send_scheduled.assert_not_awaited()
        scheduler.schedule_workflow_reminders.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_notification_failure(self, reassigner, notifications, storage, bob):
        notifications.send_scheduled.side_effect = ConnectionError("smtp down")

        with pytest.raises(CollaboratorFailure) as exc_info:
            await reassigner.reassign(500, bob.id)

        assert exc_info.value.collaborator == "notifications"
        assert exc_info.value.state == "notifying"
        assert "replace_calendar_references" in storage.writes
        notifications.send_cancelled.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_scheduler_failure(self, reassigner, scheduler, bob):
        scheduler.schedule_workflow_reminders.side_effect = RuntimeError("queue full")

        with pytest.raises(CollaboratorFailure) as exc_info:
            await reassigner.reassign(500, bob.id)

        assert exc_info.value.collaborator == "workflow_scheduler"
        assert exc_info.value.state == "migrating_workflows"
