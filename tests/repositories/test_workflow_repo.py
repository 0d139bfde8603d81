"""Tests for WorkflowRepository."""

from datetime import UTC, datetime, timedelta, timezone
from pathlib import Path

import pytest

from roundrobin.db.turso import TursoClient
from roundrobin.models import (
    ReminderFilter,
    TimeUnit,
    Workflow,
    WorkflowAction,
    WorkflowFilter,
    WorkflowMethod,
    WorkflowStep,
    WorkflowTrigger,
)
from roundrobin.repositories import WorkflowRepository


def _workflow(workflow_id: int, trigger: WorkflowTrigger, *actions: WorkflowAction, **kwargs):
    return Workflow(
        id=workflow_id,
        name=f"Workflow {workflow_id}",
        trigger=trigger,
        steps=[
            WorkflowStep(id=workflow_id * 10 + i, workflow_id=workflow_id, step_number=i + 1, action=action)
            for i, action in enumerate(actions)
        ],
        **kwargs,
    )


@pytest.fixture
async def repo(tmp_path: Path):
    """Create WorkflowRepository with initialized tables."""
    client = TursoClient(url=f"file:{tmp_path / 'test_workflows.db'}")
    await client.connect()
    repo = WorkflowRepository(client)
    await repo.initialize()
    yield repo
    await client.close()


class TestFindPendingReminders:
    """Tests for loading reminders with their step and workflow."""

    @pytest.mark.asyncio
    async def test_host_email_reminder_loaded_with_workflow(self, repo):
        await repo.save_workflow(
            _workflow(
                3,
                WorkflowTrigger.BEFORE_EVENT,
                WorkflowAction.EMAIL_HOST,
                time=24,
                time_unit=TimeUnit.HOUR,
            )
        )
        scheduled_date = datetime(2030, 1, 14, 10, 0, tzinfo=UTC)
        reminder_id = await repo.create_reminder(
            "bk-500", WorkflowMethod.EMAIL, scheduled_date, 30, reference_id="ref-1", scheduled=True
        )

        reminders = await repo.find_pending_reminders("bk-500", ReminderFilter())

        assert len(reminders) == 1
        reminder = reminders[0]
        assert reminder.id == reminder_id
        assert reminder.scheduled_date == scheduled_date
        assert reminder.reference_id == "ref-1"
        assert reminder.scheduled is True
        assert reminder.step.id == 30
        assert reminder.step.action == WorkflowAction.EMAIL_HOST
        assert reminder.workflow.trigger == WorkflowTrigger.BEFORE_EVENT
        assert reminder.workflow.time == 24
        assert reminder.workflow.time_unit == TimeUnit.HOUR

    @pytest.mark.asyncio
    async def test_filters_action_trigger_and_booking(self, repo):
        await repo.save_workflow(
            _workflow(1, WorkflowTrigger.NEW_EVENT, WorkflowAction.EMAIL_ATTENDEE)
        )
        await repo.save_workflow(
            _workflow(2, WorkflowTrigger.EVENT_CANCELLED, WorkflowAction.EMAIL_HOST)
        )
        await repo.save_workflow(_workflow(4, WorkflowTrigger.AFTER_EVENT, WorkflowAction.EMAIL_HOST))
        await repo.create_reminder("bk-500", WorkflowMethod.EMAIL, None, 10)
        await repo.create_reminder("bk-500", WorkflowMethod.EMAIL, None, 20)
        await repo.create_reminder("bk-500", WorkflowMethod.SMS, None, 40)
        await repo.create_reminder("bk-other", WorkflowMethod.EMAIL, None, 40)
        keep = await repo.create_reminder("bk-500", WorkflowMethod.EMAIL, None, 40)

        reminders = await repo.find_pending_reminders("bk-500", ReminderFilter())

        assert [r.id for r in reminders] == [keep]

    @pytest.mark.asyncio
    async def test_reminder_without_step_is_ignored(self, repo):
        await repo.create_reminder("bk-500", WorkflowMethod.EMAIL, None, None)

        assert await repo.find_pending_reminders("bk-500", ReminderFilter()) == []


class TestFindWorkflows:
    """Tests for workflow activation lookups."""

    @pytest.mark.asyncio
    async def test_active_on_event_type(self, repo):
        await repo.save_workflow(
            _workflow(1, WorkflowTrigger.NEW_EVENT, WorkflowAction.EMAIL_HOST),
            active_on_event_type_ids=[100],
        )
        await repo.save_workflow(
            _workflow(2, WorkflowTrigger.NEW_EVENT, WorkflowAction.EMAIL_HOST),
            active_on_event_type_ids=[200],
        )

        workflows = await repo.find_workflows(
            WorkflowFilter(trigger=WorkflowTrigger.NEW_EVENT, event_type_id=100)
        )

        assert [w.id for w in workflows] == [1]

    @pytest.mark.asyncio
    async def test_trigger_must_match(self, repo):
        await repo.save_workflow(
            _workflow(1, WorkflowTrigger.BEFORE_EVENT, WorkflowAction.EMAIL_HOST),
            active_on_event_type_ids=[100],
        )

        workflows = await repo.find_workflows(
            WorkflowFilter(trigger=WorkflowTrigger.NEW_EVENT, event_type_id=100)
        )

        assert workflows == []

    @pytest.mark.asyncio
    async def test_active_on_all_for_team_or_parent(self, repo):
        await repo.save_workflow(
            _workflow(1, WorkflowTrigger.NEW_EVENT, WorkflowAction.EMAIL_HOST,
                      team_id=1, is_active_on_all=True)
        )
        await repo.save_workflow(
            _workflow(2, WorkflowTrigger.NEW_EVENT, WorkflowAction.EMAIL_HOST,
                      team_id=99, is_active_on_all=True)
        )

        workflows = await repo.find_workflows(
            WorkflowFilter(
                trigger=WorkflowTrigger.NEW_EVENT,
                event_type_id=100,
                team_id=10,
                active_on_all_team_ids=(10, 1),
            )
        )

        assert [w.id for w in workflows] == [1]

    @pytest.mark.asyncio
    async def test_active_on_team(self, repo):
        await repo.save_workflow(
            _workflow(1, WorkflowTrigger.NEW_EVENT, WorkflowAction.EMAIL_HOST),
            active_on_team_ids=[10],
        )

        workflows = await repo.find_workflows(
            WorkflowFilter(trigger=WorkflowTrigger.NEW_EVENT, event_type_id=100, team_id=10)
        )

        assert [w.id for w in workflows] == [1]

    @pytest.mark.asyncio
    async def test_steps_filtered_by_action(self, repo):
        await repo.save_workflow(
            _workflow(
                1,
                WorkflowTrigger.NEW_EVENT,
                WorkflowAction.EMAIL_ATTENDEE,
                WorkflowAction.EMAIL_HOST,
            ),
            active_on_event_type_ids=[100],
        )

        workflows = await repo.find_workflows(
            WorkflowFilter(
                trigger=WorkflowTrigger.NEW_EVENT,
                event_type_id=100,
                step_action=WorkflowAction.EMAIL_HOST,
            )
        )

        assert [s.action for s in workflows[0].steps] == [WorkflowAction.EMAIL_HOST]


class TestReminderLifecycle:
    @pytest.mark.asyncio
    async def test_delete_reminder(self, repo):
        reminder_id = await repo.create_reminder("bk-500", WorkflowMethod.EMAIL, None, None)

        assert await repo.delete_reminder(reminder_id) is True
        assert await repo.delete_reminder(reminder_id) is False
        assert await repo.list_reminders("bk-500") == []

    @pytest.mark.asyncio
    async def test_dates_stored_in_utc(self, repo):
        amsterdam = timezone(timedelta(hours=1))
        await repo.create_reminder(
            "bk-500", WorkflowMethod.EMAIL, datetime(2030, 1, 14, 11, 0, tzinfo=amsterdam), None
        )

        [reminder] = await repo.list_reminders("bk-500")

        assert reminder.scheduled_date == datetime(2030, 1, 14, 10, 0, tzinfo=UTC)
        assert reminder.scheduled_date.utcoffset() == timedelta(0)

    @pytest.mark.asyncio
    async def test_find_unscheduled_reminders(self, repo):
        cutoff = datetime(2030, 1, 14, 12, 0, tzinfo=UTC)
        early = await repo.create_reminder(
            "bk-500", WorkflowMethod.EMAIL, cutoff - timedelta(hours=2), None
        )
        at_cutoff = await repo.create_reminder("bk-501", WorkflowMethod.EMAIL, cutoff, None)
        await repo.create_reminder("bk-500", WorkflowMethod.EMAIL, cutoff + timedelta(minutes=1), None)
        await repo.create_reminder(
            "bk-500", WorkflowMethod.EMAIL, cutoff - timedelta(hours=3), None,
            reference_id="ref", scheduled=True,
        )
        await repo.create_reminder("bk-500", WorkflowMethod.SMS, cutoff - timedelta(hours=1), None)
        await repo.create_reminder("bk-500", WorkflowMethod.EMAIL, None, None)

        reminders = await repo.find_unscheduled_reminders(cutoff)

        assert [r.id for r in reminders] == [early, at_cutoff]

    @pytest.mark.asyncio
    async def test_mark_reminder_scheduled(self, repo):
        reminder_id = await repo.create_reminder(
            "bk-500", WorkflowMethod.EMAIL, datetime(2030, 1, 14, 10, 0, tzinfo=UTC), None
        )

        assert await repo.mark_reminder_scheduled(reminder_id, "ref-9") is True
        assert await repo.mark_reminder_scheduled(reminder_id, "ref-10") is False

        [reminder] = await repo.list_reminders("bk-500")
        assert reminder.scheduled is True
        assert reminder.reference_id == "ref-9"
