"""Repository for workflows, their steps and pending reminders."""

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from roundrobin.db.turso import TursoClient, rows_as_dicts
from roundrobin.models import (
    ReminderFilter,
    Workflow,
    WorkflowAction,
    WorkflowFilter,
    WorkflowMethod,
    WorkflowReminder,
    WorkflowStep,
)

WORKFLOW_COLUMNS = "id, name, user_id, team_id, trigger, time, time_unit, is_active_on_all"
STEP_COLUMNS = (
    "id, workflow_id, step_number, action, send_to, template, reminder_body, "
    "email_subject, sender_name"
)
REMINDER_COLUMNS = (
    "id, booking_uid, method, scheduled_date, reference_id, scheduled, workflow_step_id"
)


def _workflow_from_row(row: dict[str, Any], prefix: str = "") -> Workflow:
    return Workflow(
        id=row[f"{prefix}id"],
        name=row[f"{prefix}name"] or "",
        user_id=row[f"{prefix}user_id"],
        team_id=row[f"{prefix}team_id"],
        trigger=row[f"{prefix}trigger"],
        time=row[f"{prefix}time"],
        time_unit=row[f"{prefix}time_unit"],
        is_active_on_all=bool(row[f"{prefix}is_active_on_all"]),
    )


def _step_from_row(row: dict[str, Any], prefix: str = "") -> WorkflowStep:
    return WorkflowStep(
        **{column.strip(): row[f"{prefix}{column.strip()}"] for column in STEP_COLUMNS.split(",")}
    )


def _utc_iso(value: datetime) -> str:
    """ISO timestamp in UTC so stored dates compare correctly as text."""
    return value.astimezone(UTC).isoformat()


def _reminder_from_row(
    row: dict[str, Any],
    step: WorkflowStep | None = None,
    workflow: Workflow | None = None,
) -> WorkflowReminder:
    return WorkflowReminder(
        id=row["id"],
        booking_uid=row["booking_uid"],
        method=row["method"],
        scheduled_date=datetime.fromisoformat(row["scheduled_date"])
        if row["scheduled_date"]
        else None,
        reference_id=row["reference_id"],
        scheduled=bool(row["scheduled"]),
        workflow_step_id=row["workflow_step_id"],
        step=step,
        workflow=workflow,
    )


class WorkflowRepository:
    """Repository for workflow definitions and reminder jobs."""

    def __init__(self, db_client: TursoClient):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
        """
        self._db = db_client

    async def initialize(self) -> None:
        """Create workflow tables if not exists."""
        await self._db.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS workflows (
                id INTEGER PRIMARY KEY,
                name TEXT,
                user_id INTEGER,
                team_id INTEGER,
                trigger TEXT NOT NULL,
                time INTEGER,
                time_unit TEXT,
                is_active_on_all INTEGER NOT NULL DEFAULT 0
            )
            """,
                """
            CREATE TABLE IF NOT EXISTS workflow_steps (
                id INTEGER PRIMARY KEY,
                workflow_id INTEGER NOT NULL,
                step_number INTEGER NOT NULL DEFAULT 1,
                action TEXT NOT NULL,
                send_to TEXT,
                template TEXT NOT NULL DEFAULT 'REMINDER',
                reminder_body TEXT,
                email_subject TEXT,
                sender_name TEXT
            )
            """,
                """
            CREATE TABLE IF NOT EXISTS workflows_on_event_types (
                workflow_id INTEGER NOT NULL,
                event_type_id INTEGER NOT NULL,
                PRIMARY KEY (workflow_id, event_type_id)
            )
            """,
                """
            CREATE TABLE IF NOT EXISTS workflows_on_teams (
                workflow_id INTEGER NOT NULL,
                team_id INTEGER NOT NULL,
                PRIMARY KEY (workflow_id, team_id)
            )
            """,
                """
            CREATE TABLE IF NOT EXISTS workflow_reminders (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                booking_uid TEXT NOT NULL,
                method TEXT NOT NULL,
                scheduled_date TEXT,
                reference_id TEXT,
                scheduled INTEGER NOT NULL DEFAULT 0,
                workflow_step_id INTEGER
            )
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_reminders_booking
            ON workflow_reminders(booking_uid)
            """,
            ]
        )

    async def save_workflow(
        self,
        workflow: Workflow,
        active_on_event_type_ids: Sequence[int] = (),
        active_on_team_ids: Sequence[int] = (),
    ) -> None:
        """Insert or replace a workflow with its steps and activations."""
        statements: list[tuple[str, list[Any]]] = [
            (
                f"INSERT OR REPLACE INTO workflows ({WORKFLOW_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    workflow.id,
                    workflow.name,
                    workflow.user_id,
                    workflow.team_id,
                    workflow.trigger.value,
                    workflow.time,
                    workflow.time_unit.value if workflow.time_unit else None,
                    int(workflow.is_active_on_all),
                ],
            ),
            ("DELETE FROM workflow_steps WHERE workflow_id = ?", [workflow.id]),
            ("DELETE FROM workflows_on_event_types WHERE workflow_id = ?", [workflow.id]),
            ("DELETE FROM workflows_on_teams WHERE workflow_id = ?", [workflow.id]),
        ]
        for step in workflow.steps:
            statements.append(
                (
                    f"INSERT INTO workflow_steps ({STEP_COLUMNS}) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    [
                        step.id,
                        workflow.id,
                        step.step_number,
                        step.action.value,
                        step.send_to,
                        step.template.value,
                        step.reminder_body,
                        step.email_subject,
                        step.sender_name,
                    ],
                )
            )
        for event_type_id in active_on_event_type_ids:
            statements.append(
                (
                    "INSERT INTO workflows_on_event_types (workflow_id, event_type_id) VALUES (?, ?)",
                    [workflow.id, event_type_id],
                )
            )
        for team_id in active_on_team_ids:
            statements.append(
                (
                    "INSERT INTO workflows_on_teams (workflow_id, team_id) VALUES (?, ?)",
                    [workflow.id, team_id],
                )
            )
        await self._db.execute_transaction(statements)

    async def find_workflows(self, workflow_filter: WorkflowFilter) -> list[Workflow]:
        """Workflows with ``workflow_filter.trigger`` applying to its event type.

        Steps are restricted to ``workflow_filter.step_action`` when set.
        """
        conditions = [
            "w.id IN (SELECT workflow_id FROM workflows_on_event_types WHERE event_type_id = ?)"
        ]
        params: list[Any] = [workflow_filter.trigger.value, workflow_filter.event_type_id]
        if workflow_filter.active_on_all_team_ids:
            placeholders = ", ".join("?" for _ in workflow_filter.active_on_all_team_ids)
            conditions.append(f"(w.is_active_on_all = 1 AND w.team_id IN ({placeholders}))")
            params.extend(workflow_filter.active_on_all_team_ids)
        if workflow_filter.team_id is not None:
            conditions.append(
                "w.id IN (SELECT workflow_id FROM workflows_on_teams WHERE team_id = ?)"
            )
            params.append(workflow_filter.team_id)

        result = await self._db.execute(
            f"""
            SELECT {WORKFLOW_COLUMNS}
            FROM workflows w
            WHERE w.trigger = ? AND ({" OR ".join(conditions)})
            ORDER BY w.id
            """,
            params,
        )
        workflows = [_workflow_from_row(row) for row in rows_as_dicts(result)]
        for workflow in workflows:
            workflow.steps = await self._steps(workflow.id, workflow_filter.step_action)
        return workflows

    async def _steps(
        self, workflow_id: int, action: WorkflowAction | None = None
    ) -> list[WorkflowStep]:
        sql = f"SELECT {STEP_COLUMNS} FROM workflow_steps WHERE workflow_id = ?"
        params: list[Any] = [workflow_id]
        if action is not None:
            sql += " AND action = ?"
            params.append(action.value)
        result = await self._db.execute(sql + " ORDER BY step_number", params)
        return [_step_from_row(row) for row in rows_as_dicts(result)]

    async def find_pending_reminders(
        self,
        booking_uid: str,
        reminder_filter: ReminderFilter,
    ) -> list[WorkflowReminder]:
        """Reminders of a booking with their step and owning workflow.

        Args:
            booking_uid: Booking uid
            reminder_filter: Method, step action and workflow triggers to match

        Returns:
            Matching reminders, oldest first
        """
        triggers = sorted(t.value for t in reminder_filter.triggers)
        placeholders = ", ".join("?" for _ in triggers)
        reminder_columns = ", ".join(f"r.{c.strip()}" for c in REMINDER_COLUMNS.split(","))
        step_columns = ", ".join(
            f"s.{c.strip()} AS step_{c.strip()}" for c in STEP_COLUMNS.split(",")
        )
        workflow_columns = ", ".join(
            f"w.{c.strip()} AS workflow_{c.strip()}" for c in WORKFLOW_COLUMNS.split(",")
        )
        result = await self._db.execute(
            f"""
            SELECT {reminder_columns}, {step_columns}, {workflow_columns}
            FROM workflow_reminders r
            JOIN workflow_steps s ON s.id = r.workflow_step_id
            JOIN workflows w ON w.id = s.workflow_id
            WHERE r.booking_uid = ?
              AND r.method = ?
              AND s.action = ?
              AND w.trigger IN ({placeholders})
            ORDER BY r.id
            """,
            [
                booking_uid,
                reminder_filter.method.value,
                reminder_filter.action.value,
                *triggers,
            ],
        )
        return [
            _reminder_from_row(
                row,
                step=_step_from_row(row, prefix="step_"),
                workflow=_workflow_from_row(row, prefix="workflow_"),
            )
            for row in rows_as_dicts(result)
        ]

    async def create_reminder(
        self,
        booking_uid: str,
        method: WorkflowMethod,
        scheduled_date: datetime | None,
        workflow_step_id: int | None,
        reference_id: str | None = None,
        scheduled: bool = False,
    ) -> int:
        """Insert a reminder job and return its id."""
        result = await self._db.execute(
            """
            INSERT INTO workflow_reminders
                (booking_uid, method, scheduled_date, reference_id, scheduled,
                 workflow_step_id)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            [
                booking_uid,
                method.value,
                _utc_iso(scheduled_date) if scheduled_date else None,
                reference_id,
                int(scheduled),
                workflow_step_id,
            ],
        )
        return result.last_insert_rowid

    async def delete_reminder(self, reminder_id: int) -> bool:
        """Delete a reminder job.

        Returns:
            True if a reminder was deleted, False if not found
        """
        result = await self._db.execute(
            "DELETE FROM workflow_reminders WHERE id = ?", [reminder_id]
        )
        return result.rows_affected > 0

    async def list_reminders(self, booking_uid: str) -> list[WorkflowReminder]:
        """All reminders of a booking regardless of step or workflow."""
        result = await self._db.execute(
            f"""
            SELECT {REMINDER_COLUMNS}
            FROM workflow_reminders
            WHERE booking_uid = ?
            ORDER BY id
            """,
            [booking_uid],
        )
        return [_reminder_from_row(row) for row in rows_as_dicts(result)]

    async def find_unscheduled_reminders(
        self,
        due_before: datetime,
        method: WorkflowMethod = WorkflowMethod.EMAIL,
    ) -> list[WorkflowReminder]:
        """Reminders not yet handed to delivery whose date is at or before ``due_before``."""
        result = await self._db.execute(
            f"""
            SELECT {REMINDER_COLUMNS}
            FROM workflow_reminders
            WHERE scheduled = 0
              AND method = ?
              AND scheduled_date IS NOT NULL
              AND scheduled_date <= ?
            ORDER BY scheduled_date, id
            """,
            [method.value, _utc_iso(due_before)],
        )
        return [_reminder_from_row(row) for row in rows_as_dicts(result)]

    async def mark_reminder_scheduled(self, reminder_id: int, reference_id: str) -> bool:
        """Record that a reminder was handed to delivery under ``reference_id``.

        Returns:
            True if the reminder exists and was still unscheduled
        """
        result = await self._db.execute(
            """
            UPDATE workflow_reminders
            SET scheduled = 1, reference_id = ?
            WHERE id = ? AND scheduled = 0
            """,
            [reference_id, reminder_id],
        )
        return result.rows_affected > 0
