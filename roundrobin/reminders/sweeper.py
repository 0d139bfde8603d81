"""APScheduler job that periodically schedules stored reminders.

Reminders further out than the scheduling window are stored unscheduled;
this sweep picks them up once they come within range.
"""

from contextlib import asynccontextmanager
from datetime import UTC
from typing import TYPE_CHECKING

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from roundrobin.reminders.scheduler import ReminderScheduler

logger = structlog.get_logger()

SWEEP_JOB_ID = "workflow_reminder_sweep"

# Module-level scheduler instance
_scheduler: AsyncIOScheduler | None = None


def get_scheduler() -> AsyncIOScheduler:
    """Get or create the scheduler instance."""
    global _scheduler
    if _scheduler is None:
        _scheduler = AsyncIOScheduler(timezone=UTC)
    return _scheduler


def reset_scheduler() -> None:
    """Reset the scheduler instance (for testing)."""
    global _scheduler
    if _scheduler is not None and _scheduler.running:
        _scheduler.shutdown(wait=False)
    _scheduler = None


async def sweep_reminders(reminders: "ReminderScheduler") -> None:
    """Scheduled job: run one reminder sweep.

    Failures are logged and the job stays registered for the next interval.
    """
    try:
        await reminders.sweep_due_reminders()
    except Exception as e:
        logger.error("Reminder sweep failed", error=str(e))


@asynccontextmanager
async def reminder_sweep_lifespan(
    reminders: "ReminderScheduler", interval_minutes: int = 15
) -> "AsyncGenerator[None, None]":
    """Run the reminder sweep every ``interval_minutes`` while the app is up.

    Usage:
        async with reminder_sweep_lifespan(reminder_scheduler):
            yield
    """
    scheduler = get_scheduler()
    scheduler.add_job(
        sweep_reminders,
        "interval",
        minutes=interval_minutes,
        args=[reminders],
        id=SWEEP_JOB_ID,
        replace_existing=True,
        max_instances=1,
    )

    logger.info("Starting reminder sweep", interval_minutes=interval_minutes)
    scheduler.start()

    try:
        yield
    finally:
        logger.info("Shutting down reminder sweep")
        scheduler.shutdown(wait=False)
