"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import AsyncExitStack, asynccontextmanager

from fastapi import FastAPI

from roundrobin.adapters import calendar_sync_factory
from roundrobin.api.router import api_router
from roundrobin.config import settings
from roundrobin.db.turso import TursoClient
from roundrobin.notifications import NotificationService, SmtpEmailTransport
from roundrobin.reassignment import RoundRobinReassigner
from roundrobin.reminders import ReminderScheduler
from roundrobin.reminders.sweeper import reminder_sweep_lifespan
from roundrobin.repositories import TursoStorage

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _reminder_sweep_context(scheduler: ReminderScheduler):
    """Reminder sweep lifespan, or a no-op context when disabled in settings."""
    if not settings.reminder_sweep_enabled:

        @asynccontextmanager
        async def noop_context():
            yield

        return noop_context()

    return reminder_sweep_lifespan(scheduler, settings.reminder_sweep_interval_minutes)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan management.

    Startup:
    - Initialize database connection and schema
    - Wire storage, calendar sync, notifications and reminders
      into the reassignment service
    - Start the workflow reminder sweep

    Shutdown:
    - Stop the reminder sweep
    - Close database connection
    """
    logger.info(f"Starting {settings.app_name}...")

    db = TursoClient()
    await db.connect()
    app.state.db = db
    logger.info(f"Database connected: {db.url}")

    storage = TursoStorage(db)
    await storage.initialize()
    app.state.storage = storage
    logger.info("Storage initialized")

    notifications = NotificationService(SmtpEmailTransport(settings))
    app.state.notification_service = notifications

    scheduler = ReminderScheduler(storage.workflows, notifications, settings)
    app.state.reminder_scheduler = scheduler

    app.state.reassigner = RoundRobinReassigner(
        storage=storage,
        calendar_sync_factory=calendar_sync_factory(storage),
        notifications=notifications,
        scheduler=scheduler,
        settings=settings,
    )
    logger.info("Reassignment service initialized")

    async with AsyncExitStack() as stack:
        await stack.enter_async_context(_reminder_sweep_context(scheduler))
        yield

    logger.info(f"Shutting down {settings.app_name}...")
    await db.close()
    logger.info("Database connection closed")


app = FastAPI(
    title=settings.app_name,
    description="Manual reassignment of round-robin bookings",
    version=settings.app_version,
    lifespan=lifespan,
)

app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "roundrobin.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
