"""External calendar adapters."""

from roundrobin.adapters.calendar_sync import (
    CalendarProvider,
    CalendarProviderError,
    CalendarSyncService,
    calendar_sync_factory,
)
from roundrobin.adapters.google_calendar import GoogleCalendarProvider

__all__ = [
    "CalendarProvider",
    "CalendarProviderError",
    "CalendarSyncService",
    "GoogleCalendarProvider",
    "calendar_sync_factory",
]
