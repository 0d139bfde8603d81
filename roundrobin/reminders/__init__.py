"""Workflow reminder scheduling."""

from roundrobin.reminders.scheduler import ReminderScheduler

__all__ = ["ReminderScheduler"]
