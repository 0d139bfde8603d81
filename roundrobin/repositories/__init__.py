"""Persistence for bookings, event types, users and workflows."""

from roundrobin.repositories.booking_repo import BookingNotFoundError, BookingRepository
from roundrobin.repositories.event_type_repo import EventTypeRepository
from roundrobin.repositories.storage import TursoStorage
from roundrobin.repositories.user_repo import UserRepository
from roundrobin.repositories.workflow_repo import WorkflowRepository

__all__ = [
    "BookingNotFoundError",
    "BookingRepository",
    "EventTypeRepository",
    "TursoStorage",
    "UserRepository",
    "WorkflowRepository",
]
