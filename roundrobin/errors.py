"""Error taxonomy for round-robin reassignment.

Every failure surfaced to callers is a ReassignmentError subclass:
- NotFoundError: booking, organizer or event type missing
- InvalidTargetError: target host is not a host of the event type
- FixedHostTargetError: target host is a fixed host
- CollaboratorFailure: storage, calendar, notification, translation or
  scheduler call failed
"""


class ReassignmentError(Exception):
    """Base class for reassignment failures."""

    code = "reassignment_failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.code)
        self.message = message or self.code


class NotFoundError(ReassignmentError):
    """Raised when the booking or one of its required entities is missing."""

    code = "not_found"


class InvalidTargetError(ReassignmentError):
    """Raised when the requested host is not a host of the event type."""

    code = "invalid_round_robin_host"


class FixedHostTargetError(ReassignmentError):
    """Raised when the requested host is a fixed host."""

    code = "user_is_round_robin_fixed"


class CollaboratorFailure(ReassignmentError):
    """Raised when an external collaborator call fails.

    Attributes:
        collaborator: Name of the failing collaborator (storage, calendar_sync, ...)
        state: Orchestration state in which the failure happened
    """

    code = "collaborator_failure"

    def __init__(self, collaborator: str, state: str, cause: BaseException):
        super().__init__(f"{collaborator} failed during {state}: {cause}")
        self.collaborator = collaborator
        self.state = state
        self.cause = cause
