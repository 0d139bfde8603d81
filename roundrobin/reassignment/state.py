"""Reassignment state machine.

VALIDATING -> MUTATING -> SYNCING -> REFERENCES_REPLACED -> NOTIFYING
-> (MIGRATING_WORKFLOWS) -> DONE, with FAILED reachable from any
non-terminal state.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from enum import Enum

import structlog

from roundrobin.errors import CollaboratorFailure, ReassignmentError


class ReassignmentState(str, Enum):
    VALIDATING = "validating"
    MUTATING = "mutating"
    SYNCING = "syncing"
    REFERENCES_REPLACED = "references_replaced"
    NOTIFYING = "notifying"
    MIGRATING_WORKFLOWS = "migrating_workflows"
    DONE = "done"
    FAILED = "failed"


TRANSITIONS: dict[ReassignmentState, frozenset[ReassignmentState]] = {
    ReassignmentState.VALIDATING: frozenset({ReassignmentState.MUTATING}),
    ReassignmentState.MUTATING: frozenset({ReassignmentState.SYNCING}),
    ReassignmentState.SYNCING: frozenset({ReassignmentState.REFERENCES_REPLACED}),
    ReassignmentState.REFERENCES_REPLACED: frozenset({ReassignmentState.NOTIFYING}),
    ReassignmentState.NOTIFYING: frozenset(
        {ReassignmentState.MIGRATING_WORKFLOWS, ReassignmentState.DONE}
    ),
    ReassignmentState.MIGRATING_WORKFLOWS: frozenset({ReassignmentState.DONE}),
    ReassignmentState.DONE: frozenset(),
    ReassignmentState.FAILED: frozenset(),
}

TERMINAL_STATES = frozenset({ReassignmentState.DONE, ReassignmentState.FAILED})


class InvalidTransitionError(RuntimeError):
    """Raised when the orchestrator attempts an undefined transition."""


class ReassignmentRun:
    """Tracks the state of one reassignment and wraps collaborator calls."""

    def __init__(self, log: structlog.stdlib.BoundLogger | None = None):
        self.state = ReassignmentState.VALIDATING
        self.history: list[ReassignmentState] = [self.state]
        self.failure: ReassignmentError | None = None
        self._log = log or structlog.get_logger()

    def advance(self, new_state: ReassignmentState) -> None:
        if new_state not in TRANSITIONS[self.state]:
            raise InvalidTransitionError(
                f"Cannot move from {self.state.value} to {new_state.value}"
            )
        self._log.debug("reassignment state", previous=self.state.value, state=new_state.value)
        self.state = new_state
        self.history.append(new_state)

    def fail(self, error: ReassignmentError) -> None:
        if self.state in TERMINAL_STATES:
            return
        self._log.error(
            "reassignment failed",
            state=self.state.value,
            code=error.code,
            error=str(error),
        )
        self.failure = error
        self.state = ReassignmentState.FAILED
        self.history.append(ReassignmentState.FAILED)

    @asynccontextmanager
    async def collaborator(self, name: str) -> AsyncIterator[None]:
        """Convert any error raised by collaborator ``name`` into CollaboratorFailure."""
        try:
            yield
        except ReassignmentError:
            raise
        except Exception as e:
            raise CollaboratorFailure(name, self.state.value, e) from e
