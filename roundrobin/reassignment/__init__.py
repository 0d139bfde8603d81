"""Round-robin manual reassignment core.

- hosts: host role resolution and the organizer-change decision
- materializer: title, location and calendar event derivation
- orchestrator: RoundRobinReassigner, the reassignment entry point
- workflows: reminder migration to the new organizer
- ports: collaborator protocols
"""

from roundrobin.reassignment.hosts import HostResolution, organizer_changes, resolve_hosts
from roundrobin.reassignment.materializer import MeetingMaterializer
from roundrobin.reassignment.orchestrator import RoundRobinReassigner
from roundrobin.reassignment.state import ReassignmentRun, ReassignmentState
from roundrobin.reassignment.workflows import WorkflowMigrator

__all__ = [
    "HostResolution",
    "MeetingMaterializer",
    "ReassignmentRun",
    "ReassignmentState",
    "RoundRobinReassigner",
    "WorkflowMigrator",
    "organizer_changes",
    "resolve_hosts",
]
