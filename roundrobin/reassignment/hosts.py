"""Host role resolution and the organizer-change decision.

Both functions are pure: they only inspect the event type, the booking and
the requested target, and raise before anything is read or written.
"""

from dataclasses import dataclass

from roundrobin.errors import FixedHostTargetError, InvalidTargetError
from roundrobin.models import Attendee, Booking, EventType, Host


@dataclass(frozen=True)
class HostResolution:
    """Outcome of host role resolution.

    Attributes:
        hosts: Effective host list of the event type
        fixed_host: First fixed host, if any
        current_rr_attendee: Attendee standing for the current round-robin host
        target: The requested new host
    """

    hosts: tuple[Host, ...]
    fixed_host: Host | None
    current_rr_attendee: Attendee | None
    target: Host


def effective_hosts(event_type: EventType) -> list[Host]:
    """Return the event type's hosts, falling back to its plain users.

    Users without an explicit host entry become round-robin hosts with
    priority 2, weight 100 and no schedule.
    """
    if event_type.hosts:
        return list(event_type.hosts)
    return [
        Host(
            user=user,
            is_fixed=False,
            priority=2,
            weight=100,
            weight_adjustment=0,
            schedule_id=None,
        )
        for user in event_type.users
    ]


def resolve_hosts(
    event_type: EventType,
    attendees: list[Attendee],
    new_user_id: int,
) -> HostResolution:
    """Classify hosts and locate the target and current round-robin attendee.

    Args:
        event_type: Event type of the booking
        attendees: Current attendees of the booking
        new_user_id: User id of the requested new host

    Returns:
        HostResolution

    Raises:
        InvalidTargetError: If the target is not a host of the event type
        FixedHostTargetError: If the target is a fixed host
    """
    hosts = effective_hosts(event_type)

    target = next((host for host in hosts if host.user.id == new_user_id), None)
    if target is None:
        raise InvalidTargetError(
            f"User {new_user_id} is not a host of event type {event_type.id}"
        )
    if target.is_fixed:
        raise FixedHostTargetError(f"User {new_user_id} is a fixed host")

    fixed_host = next((host for host in hosts if host.is_fixed), None)
    rr_emails = {host.user.email for host in hosts if not host.is_fixed}
    current_rr_attendee = next(
        (attendee for attendee in attendees if attendee.email in rr_emails), None
    )

    return HostResolution(
        hosts=tuple(hosts),
        fixed_host=fixed_host,
        current_rr_attendee=current_rr_attendee,
        target=target,
    )


def organizer_changes(booking: Booking, resolution: HostResolution) -> bool:
    """Whether reassignment moves ownership of the booking.

    With a fixed host present the fixed host owns the calendar event, so only
    the round-robin attendee is swapped.
    """
    return (
        resolution.fixed_host is None
        and _organizer_id(booking) != resolution.target.user.id
    )


def _organizer_id(booking: Booking) -> int | None:
    return booking.user.id if booking.user else booking.user_id
