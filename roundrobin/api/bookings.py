"""Booking endpoints for manual round-robin reassignment."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from roundrobin.errors import (
    CollaboratorFailure,
    FixedHostTargetError,
    InvalidTargetError,
    NotFoundError,
)
from roundrobin.models import Booking
from roundrobin.reassignment import RoundRobinReassigner

logger = structlog.get_logger()
router = APIRouter(prefix="/bookings", tags=["bookings"])


class ReassignRequest(BaseModel):
    """Request body for manual reassignment."""

    new_user_id: int = Field(description="Round-robin host to assign the booking to")
    org_id: int | None = Field(default=None, description="Organization of the caller")


def get_reassigner(request: Request) -> RoundRobinReassigner:
    """Dependency to get RoundRobinReassigner from app state.

    Raises:
        HTTPException: If the service is not initialized
    """
    reassigner = getattr(request.app.state, "reassigner", None)
    if reassigner is None:
        raise HTTPException(status_code=503, detail="Reassignment service not initialized")
    return reassigner


@router.post("/{booking_id}/reassign", response_model=Booking)
async def reassign_booking(
    booking_id: int,
    body: ReassignRequest,
    reassigner: RoundRobinReassigner = Depends(get_reassigner),
) -> Booking:
    """Manually reassign a round-robin booking to another host.

    Args:
        booking_id: Booking to reassign
        body: Target host and optional organization

    Returns:
        The booking as persisted after reassignment

    Raises:
        HTTPException: 404 unknown booking or event type, 400 invalid
            target, 502 a collaborator failed
    """
    try:
        return await reassigner.reassign(booking_id, body.new_user_id, body.org_id)
    except NotFoundError as e:
        raise HTTPException(
            status_code=404, detail={"code": e.code, "message": str(e)}
        ) from e
    except (InvalidTargetError, FixedHostTargetError) as e:
        raise HTTPException(
            status_code=400, detail={"code": e.code, "message": str(e)}
        ) from e
    except CollaboratorFailure as e:
        logger.error(
            "reassignment failed",
            booking_id=booking_id,
            collaborator=e.collaborator,
            state=e.state,
            error=str(e.cause),
        )
        raise HTTPException(
            status_code=502,
            detail={
                "code": e.code,
                "message": str(e),
                "collaborator": e.collaborator,
                "state": e.state,
            },
        ) from e
