"""Health check endpoints for monitoring and orchestration."""

from datetime import UTC, datetime

from fastapi import APIRouter, Request
from pydantic import BaseModel

from roundrobin.config import settings

router = APIRouter(prefix="/health", tags=["health"])

# Checks that may report "not_configured" without failing readiness
OPTIONAL_CHECKS = frozenset({"email", "google_calendar"})


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    timestamp: datetime
    version: str
    environment: str


class LivenessResponse(BaseModel):
    status: str


class ReadinessResponse(BaseModel):
    """Response model for readiness probe."""

    status: str
    checks: dict[str, str]


@router.get("/", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        version=settings.app_version,
        environment=settings.app_env,
    )


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe - app is running."""
    return LivenessResponse(status="alive")


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(request: Request) -> ReadinessResponse:
    """Readiness probe - reassignments can be served.

    Checks:
    - Database is connected and healthy
    - Reassignment service is wired
    - Email and Google Calendar credentials are configured (informational)
    """
    checks: dict[str, str] = {}

    db = getattr(request.app.state, "db", None)
    if db is None:
        checks["database"] = "not_configured"
    else:
        checks["database"] = "ok" if await db.is_healthy() else "failed"

    reassigner = getattr(request.app.state, "reassigner", None)
    checks["reassigner"] = "ok" if reassigner is not None else "not_configured"
    checks["email"] = "ok" if settings.smtp_host else "not_configured"
    checks["google_calendar"] = (
        "ok"
        if settings.google_client_id and settings.google_client_secret
        else "not_configured"
    )

    required = {k: v for k, v in checks.items() if k not in OPTIONAL_CHECKS}
    status = "ready" if all(v == "ok" for v in required.values()) else "not_ready"
    return ReadinessResponse(status=status, checks=checks)
