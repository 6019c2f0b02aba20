"""Health check endpoints."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from clinic_api.config import settings
from clinic_api.core.exceptions import ValidationException
from clinic_api.database import check_database_connection
from clinic_api.utils.intervals import get_zone, local_today

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str


class SchedulingStatus(BaseModel):
    """Calendar settings the slot engine runs with."""

    timezone: str
    timezone_valid: bool
    local_date: str | None = None
    default_service_duration_minutes: int
    default_slot_interval_minutes: int


class DetailedHealthResponse(HealthResponse):
    database: str
    scheduling: SchedulingStatus


def _scheduling_status() -> SchedulingStatus:
    try:
        today = local_today(get_zone(settings.clinic_timezone)).isoformat()
    except ValidationException:
        today = None

    return SchedulingStatus(
        timezone=settings.clinic_timezone,
        timezone_valid=today is not None,
        local_date=today,
        default_service_duration_minutes=settings.default_service_duration_minutes,
        default_slot_interval_minutes=settings.default_slot_interval_minutes,
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
)
async def health_check() -> HealthResponse:
    """Liveness probe; touches nothing outside the process."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Detailed health check",
)
async def detailed_health_check() -> DetailedHealthResponse:
    """
    Readiness probe.

    Reports ``degraded`` when the database is unreachable or the configured
    clinic timezone cannot be resolved, since no slot can be computed then.
    """
    db_healthy = await check_database_connection()
    scheduling = _scheduling_status()

    return DetailedHealthResponse(
        status="healthy" if db_healthy and scheduling.timezone_valid else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        database="healthy" if db_healthy else "unhealthy",
        scheduling=scheduling,
    )


@router.get("/ping", status_code=status.HTTP_200_OK, summary="Simple ping")
async def ping() -> dict[str, str]:
    return {"message": "pong"}
