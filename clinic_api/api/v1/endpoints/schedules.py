"""Weekly schedule endpoints."""

from fastapi import APIRouter, status

from clinic_api.core.exceptions import NotFoundException
from clinic_api.dependencies import CurrentClinicId, DatabaseSession
from clinic_api.schemas.schedules import (
    DayOfWeek,
    ScheduleDayResponse,
    ScheduleDayUpdate,
    ScheduleWeekUpsert,
)
from clinic_api.services.schedule_service import ScheduleService

router = APIRouter()


@router.get(
    "/",
    response_model=list[ScheduleDayResponse],
    status_code=status.HTTP_200_OK,
    summary="Get weekly schedule",
)
async def get_week(
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> list[ScheduleDayResponse]:
    """Get every configured weekday of the clinic, Sunday first."""
    return await ScheduleService(db).get_week(clinic_id)


@router.put(
    "/",
    response_model=list[ScheduleDayResponse],
    status_code=status.HTTP_200_OK,
    summary="Upsert weekly schedule",
)
async def upsert_week(
    data: ScheduleWeekUpsert,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> list[ScheduleDayResponse]:
    """
    Replace the given weekdays of the schedule.

    Args:
        data: Days to write, keyed by ``day_of_week`` or ``weekday`` index
        clinic_id: Authenticated clinic
        db: Database session

    Returns:
        The full week after the write
    """
    return await ScheduleService(db).upsert_week(clinic_id, data)


@router.get(
    "/{day_of_week}",
    response_model=ScheduleDayResponse,
    status_code=status.HTTP_200_OK,
    summary="Get one weekday",
)
async def get_day(
    day_of_week: DayOfWeek,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> ScheduleDayResponse:
    """Get the configuration of one weekday."""
    day = await ScheduleService(db).get_day(clinic_id, day_of_week)
    if day is None:
        raise NotFoundException(f"Schedule for '{day_of_week.value}' not found")
    return day


@router.patch(
    "/{day_of_week}",
    response_model=ScheduleDayResponse,
    status_code=status.HTTP_200_OK,
    summary="Update one weekday",
)
async def update_day(
    day_of_week: DayOfWeek,
    data: ScheduleDayUpdate,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> ScheduleDayResponse:
    """Patch the configuration of one weekday."""
    return await ScheduleService(db).update_day(clinic_id, day_of_week, data)


@router.delete(
    "/{day_of_week}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete one weekday",
)
async def delete_day(
    day_of_week: DayOfWeek,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> None:
    """Remove a weekday; it then offers no slots."""
    await ScheduleService(db).delete_day(clinic_id, day_of_week)
