"""Appointment endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Query, status

from clinic_api.dependencies import CurrentClinicId, DatabaseSession
from clinic_api.schemas.appointments import (
    AppointmentCreate,
    AppointmentCreateResponse,
    AppointmentFilters,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusResponse,
    AppointmentStatusUpdate,
    AppointmentUpdate,
    AvailableSlotsResponse,
    ConflictCheckResponse,
)
from clinic_api.services.appointment_service import AppointmentService
from clinic_api.utils.intervals import parse_calendar_date

router = APIRouter()


@router.get(
    "/available-slots",
    response_model=AvailableSlotsResponse,
    status_code=status.HTTP_200_OK,
    summary="List bookable slots for a date",
)
async def get_available_slots(
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
    date: str = Query(..., description="Calendar date, YYYY-MM-DD"),
    service_id: UUID | None = Query(None),
) -> AvailableSlotsResponse:
    """
    List the free slots of the clinic on a date.

    An unconfigured or inactive weekday returns an empty list.

    Args:
        clinic_id: Authenticated clinic
        db: Database session
        date: Calendar date in the clinic timezone
        service_id: Service whose duration sizes the slots

    Returns:
        Slots as UTC instants in chronological order
    """
    day = parse_calendar_date(date)
    slots = await AppointmentService(db).available_slots(clinic_id, day, service_id)
    return AvailableSlotsResponse(date=day, service_id=service_id, slots=slots)


@router.get(
    "/conflicts",
    response_model=ConflictCheckResponse,
    status_code=status.HTTP_200_OK,
    summary="Check a time range for conflicts",
)
async def check_conflicts(
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
    start_time: datetime = Query(...),
    end_time: datetime = Query(...),
    exclude_id: UUID | None = Query(None),
) -> ConflictCheckResponse:
    """Whether the range overlaps a non-canceled appointment."""
    has_conflicts = await AppointmentService(db).check_conflicts(
        clinic_id, start_time, end_time, exclude_id
    )
    return ConflictCheckResponse(has_conflicts=has_conflicts)


@router.post(
    "/",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create new appointment",
)
async def create_appointment(
    data: AppointmentCreate,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> AppointmentResponse:
    """
    Create an appointment; overlapping bookings are rejected with 409.

    Args:
        data: Appointment creation data
        clinic_id: Authenticated clinic
        db: Database session

    Returns:
        Created appointment
    """
    return await AppointmentService(db).create_appointment(clinic_id, data)


@router.post(
    "/without-conflict-check",
    response_model=AppointmentCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create appointment allowing overlaps",
)
async def create_appointment_without_conflict_check(
    data: AppointmentCreate,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> AppointmentCreateResponse:
    """Create an appointment and report whether it overlaps others."""
    return await AppointmentService(db).create_appointment_allowing_conflicts(clinic_id, data)


@router.get(
    "/",
    response_model=list[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    summary="List appointments",
)
async def list_appointments(
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    service_id: UUID | None = Query(None),
    patient_cpf: str | None = Query(None),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
) -> list[AppointmentResponse]:
    """
    List the clinic's appointments with filtering.

    Args:
        clinic_id: Authenticated clinic
        db: Database session
        status_filter: Filter by status
        service_id: Filter by service
        patient_cpf: Filter by patient CPF
        start_date: Earliest start time
        end_date: Latest start time

    Returns:
        Appointments in chronological order
    """
    filters = AppointmentFilters(
        status=status_filter,
        service_id=service_id,
        patient_cpf=patient_cpf,
        start_date=start_date,
        end_date=end_date,
    )
    return await AppointmentService(db).list_appointments(clinic_id, filters)


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> AppointmentResponse:
    """Get a specific appointment with its service summary."""
    return await AppointmentService(db).get_appointment(clinic_id, appointment_id)


@router.put(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Update appointment",
)
async def update_appointment(
    appointment_id: UUID,
    data: AppointmentUpdate,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> AppointmentResponse:
    """
    Update an existing appointment.

    Raises:
        ConflictException: If a new time range overlaps another booking
    """
    return await AppointmentService(db).update_appointment(clinic_id, appointment_id, data)


@router.patch(
    "/{appointment_id}/status",
    response_model=AppointmentStatusResponse,
    status_code=status.HTTP_200_OK,
    summary="Update appointment status",
)
async def update_appointment_status(
    appointment_id: UUID,
    data: AppointmentStatusUpdate,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> AppointmentStatusResponse:
    """
    Update appointment status (e.g., confirm, cancel, complete).

    Returns:
        The appointment and the ledger side effect of the change
    """
    return await AppointmentService(db).set_status(clinic_id, appointment_id, data.status)


@router.delete(
    "/{appointment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete appointment",
)
async def delete_appointment(
    appointment_id: UUID,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> None:
    """Delete an appointment."""
    await AppointmentService(db).delete_appointment(clinic_id, appointment_id)
