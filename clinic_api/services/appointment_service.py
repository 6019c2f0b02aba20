"""Appointment service for business logic."""

from datetime import date, datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_api.core.exceptions import ConflictException, LedgerSyncError, ValidationException
from clinic_api.schemas.appointments import (
    AppointmentCreate,
    AppointmentCreateResponse,
    AppointmentFilters,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusResponse,
    AppointmentUpdate,
    SlotResponse,
)
from clinic_api.services.appointment_store import AppointmentStore
from clinic_api.services.availability_service import AvailabilityService
from clinic_api.services.catalog_service import CatalogService
from clinic_api.services.conflict_service import ConflictService
from clinic_api.services.ledger_service import POLICIES, LedgerCoordinator, LedgerEntity
from clinic_api.services.schedule_service import ScheduleService

logger = structlog.get_logger(__name__)


class AppointmentService:
    """Service for managing appointments."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db
        self.store = AppointmentStore(db)
        self.catalog = CatalogService(db)
        self.conflicts = ConflictService(self.store)
        self.ledger = LedgerCoordinator.for_session(db)

    async def create_appointment(
        self,
        user_id: UUID,
        data: AppointmentCreate,
    ) -> AppointmentResponse:
        """
        Create an appointment, refusing overlapping bookings.

        Args:
            user_id: Clinic owner ID
            data: Appointment creation data

        Returns:
            Created appointment

        Raises:
            ConflictException: If the range overlaps a non-canceled appointment
        """
        await self.catalog.get_service(user_id, data.service_id)

        await self._reject_conflicts(user_id, data.start_time, data.end_time)

        appointment = await self.store.insert(user_id, data)
        logger.info("appointment_created", appointment_id=str(appointment.id), strict=True)
        return appointment

    async def create_appointment_allowing_conflicts(
        self,
        user_id: UUID,
        data: AppointmentCreate,
    ) -> AppointmentCreateResponse:
        """
        Create an appointment even if it overlaps others.

        Used by back-office flows that double-book on purpose; the overlap is
        reported instead of enforced.
        """
        await self.catalog.get_service(user_id, data.service_id)

        has_conflicts = await self.conflicts.has_conflict(user_id, data.start_time, data.end_time)
        appointment = await self.store.insert(user_id, data)
        logger.info(
            "appointment_created",
            appointment_id=str(appointment.id),
            strict=False,
            has_conflicts=has_conflicts,
        )
        return AppointmentCreateResponse(appointment=appointment, has_conflicts=has_conflicts)

    async def get_appointment(self, user_id: UUID, appointment_id: UUID) -> AppointmentResponse:
        """
        Get appointment by ID.

        Raises:
            NotFoundException: If appointment not found
        """
        return await self.store.get(user_id, appointment_id)

    async def list_appointments(
        self,
        user_id: UUID,
        filters: AppointmentFilters,
    ) -> list[AppointmentResponse]:
        """List a clinic's appointments with filtering."""
        return await self.store.list_appointments(user_id, filters)

    async def check_conflicts(
        self,
        user_id: UUID,
        start: Any,
        end: Any,
        exclude_id: UUID | None = None,
    ) -> bool:
        """Whether a proposed range overlaps existing bookings."""
        return await self.conflicts.has_conflict(user_id, start, end, exclude_id)

    async def update_appointment(
        self,
        user_id: UUID,
        appointment_id: UUID,
        data: AppointmentUpdate,
    ) -> AppointmentResponse:
        """
        Update an existing appointment.

        A changed time range is re-checked against other bookings. A status in
        the payload goes through :meth:`set_status` so its ledger side effect
        applies.

        Raises:
            NotFoundException: If appointment not found
            ConflictException: If the new range overlaps another booking
            ValidationException: If the resulting range is empty
            LedgerSyncError: If completing the appointment could not record its
                income; the previous status is kept
        """
        current = await self.store.get(user_id, appointment_id)

        changes = data.model_dump(exclude_unset=True)
        status = changes.pop("status", None)

        if "service_id" in changes:
            await self.catalog.get_service(user_id, changes["service_id"])

        if "start_time" in changes or "end_time" in changes:
            start = changes.get("start_time", current.start_time)
            end = changes.get("end_time", current.end_time)
            if start >= end:
                raise ValidationException("end_time must be after start_time")
            await self._reject_conflicts(user_id, start, end, exclude_id=appointment_id)
        elif status is not None and not current.status.occupies_slot and status.occupies_slot:
            await self._reject_conflicts(
                user_id, current.start_time, current.end_time, exclude_id=appointment_id
            )

        appointment = current
        if changes:
            appointment = await self.store.update_fields(user_id, appointment_id, changes)

        if status is not None and status != current.status:
            result = await self.set_status(user_id, appointment_id, AppointmentStatus(status))
            if result.transaction_info.error is not None:
                raise LedgerSyncError(
                    f"Status not changed, ledger untouched: {result.transaction_info.error}",
                    origin=POLICIES[LedgerEntity.APPOINTMENT].origin.value,
                    origin_id=str(appointment_id),
                    entity=result.appointment,
                )
            appointment = result.appointment

        return appointment

    async def set_status(
        self,
        user_id: UUID,
        appointment_id: UUID,
        status: AppointmentStatus,
    ) -> AppointmentStatusResponse:
        """
        Change an appointment status and keep its revenue entry in step.

        Completing an appointment books its service price as income; any
        other status removes that entry. If the income entry cannot be
        created the previous status is restored and the error is returned in
        ``transaction_info``.

        Raises:
            ConflictException: If a canceled appointment is reactivated over a
                range that was booked in the meantime
        """
        current = await self.store.get(user_id, appointment_id)
        if not current.status.occupies_slot and status.occupies_slot:
            await self._reject_conflicts(
                user_id, current.start_time, current.end_time, exclude_id=appointment_id
            )

        appointment, info = await self.ledger.transition(
            LedgerEntity.APPOINTMENT,
            self.store,
            user_id,
            appointment_id,
            status,
        )
        return AppointmentStatusResponse(appointment=appointment, transaction_info=info)

    async def delete_appointment(self, user_id: UUID, appointment_id: UUID) -> None:
        """
        Delete an appointment.

        The ledger entry of a completed appointment is kept as financial
        history.

        Raises:
            NotFoundException: If appointment not found
        """
        await self.store.delete(user_id, appointment_id)
        logger.info("appointment_deleted", appointment_id=str(appointment_id))

    async def _reject_conflicts(
        self,
        user_id: UUID,
        start: datetime,
        end: datetime,
        exclude_id: UUID | None = None,
    ) -> None:
        conflicting = await self.conflicts.find_conflicts(user_id, start, end, exclude_id)
        if not conflicting:
            return

        conflicting_ids = [str(c) for c in conflicting]
        logger.info(
            "appointment_conflict",
            user_id=str(user_id),
            appointment_id=str(exclude_id) if exclude_id else None,
            start_time=start.isoformat(),
            end_time=end.isoformat(),
            conflicting_ids=conflicting_ids,
        )
        raise ConflictException(
            "There is a scheduling conflict for this appointment",
            conflicting_ids=conflicting_ids,
        )

    async def available_slots(
        self,
        user_id: UUID,
        day: date,
        service_id: UUID | None = None,
    ) -> list[SlotResponse]:
        """Free slots of the clinic for a calendar date."""
        engine = AvailabilityService(ScheduleService(self.db), self.store, self.catalog)
        return await engine.compute_available_slots(user_id, day, service_id)
