"""Appointment persistence."""

from datetime import UTC, date, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import and_, delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_api.core.exceptions import NotFoundException
from clinic_api.models.appointments import user_appointments
from clinic_api.models.services import user_services
from clinic_api.schemas.appointments import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentResponse,
    AppointmentStatus,
)
from clinic_api.schemas.services import ServiceSummary


def _to_response(row: Any) -> AppointmentResponse:
    data = dict(row._mapping)
    service = None
    if data.get("service_name") is not None:
        service = ServiceSummary(
            id=data["service_id"],
            name=data.pop("service_name"),
            description=data.pop("service_description"),
            duration=data.pop("service_duration"),
            price=data.pop("service_price"),
        )
    return AppointmentResponse.model_validate({**data, "service": service})


def _select_with_service():
    return select(
        user_appointments,
        user_services.c.name.label("service_name"),
        user_services.c.description.label("service_description"),
        user_services.c.duration.label("service_duration"),
        user_services.c.price.label("service_price"),
    ).select_from(
        user_appointments.outerjoin(
            user_services,
            and_(
                user_services.c.id == user_appointments.c.service_id,
                user_services.c.user_id == user_appointments.c.user_id,
            ),
        )
    )


class AppointmentStore:
    """Store for persisted appointments scoped by clinic."""

    def __init__(self, db: AsyncSession):
        """Initialize store with database session."""
        self.db = db

    async def insert(self, user_id: UUID, data: AppointmentCreate) -> AppointmentResponse:
        """Persist a new appointment as pending."""
        values = {
            **data.model_dump(),
            "user_id": user_id,
            "status": AppointmentStatus.PENDING.value,
        }
        result = await self.db.execute(
            insert(user_appointments).values(**values).returning(user_appointments.c.id)
        )
        appointment_id = result.scalar_one()
        await self.db.commit()
        return await self.get(user_id, appointment_id)

    async def find(self, user_id: UUID, appointment_id: UUID) -> AppointmentResponse | None:
        """Get an appointment with its service summary, or None."""
        stmt = _select_with_service().where(
            and_(
                user_appointments.c.id == appointment_id,
                user_appointments.c.user_id == user_id,
            )
        )
        result = await self.db.execute(stmt)
        row = result.fetchone()
        return _to_response(row) if row else None

    async def get(self, user_id: UUID, appointment_id: UUID) -> AppointmentResponse:
        """
        Get an appointment by ID.

        Raises:
            NotFoundException: If the appointment is not found
        """
        appointment = await self.find(user_id, appointment_id)
        if appointment is None:
            raise NotFoundException("Appointment not found")
        return appointment

    async def list_appointments(
        self,
        user_id: UUID,
        filters: AppointmentFilters,
    ) -> list[AppointmentResponse]:
        """List appointments in chronological order."""
        conditions = [user_appointments.c.user_id == user_id]

        if filters.service_id:
            conditions.append(user_appointments.c.service_id == filters.service_id)

        if filters.status:
            conditions.append(user_appointments.c.status == filters.status.value)

        if filters.patient_cpf:
            conditions.append(user_appointments.c.patient_cpf == filters.patient_cpf)

        if filters.start_date:
            conditions.append(user_appointments.c.start_time >= filters.start_date)

        if filters.end_date:
            conditions.append(user_appointments.c.start_time <= filters.end_date)

        stmt = _select_with_service().where(and_(*conditions)).order_by(
            user_appointments.c.start_time.asc()
        )
        result = await self.db.execute(stmt)
        return [_to_response(row) for row in result]

    async def list_for_day(
        self,
        user_id: UUID,
        day_start: datetime,
        day_end: datetime,
        statuses: tuple[AppointmentStatus, ...],
    ) -> list[AppointmentResponse]:
        """Appointments whose start falls in ``[day_start, day_end)``."""
        stmt = (
            select(user_appointments)
            .where(
                and_(
                    user_appointments.c.user_id == user_id,
                    user_appointments.c.start_time >= day_start,
                    user_appointments.c.start_time < day_end,
                    user_appointments.c.status.in_([s.value for s in statuses]),
                )
            )
            .order_by(user_appointments.c.start_time)
        )
        result = await self.db.execute(stmt)
        return [AppointmentResponse.model_validate(dict(row._mapping)) for row in result]

    async def list_active(
        self,
        user_id: UUID,
        exclude_id: UUID | None = None,
        window: tuple[datetime, datetime] | None = None,
    ) -> list[AppointmentResponse]:
        """
        Non-canceled appointments of a clinic.

        Args:
            user_id: Clinic owner ID
            exclude_id: Appointment to leave out (update-in-place checks)
            window: Only rows overlapping this ``[start, end)`` range
        """
        conditions = [
            user_appointments.c.user_id == user_id,
            user_appointments.c.status != AppointmentStatus.CANCELED.value,
        ]
        if exclude_id is not None:
            conditions.append(user_appointments.c.id != exclude_id)
        if window is not None:
            start, end = window
            conditions.append(user_appointments.c.start_time < end)
            conditions.append(user_appointments.c.end_time > start)

        result = await self.db.execute(select(user_appointments).where(and_(*conditions)))
        return [AppointmentResponse.model_validate(dict(row._mapping)) for row in result]

    async def update_fields(
        self,
        user_id: UUID,
        appointment_id: UUID,
        values: dict[str, Any],
    ) -> AppointmentResponse:
        """Write the given columns and return the fresh row."""
        values = {**values, "updated_at": datetime.now(UTC)}
        stmt = (
            update(user_appointments)
            .where(
                and_(
                    user_appointments.c.id == appointment_id,
                    user_appointments.c.user_id == user_id,
                )
            )
            .values(**values)
        )
        result = await self.db.execute(stmt)
        await self.db.commit()

        if result.rowcount == 0:
            raise NotFoundException("Appointment not found")
        return await self.get(user_id, appointment_id)

    async def write_status(
        self,
        user_id: UUID,
        appointment_id: UUID,
        status: AppointmentStatus,
        settled_on: date | None = None,
    ) -> AppointmentResponse:
        """Persist a status; appointments carry no settlement date."""
        return await self.update_fields(user_id, appointment_id, {"status": status.value})

    async def restore(self, user_id: UUID, previous: AppointmentResponse) -> AppointmentResponse:
        """Write back the status of an earlier snapshot."""
        # A failed ledger write may have left the transaction aborted
        await self.db.rollback()
        return await self.update_fields(user_id, previous.id, {"status": previous.status.value})

    async def delete(self, user_id: UUID, appointment_id: UUID) -> None:
        """
        Delete an appointment.

        Raises:
            NotFoundException: If the appointment is not found
        """
        stmt = delete(user_appointments).where(
            and_(
                user_appointments.c.id == appointment_id,
                user_appointments.c.user_id == user_id,
            )
        )
        result = await self.db.execute(stmt)
        await self.db.commit()

        if result.rowcount == 0:
            raise NotFoundException("Appointment not found")
