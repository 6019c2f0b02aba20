"""Booking conflict detection."""

from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from clinic_api.core.exceptions import ValidationException
from clinic_api.utils.intervals import ensure_utc, overlaps


class ActiveAppointmentReader(Protocol):
    """Read access to non-canceled appointments."""

    async def list_active(
        self,
        user_id: UUID,
        exclude_id: UUID | None = None,
        window: tuple[datetime, datetime] | None = None,
    ) -> list[Any]: ...


class ConflictService:
    """
    Checks a proposed ``[start, end)`` range against existing bookings.

    The check is advisory: it runs outside any transaction that inserts the
    appointment, so two concurrent requests for the same range can both pass.
    """

    def __init__(self, appointments: ActiveAppointmentReader):
        """Initialize with an appointment reader."""
        self.appointments = appointments

    async def find_conflicts(
        self,
        user_id: UUID,
        start: datetime,
        end: datetime,
        exclude_id: UUID | None = None,
    ) -> list[UUID]:
        """
        IDs of non-canceled appointments overlapping the range.

        Raises:
            ValidationException: If ``start`` is not before ``end``
        """
        start, end = ensure_utc(start), ensure_utc(end)
        if start >= end:
            raise ValidationException("start_time must be before end_time")

        existing = await self.appointments.list_active(user_id, exclude_id, (start, end))
        return [
            appointment.id
            for appointment in existing
            if overlaps(
                start,
                end,
                ensure_utc(appointment.start_time),
                ensure_utc(appointment.end_time),
            )
        ]

    async def has_conflict(
        self,
        user_id: UUID,
        start: datetime,
        end: datetime,
        exclude_id: UUID | None = None,
    ) -> bool:
        """Whether the range overlaps any non-canceled appointment."""
        return bool(await self.find_conflicts(user_id, start, end, exclude_id))
