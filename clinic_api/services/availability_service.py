"""
Slot availability engine.

Slots are generated in the clinic's local wall time from the weekly schedule
template, starting at the work start and stepping by the day's slot interval
while the whole service still fits before the work end. A candidate is
dropped when it overlaps the lunch window or any booking that occupies time
(pending, confirmed or completed). All overlap tests are half-open.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import Any, Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

import structlog

from clinic_api.config import settings
from clinic_api.core.exceptions import AvailabilityError
from clinic_api.schemas.appointments import OCCUPYING_STATUSES, AppointmentStatus, SlotResponse
from clinic_api.utils.intervals import (
    ensure_utc,
    get_zone,
    local_day_bounds,
    overlaps,
    weekday_name,
)

logger = structlog.get_logger(__name__)


class ScheduleReader(Protocol):
    async def get_day(self, user_id: UUID, day_of_week: str) -> Any | None: ...


class ServiceLookup(Protocol):
    async def find_service(self, user_id: UUID, service_id: UUID) -> Any | None: ...


class DayAppointmentReader(Protocol):
    async def list_for_day(
        self,
        user_id: UUID,
        day_start: datetime,
        day_end: datetime,
        statuses: tuple[AppointmentStatus, ...],
    ) -> list[Any]: ...


@dataclass(frozen=True)
class WorkWindow:
    """One day of the schedule template, reduced to what slot generation needs."""

    start: time
    end: time
    interval_minutes: int
    lunch: tuple[time, time] | None = None

    @classmethod
    def from_schedule(cls, schedule: Any, default_interval: int) -> "WorkWindow | None":
        """
        Build a window from a stored schedule day.

        Returns None when the work window itself is unusable. A lunch break
        that is inverted or not inside the work window is ignored.
        """
        if schedule.start_time is None or schedule.end_time is None:
            return None
        if schedule.start_time >= schedule.end_time:
            return None

        interval = schedule.slot_interval or 0
        if interval <= 0:
            interval = default_interval

        lunch = None
        if schedule.has_lunch_break and schedule.lunch_start_time and schedule.lunch_end_time:
            lunch_start, lunch_end = schedule.lunch_start_time, schedule.lunch_end_time
            if (
                lunch_start < lunch_end
                and schedule.start_time <= lunch_start
                and lunch_end <= schedule.end_time
            ):
                lunch = (lunch_start, lunch_end)
            else:
                logger.warning(
                    "lunch_break_ignored",
                    day_of_week=str(getattr(schedule, "day_of_week", "")),
                    lunch_start=lunch_start.isoformat(),
                    lunch_end=lunch_end.isoformat(),
                )

        return cls(schedule.start_time, schedule.end_time, interval, lunch)


def build_slots(
    day: date,
    window: WorkWindow,
    duration_minutes: int,
    busy: Sequence[tuple[datetime, datetime]],
    tz: ZoneInfo,
) -> list[SlotResponse]:
    """
    Generate the free slots of one day.

    Args:
        day: Local calendar date
        window: Work window of that weekday
        duration_minutes: Length of each slot
        busy: Occupied ``[start, end)`` ranges as aware datetimes
        tz: Clinic timezone

    Returns:
        Slots in chronological order, as UTC instants
    """
    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=window.interval_minutes)
    work_end = datetime.combine(day, window.end)

    lunch_range = None
    if window.lunch is not None:
        lunch_range = (
            datetime.combine(day, window.lunch[0]),
            datetime.combine(day, window.lunch[1]),
        )

    busy_utc = [(ensure_utc(start), ensure_utc(end)) for start, end in busy]

    slots: list[SlotResponse] = []
    candidate = datetime.combine(day, window.start)
    while candidate + duration <= work_end:
        candidate_end = candidate + duration

        if lunch_range is None or not overlaps(candidate, candidate_end, *lunch_range):
            start_utc = candidate.replace(tzinfo=tz).astimezone(UTC)
            end_utc = candidate_end.replace(tzinfo=tz).astimezone(UTC)
            if not any(overlaps(start_utc, end_utc, b0, b1) for b0, b1 in busy_utc):
                slots.append(SlotResponse(start_time=start_utc, end_time=end_utc))

        candidate += step

    return slots


class AvailabilityService:
    """Computes bookable windows for a clinic on a calendar date."""

    def __init__(
        self,
        schedules: ScheduleReader,
        appointments: DayAppointmentReader,
        catalog: ServiceLookup,
        timezone: str | None = None,
        default_duration: int | None = None,
        default_interval: int | None = None,
    ):
        """Initialize with the stores the engine reads from."""
        self.schedules = schedules
        self.appointments = appointments
        self.catalog = catalog
        self.tz = get_zone(timezone or settings.clinic_timezone)
        self.default_duration = default_duration or settings.default_service_duration_minutes
        self.default_interval = default_interval or settings.default_slot_interval_minutes

    async def compute_available_slots(
        self,
        user_id: UUID,
        day: date,
        service_id: UUID | None = None,
    ) -> list[SlotResponse]:
        """
        List the free slots of a clinic for a date.

        An unconfigured or inactive weekday yields an empty list.

        Raises:
            AvailabilityError: If a store lookup fails
        """
        day_name = weekday_name(day)
        try:
            schedule = await self.schedules.get_day(user_id, day_name)
        except Exception as e:
            logger.error("availability_lookup_failed", step="schedule", error=str(e))
            raise AvailabilityError(f"Could not load schedule: {e}") from e

        if schedule is None or not schedule.is_active:
            return []

        window = WorkWindow.from_schedule(schedule, self.default_interval)
        if window is None:
            logger.warning("invalid_work_window", day_of_week=day_name, user_id=str(user_id))
            return []

        duration = await self._service_duration(user_id, service_id)

        day_start, day_end = local_day_bounds(day, self.tz)
        try:
            booked = await self.appointments.list_for_day(
                user_id, day_start, day_end, OCCUPYING_STATUSES
            )
        except Exception as e:
            logger.error("availability_lookup_failed", step="appointments", error=str(e))
            raise AvailabilityError(f"Could not load appointments: {e}") from e

        busy = [(a.start_time, a.end_time) for a in booked if a.status in OCCUPYING_STATUSES]
        return build_slots(day, window, duration, busy, self.tz)

    async def _service_duration(self, user_id: UUID, service_id: UUID | None) -> int:
        if service_id is None:
            return self.default_duration

        try:
            service = await self.catalog.find_service(user_id, service_id)
        except Exception as e:
            logger.error("availability_lookup_failed", step="service", error=str(e))
            raise AvailabilityError(f"Could not load service: {e}") from e

        if service is None or not service.duration or service.duration <= 0:
            return self.default_duration
        return service.duration
