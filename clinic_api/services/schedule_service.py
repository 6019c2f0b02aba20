"""Weekly schedule template store."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import and_, case, delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_api.core.exceptions import NotFoundException, ValidationException
from clinic_api.models.schedules import user_schedules
from clinic_api.schemas.schedules import (
    DayOfWeek,
    ScheduleDayResponse,
    ScheduleDayUpdate,
    ScheduleWeekUpsert,
)

_DAY_ORDER = case(
    {day.value: idx for idx, day in enumerate(DayOfWeek)},
    value=user_schedules.c.day_of_week,
)


class ScheduleService:
    """Service for the per-clinic weekly availability template."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def get_week(self, user_id: UUID) -> list[ScheduleDayResponse]:
        """
        Get every configured day for a clinic, Sunday first.

        Args:
            user_id: Clinic owner ID

        Returns:
            Up to seven schedule days
        """
        stmt = (
            select(user_schedules)
            .where(user_schedules.c.user_id == user_id)
            .order_by(_DAY_ORDER)
        )
        result = await self.db.execute(stmt)
        return [ScheduleDayResponse.model_validate(dict(row._mapping)) for row in result]

    async def get_day(self, user_id: UUID, day_of_week: DayOfWeek | str) -> ScheduleDayResponse | None:
        """
        Get the configuration of one weekday.

        Returns:
            The schedule day, or None when the day was never configured
        """
        day = DayOfWeek(day_of_week)
        stmt = select(user_schedules).where(
            and_(
                user_schedules.c.user_id == user_id,
                user_schedules.c.day_of_week == day.value,
            )
        )
        result = await self.db.execute(stmt)
        row = result.fetchone()
        return ScheduleDayResponse.model_validate(dict(row._mapping)) if row else None

    async def upsert_week(self, user_id: UUID, data: ScheduleWeekUpsert) -> list[ScheduleDayResponse]:
        """
        Replace the given days of the weekly template.

        Each entry is keyed on ``(user_id, day_of_week)``: existing rows are
        overwritten, missing ones are inserted. Days absent from the payload
        are left untouched.

        Args:
            user_id: Clinic owner ID
            data: Days to write

        Returns:
            The full week after the write
        """
        days = data.resolved_days()
        keys = [day for day, _ in days]
        if len(set(keys)) != len(keys):
            raise ValidationException("Each weekday may appear only once")

        now = datetime.now(UTC)
        for day, entry in days:
            values = entry.model_dump(exclude={"day_of_week", "weekday"})
            values["updated_at"] = now

            stmt = (
                update(user_schedules)
                .where(
                    and_(
                        user_schedules.c.user_id == user_id,
                        user_schedules.c.day_of_week == day.value,
                    )
                )
                .values(**values)
            )
            result = await self.db.execute(stmt)
            if result.rowcount == 0:
                await self.db.execute(
                    insert(user_schedules).values(
                        user_id=user_id, day_of_week=day.value, created_at=now, **values
                    )
                )

        await self.db.commit()
        return await self.get_week(user_id)

    async def update_day(
        self,
        user_id: UUID,
        day_of_week: DayOfWeek,
        data: ScheduleDayUpdate,
    ) -> ScheduleDayResponse:
        """
        Patch a single configured day.

        Raises:
            NotFoundException: If the day has no row yet
            ValidationException: If the merged windows are inconsistent
        """
        current = await self.get_day(user_id, day_of_week)
        if current is None:
            raise NotFoundException(f"Schedule for '{day_of_week.value}' not found")

        changes: dict[str, Any] = data.changes()
        if not changes:
            return current

        merged = current.model_copy(update=changes)
        if merged.start_time >= merged.end_time:
            raise ValidationException("start_time must be before end_time")
        if (
            merged.has_lunch_break
            and merged.lunch_start_time is not None
            and merged.lunch_end_time is not None
            and merged.lunch_start_time >= merged.lunch_end_time
        ):
            raise ValidationException("lunch_start_time must be before lunch_end_time")

        changes["updated_at"] = datetime.now(UTC)
        stmt = (
            update(user_schedules)
            .where(user_schedules.c.id == current.id)
            .values(**changes)
            .returning(user_schedules)
        )
        result = await self.db.execute(stmt)
        row = result.fetchone()
        await self.db.commit()

        return ScheduleDayResponse.model_validate(dict(row._mapping))

    async def delete_day(self, user_id: UUID, day_of_week: DayOfWeek) -> None:
        """Remove a configured day; the day then yields no slots."""
        stmt = delete(user_schedules).where(
            and_(
                user_schedules.c.user_id == user_id,
                user_schedules.c.day_of_week == day_of_week.value,
            )
        )
        result = await self.db.execute(stmt)
        await self.db.commit()

        if result.rowcount == 0:
            raise NotFoundException(f"Schedule for '{day_of_week.value}' not found")
