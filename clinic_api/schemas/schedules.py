"""Work schedule schemas for request/response validation."""

from datetime import datetime, time
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field, model_validator

from clinic_api.schemas.common import reject_explicit_nulls


class DayOfWeek(str, Enum):
    """Schedule day keys, Sunday first."""

    DOMINGO = "domingo"
    SEGUNDA = "segunda"
    TERCA = "terca"
    QUARTA = "quarta"
    QUINTA = "quinta"
    SEXTA = "sexta"
    SABADO = "sabado"

    @classmethod
    def from_index(cls, index: int) -> "DayOfWeek":
        """Map 0 (Sunday) .. 6 (Saturday) to a day key."""
        return list(cls)[index]


def _check_windows(
    start: time | None,
    end: time | None,
    has_lunch: bool | None,
    lunch_start: time | None,
    lunch_end: time | None,
) -> None:
    if start is not None and end is not None and start >= end:
        raise ValueError("start_time must be before end_time")
    if has_lunch and lunch_start is not None and lunch_end is not None:
        if lunch_start >= lunch_end:
            raise ValueError("lunch_start_time must be before lunch_end_time")


class ScheduleDayBase(BaseModel):
    """
    Fields shared by schedule payloads.

    The legacy camelCase names sent by older clients (``start``, ``hasLunch``,
    ``lunchStart``...) are accepted as aliases.
    """

    model_config = {"populate_by_name": True}

    is_active: bool = Field(True, validation_alias=AliasChoices("is_active", "active"))
    start_time: time = Field(..., validation_alias=AliasChoices("start_time", "start"))
    end_time: time = Field(..., validation_alias=AliasChoices("end_time", "end"))
    has_lunch_break: bool = Field(
        False, validation_alias=AliasChoices("has_lunch_break", "hasLunch")
    )
    lunch_start_time: time | None = Field(
        None, validation_alias=AliasChoices("lunch_start_time", "lunchStart")
    )
    lunch_end_time: time | None = Field(
        None, validation_alias=AliasChoices("lunch_end_time", "lunchEnd")
    )
    slot_interval: int = Field(30, ge=5, le=240)


class ScheduleDayUpsert(ScheduleDayBase):
    """One day of a bulk week upsert."""

    day_of_week: DayOfWeek | None = None
    weekday: int | None = Field(None, ge=0, le=6)

    @model_validator(mode="after")
    def validate_day(self) -> "ScheduleDayUpsert":
        """Validate time windows."""
        _check_windows(
            self.start_time,
            self.end_time,
            self.has_lunch_break,
            self.lunch_start_time,
            self.lunch_end_time,
        )
        return self


class ScheduleWeekUpsert(BaseModel):
    """Bulk upsert payload; days without a key take their list position."""

    schedules: list[ScheduleDayUpsert] = Field(..., max_length=7)

    def resolved_days(self) -> list[tuple[DayOfWeek, ScheduleDayUpsert]]:
        """Pair each entry with its day key."""
        resolved = []
        for idx, entry in enumerate(self.schedules):
            if entry.day_of_week is not None:
                day = entry.day_of_week
            else:
                day = DayOfWeek.from_index(entry.weekday if entry.weekday is not None else idx)
            resolved.append((day, entry))
        return resolved


_REQUIRED_DAY_FIELDS = ("is_active", "start_time", "end_time", "has_lunch_break", "slot_interval")


class ScheduleDayUpdate(BaseModel):
    """Partial update of a single day."""

    model_config = {"populate_by_name": True}

    is_active: bool | None = Field(None, validation_alias=AliasChoices("is_active", "active"))
    start_time: time | None = Field(None, validation_alias=AliasChoices("start_time", "start"))
    end_time: time | None = Field(None, validation_alias=AliasChoices("end_time", "end"))
    has_lunch_break: bool | None = Field(
        None, validation_alias=AliasChoices("has_lunch_break", "hasLunch")
    )
    lunch_start_time: time | None = Field(
        None, validation_alias=AliasChoices("lunch_start_time", "lunchStart")
    )
    lunch_end_time: time | None = Field(
        None, validation_alias=AliasChoices("lunch_end_time", "lunchEnd")
    )
    slot_interval: int | None = Field(None, ge=5, le=240)

    @model_validator(mode="after")
    def validate_day(self) -> "ScheduleDayUpdate":
        """Validate whichever windows are fully present."""
        reject_explicit_nulls(self, _REQUIRED_DAY_FIELDS)
        _check_windows(
            self.start_time,
            self.end_time,
            self.has_lunch_break,
            self.lunch_start_time,
            self.lunch_end_time,
        )
        return self

    def changes(self) -> dict[str, Any]:
        """Fields explicitly set by the client."""
        return self.model_dump(exclude_unset=True)


class ScheduleDayResponse(BaseModel):
    """Schema for a stored schedule day."""

    id: UUID
    user_id: UUID
    day_of_week: DayOfWeek
    is_active: bool
    start_time: time
    end_time: time
    has_lunch_break: bool
    lunch_start_time: time | None = None
    lunch_end_time: time | None = None
    slot_interval: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
