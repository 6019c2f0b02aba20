"""Appointment schemas for request/response validation."""

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from clinic_api.schemas.common import reject_explicit_nulls
from clinic_api.schemas.finance import TransactionInfo
from clinic_api.schemas.services import ServiceSummary
from clinic_api.utils.intervals import ensure_utc


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELED = "canceled"
    COMPLETED = "completed"

    @property
    def is_realized(self) -> bool:
        """Whether the visit financially happened."""
        return self is AppointmentStatus.COMPLETED

    @property
    def occupies_slot(self) -> bool:
        """Whether the appointment blocks its time range."""
        return self is not AppointmentStatus.CANCELED


# Statuses that block a time range
OCCUPYING_STATUSES = tuple(status for status in AppointmentStatus if status.occupies_slot)


def _normalize_cpf(v: str) -> str:
    digits = "".join(ch for ch in v if ch.isdigit())
    if len(digits) != 11:
        raise ValueError("CPF must have 11 digits")
    return digits


class AppointmentBase(BaseModel):
    """Base appointment schema with common fields."""

    service_id: UUID
    patient_cpf: str = Field(..., min_length=11, max_length=14)
    patient_name: str = Field(..., min_length=1, max_length=200)
    patient_phone: str | None = Field(None, max_length=20)
    start_time: datetime
    end_time: datetime


class AppointmentCreate(AppointmentBase):
    """Schema for creating a new appointment."""

    @field_validator("patient_cpf")
    @classmethod
    def validate_cpf(cls, v: str) -> str:
        """Keep only the CPF digits."""
        return _normalize_cpf(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        """Store instants in UTC."""
        return ensure_utc(v)

    @model_validator(mode="after")
    def validate_interval(self) -> "AppointmentCreate":
        """Validate end time is after start time."""
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class AppointmentUpdate(BaseModel):
    """Schema for updating an existing appointment."""

    service_id: UUID | None = None
    patient_cpf: str | None = Field(None, min_length=11, max_length=14)
    patient_name: str | None = Field(None, min_length=1, max_length=200)
    patient_phone: str | None = Field(None, max_length=20)
    start_time: datetime | None = None
    end_time: datetime | None = None
    status: AppointmentStatus | None = None

    @field_validator("patient_cpf")
    @classmethod
    def validate_cpf(cls, v: str | None) -> str | None:
        """Keep only the CPF digits."""
        return _normalize_cpf(v) if v is not None else v

    @field_validator("start_time", "end_time")
    @classmethod
    def to_utc(cls, v: datetime | None) -> datetime | None:
        """Store instants in UTC."""
        return ensure_utc(v) if v is not None else v

    @model_validator(mode="after")
    def validate_nulls(self) -> "AppointmentUpdate":
        """Only the patient phone may be cleared."""
        reject_explicit_nulls(
            self,
            ("service_id", "patient_cpf", "patient_name", "start_time", "end_time", "status"),
        )
        return self


class AppointmentStatusUpdate(BaseModel):
    """Schema for updating appointment status."""

    status: AppointmentStatus


class AppointmentResponse(AppointmentBase):
    """Schema for appointment response."""

    id: UUID
    user_id: UUID
    status: AppointmentStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None
    service: ServiceSummary | None = None

    model_config = {"from_attributes": True}

    @field_validator("start_time", "end_time", "created_at", "updated_at")
    @classmethod
    def to_utc(cls, v: datetime | None) -> datetime | None:
        """Stores without timezone support hand back naive UTC values."""
        return ensure_utc(v) if v is not None else v


class AppointmentCreateResponse(BaseModel):
    """Result of a permissive create."""

    appointment: AppointmentResponse
    has_conflicts: bool


class AppointmentStatusResponse(BaseModel):
    """Result of a status change, including its ledger side effect."""

    appointment: AppointmentResponse
    transaction_info: TransactionInfo


class AppointmentFilters(BaseModel):
    """Schema for appointment filtering."""

    service_id: UUID | None = None
    status: AppointmentStatus | None = None
    patient_cpf: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None

    @field_validator("start_date", "end_date")
    @classmethod
    def to_utc(cls, v: datetime | None) -> datetime | None:
        """Compare against stored UTC instants."""
        return ensure_utc(v) if v is not None else v


class SlotResponse(BaseModel):
    """A bookable half-open window."""

    start_time: datetime
    end_time: datetime


class AvailableSlotsResponse(BaseModel):
    """Available slots for one calendar date."""

    date: date
    service_id: UUID | None = None
    slots: list[SlotResponse]


class ConflictCheckResponse(BaseModel):
    """Result of a conflict check."""

    has_conflicts: bool
