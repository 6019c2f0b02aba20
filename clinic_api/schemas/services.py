"""Clinic service catalog schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from clinic_api.schemas.common import reject_explicit_nulls


class ServiceBase(BaseModel):
    """Base service schema with common fields."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=1000)
    duration: int = Field(..., gt=0, le=24 * 60, description="Duration in minutes")
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)


class ServiceCreate(ServiceBase):
    """Schema for creating a service."""

    active: bool = True


class ServiceUpdate(BaseModel):
    """Schema for updating a service."""

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=1000)
    duration: int | None = Field(None, gt=0, le=24 * 60)
    price: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    active: bool | None = None

    @model_validator(mode="after")
    def validate_nulls(self) -> "ServiceUpdate":
        """Only the description may be cleared."""
        reject_explicit_nulls(self, ("name", "duration", "price", "active"))
        return self


class ServiceResponse(ServiceBase):
    """Schema for service response."""

    id: UUID
    user_id: UUID
    active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ServiceSummary(BaseModel):
    """Service fields embedded in appointment responses."""

    id: UUID
    name: str
    description: str | None = None
    duration: int
    price: Decimal
