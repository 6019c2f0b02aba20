"""Appointments table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Index,
    MetaData,
    String,
    Table,
    Text,
    Uuid,
    func,
)

metadata = MetaData()

user_appointments = Table(
    "user_appointments",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Ownership / references
    Column("user_id", Uuid, nullable=False),
    Column("service_id", Uuid, nullable=False),
    # Patient snapshot
    Column("patient_cpf", String(14), nullable=False),
    Column("patient_name", Text, nullable=False),
    Column("patient_phone", String(20), nullable=True),
    # Half-open interval [start_time, end_time), stored in UTC
    Column("start_time", DateTime(timezone=True), nullable=False),
    Column("end_time", DateTime(timezone=True), nullable=False),
    Column("status", String(20), nullable=False, server_default="pending"),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    # Constraints
    CheckConstraint(
        "status IN ('pending', 'confirmed', 'canceled', 'completed')",
        name="user_appointments_status_check",
    ),
    CheckConstraint("start_time < end_time", name="user_appointments_interval_check"),
)

Index("idx_user_appointments_user_start", user_appointments.c.user_id, user_appointments.c.start_time)
