"""Weekly work schedule table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Time,
    UniqueConstraint,
    Uuid,
    false,
    func,
    true,
)

metadata = MetaData()

# One row per clinic per weekday
user_schedules = Table(
    "user_schedules",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("user_id", Uuid, nullable=False, index=True),
    Column("day_of_week", String(10), nullable=False),
    Column("is_active", Boolean, nullable=False, server_default=true()),
    Column("start_time", Time, nullable=False),
    Column("end_time", Time, nullable=False),
    Column("has_lunch_break", Boolean, nullable=False, server_default=false()),
    Column("lunch_start_time", Time, nullable=True),
    Column("lunch_end_time", Time, nullable=True),
    Column("slot_interval", Integer, nullable=False, server_default="30"),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    UniqueConstraint("user_id", "day_of_week", name="user_schedules_user_day_key"),
    CheckConstraint(
        "day_of_week IN ('domingo', 'segunda', 'terca', 'quarta', 'quinta', 'sexta', 'sabado')",
        name="user_schedules_day_check",
    ),
)
