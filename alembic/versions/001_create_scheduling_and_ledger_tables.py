"""Create scheduling and ledger tables.

Revision ID: 001
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table(
        "user_schedules",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("day_of_week", sa.String(length=10), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("has_lunch_break", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("lunch_start_time", sa.Time(), nullable=True),
        sa.Column("lunch_end_time", sa.Time(), nullable=True),
        sa.Column("slot_interval", sa.Integer(), server_default="30", nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "day_of_week", name="user_schedules_user_day_key"),
        sa.CheckConstraint(
            "day_of_week IN ('domingo', 'segunda', 'terca', 'quarta', 'quinta', 'sexta', 'sabado')",
            name="user_schedules_day_check",
        ),
    )
    op.create_index("ix_user_schedules_user_id", "user_schedules", ["user_id"])

    op.create_table(
        "user_services",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("active", sa.Boolean(), server_default=sa.true(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_user_services_user_id", "user_services", ["user_id"])

    op.create_table(
        "user_appointments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("service_id", sa.Uuid(), nullable=False),
        sa.Column("patient_cpf", sa.String(length=14), nullable=False),
        sa.Column("patient_name", sa.Text(), nullable=False),
        sa.Column("patient_phone", sa.String(length=20), nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(length=20), server_default="pending", nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'canceled', 'completed')",
            name="user_appointments_status_check",
        ),
        sa.CheckConstraint("start_time < end_time", name="user_appointments_interval_check"),
    )
    op.create_index(
        "idx_user_appointments_user_start",
        "user_appointments",
        ["user_id", "start_time"],
    )

    for table, settled_column, settled_status in (
        ("accounts_payable", "payment_date", "pago"),
        ("accounts_receivable", "receive_date", "recebido"),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("user_id", sa.Uuid(), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("amount", sa.Numeric(12, 2), nullable=False),
            sa.Column("due_date", sa.Date(), nullable=False),
            sa.Column(settled_column, sa.Date(), nullable=True),
            sa.Column("status", sa.String(length=20), server_default="pendente", nullable=False),
            sa.Column("category", sa.String(length=100), nullable=True),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
            sa.CheckConstraint(
                f"status IN ('pendente', '{settled_status}')",
                name=f"{table}_status_check",
            ),
        )
        op.create_index(f"ix_{table}_user_id", table, ["user_id"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("type", sa.String(length=10), nullable=False),
        sa.Column("origin", sa.String(length=20), nullable=False),
        sa.Column("origin_id", sa.String(length=64), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("type IN ('entrada', 'saida')", name="transactions_type_check"),
        sa.CheckConstraint(
            "origin IN ('agendamento', 'conta_a_receber', 'conta_a_pagar', 'manual', "
            "'stripe_payment')",
            name="transactions_origin_check",
        ),
        # Storage-level guard against duplicate ledger entries for one event
        sa.UniqueConstraint("user_id", "origin", "origin_id", name="transactions_origin_key"),
    )
    op.create_index("idx_transactions_user_date", "transactions", ["user_id", "date"])


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index("idx_transactions_user_date", table_name="transactions")
    op.drop_table("transactions")
    for table in ("accounts_receivable", "accounts_payable"):
        op.drop_index(f"ix_{table}_user_id", table_name=table)
        op.drop_table(table)
    op.drop_index("idx_user_appointments_user_start", table_name="user_appointments")
    op.drop_table("user_appointments")
    op.drop_index("ix_user_services_user_id", table_name="user_services")
    op.drop_table("user_services")
    op.drop_index("ix_user_schedules_user_id", table_name="user_schedules")
    op.drop_table("user_schedules")
