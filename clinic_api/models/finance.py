"""Accounts payable/receivable and ledger tables using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Index,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)

metadata = MetaData()

accounts_payable = Table(
    "accounts_payable",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("user_id", Uuid, nullable=False, index=True),
    Column("name", String(200), nullable=False),
    Column("description", Text, nullable=True),
    Column("amount", Numeric(12, 2), nullable=False),
    Column("due_date", Date, nullable=False),
    Column("payment_date", Date, nullable=True),
    Column("status", String(20), nullable=False, server_default="pendente"),
    Column("category", String(100), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint("status IN ('pendente', 'pago')", name="accounts_payable_status_check"),
)

accounts_receivable = Table(
    "accounts_receivable",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("user_id", Uuid, nullable=False, index=True),
    Column("name", String(200), nullable=False),
    Column("description", Text, nullable=True),
    Column("amount", Numeric(12, 2), nullable=False),
    Column("due_date", Date, nullable=False),
    Column("receive_date", Date, nullable=True),
    Column("status", String(20), nullable=False, server_default="pendente"),
    Column("category", String(100), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint("status IN ('pendente', 'recebido')", name="accounts_receivable_status_check"),
)

# Ledger entries
transactions = Table(
    "transactions",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("user_id", Uuid, nullable=False),
    Column("date", Date, nullable=False),
    Column("type", String(10), nullable=False),
    Column("origin", String(20), nullable=False),
    Column("origin_id", String(64), nullable=True),
    Column("description", Text, nullable=True),
    Column("amount", Numeric(12, 2), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint("type IN ('entrada', 'saida')", name="transactions_type_check"),
    CheckConstraint(
        "origin IN ('agendamento', 'conta_a_receber', 'conta_a_pagar', 'manual', 'stripe_payment')",
        name="transactions_origin_check",
    ),
    # At most one entry per originating event; NULL origin_id rows are not constrained
    UniqueConstraint("user_id", "origin", "origin_id", name="transactions_origin_key"),
)

Index("idx_transactions_user_date", transactions.c.user_id, transactions.c.date)
