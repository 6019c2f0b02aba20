"""Ledger (transactions) store."""

from datetime import date, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import and_, delete, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_api.core.exceptions import ConflictException, NotFoundException
from clinic_api.models.finance import transactions
from clinic_api.schemas.finance import (
    ManualTransactionCreate,
    TransactionCreate,
    TransactionFilters,
    TransactionOrigin,
    TransactionResponse,
    TransactionStatistics,
    TransactionType,
)

logger = structlog.get_logger(__name__)


class DuplicateTransactionError(ConflictException):
    """A ledger entry already exists for this origin."""

    def __init__(self, origin: str, origin_id: str):
        """Initialize with the clashing origin pair."""
        self.origin = origin
        self.origin_id = origin_id
        super().__init__(f"Transaction already exists for {origin} {origin_id}")


def _is_origin_clash(exc: IntegrityError) -> bool:
    error_msg = str(exc.orig) if hasattr(exc, "orig") else str(exc)
    # PostgreSQL reports the constraint name, SQLite the column list
    return "transactions_origin_key" in error_msg or "transactions.origin_id" in error_msg


def _month_bounds(day: date) -> tuple[date, date]:
    first = day.replace(day=1)
    next_first = (first + timedelta(days=32)).replace(day=1)
    return first, next_first - timedelta(days=1)


def _percent_change(current: Decimal, previous: Decimal) -> float | None:
    if not previous:
        return None
    return float((current - previous) / abs(previous) * 100)


class TransactionService:
    """Service for ledger entries."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def _execute(self, stmt: Any) -> Any:
        try:
            return await self.db.execute(stmt)
        except SQLAlchemyError:
            # Leave the session usable for the caller's compensating write
            await self.db.rollback()
            raise

    async def find_by_origin(
        self,
        user_id: UUID,
        origin: TransactionOrigin,
        origin_id: str,
    ) -> TransactionResponse | None:
        """
        Find the ledger entry created by an entity.

        Args:
            user_id: Clinic owner ID
            origin: Kind of originating entity
            origin_id: ID of the originating entity

        Returns:
            The entry, or None
        """
        stmt = select(transactions).where(
            and_(
                transactions.c.user_id == user_id,
                transactions.c.origin == origin.value,
                transactions.c.origin_id == origin_id,
            )
        )
        result = await self._execute(stmt)
        row = result.fetchone()
        return TransactionResponse.model_validate(dict(row._mapping)) if row else None

    async def insert(self, data: TransactionCreate) -> TransactionResponse:
        """
        Insert a ledger entry.

        Raises:
            DuplicateTransactionError: If an entry for the same origin exists
            SQLAlchemyError: On any other database error, after rolling the
                session back
        """
        values = data.model_dump()
        values["type"] = data.type.value
        values["origin"] = data.origin.value

        stmt = insert(transactions).values(**values).returning(transactions)
        try:
            result = await self.db.execute(stmt)
            row = result.fetchone()
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if data.origin_id is not None and _is_origin_clash(e):
                logger.info(
                    "transaction_origin_exists",
                    origin=data.origin.value,
                    origin_id=data.origin_id,
                )
                raise DuplicateTransactionError(data.origin.value, data.origin_id) from e
            raise
        except SQLAlchemyError:
            await self.db.rollback()
            raise

        return TransactionResponse.model_validate(dict(row._mapping))

    async def delete_by_origin(
        self,
        user_id: UUID,
        origin: TransactionOrigin,
        origin_id: str,
    ) -> int:
        """
        Delete the ledger entry created by an entity.

        Returns:
            Number of rows removed
        """
        stmt = delete(transactions).where(
            and_(
                transactions.c.user_id == user_id,
                transactions.c.origin == origin.value,
                transactions.c.origin_id == origin_id,
            )
        )
        result = await self._execute(stmt)
        await self.db.commit()
        return result.rowcount

    async def create_manual(self, user_id: UUID, data: ManualTransactionCreate) -> TransactionResponse:
        """Record a ledger entry typed in by the clinic."""
        return await self.insert(
            TransactionCreate(
                user_id=user_id,
                date=data.date,
                type=data.type,
                origin=TransactionOrigin.MANUAL,
                description=data.description,
                amount=data.amount,
            )
        )

    async def list_transactions(
        self,
        user_id: UUID,
        filters: TransactionFilters,
    ) -> list[TransactionResponse]:
        """List ledger entries, newest first."""
        conditions = [transactions.c.user_id == user_id]

        if filters.type:
            conditions.append(transactions.c.type == filters.type.value)

        if filters.origin:
            conditions.append(transactions.c.origin == filters.origin.value)

        if filters.start_date:
            conditions.append(transactions.c.date >= filters.start_date)

        if filters.end_date:
            conditions.append(transactions.c.date <= filters.end_date)

        stmt = (
            select(transactions)
            .where(and_(*conditions))
            .order_by(transactions.c.date.desc(), transactions.c.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return [TransactionResponse.model_validate(dict(row._mapping)) for row in result]

    async def delete_transaction(self, user_id: UUID, transaction_id: UUID) -> None:
        """
        Delete a ledger entry by ID.

        Raises:
            NotFoundException: If the entry is not found
        """
        stmt = delete(transactions).where(
            and_(
                transactions.c.id == transaction_id,
                transactions.c.user_id == user_id,
            )
        )
        result = await self.db.execute(stmt)
        await self.db.commit()

        if result.rowcount == 0:
            raise NotFoundException("Transaction not found")

    async def _sum_between(self, user_id: UUID, start: date, end: date) -> tuple[Decimal, Decimal, int]:
        stmt = select(transactions.c.type, transactions.c.amount).where(
            and_(
                transactions.c.user_id == user_id,
                transactions.c.date >= start,
                transactions.c.date <= end,
            )
        )
        result = await self.db.execute(stmt)

        incoming = Decimal("0")
        outgoing = Decimal("0")
        incoming_count = 0
        for row in result:
            if row.type == TransactionType.ENTRADA.value:
                incoming += Decimal(row.amount)
                incoming_count += 1
            else:
                outgoing += Decimal(row.amount)
        return incoming, outgoing, incoming_count

    async def get_statistics(self, user_id: UUID, today: date) -> TransactionStatistics:
        """
        Summarize the current month against the previous one.

        Args:
            user_id: Clinic owner ID
            today: Reference date in the clinic calendar
        """
        month_start, month_end = _month_bounds(today)
        prev_start, prev_end = _month_bounds(month_start - timedelta(days=1))

        revenue, expenses, _ = await self._sum_between(user_id, month_start, month_end)
        prev_revenue, prev_expenses, _ = await self._sum_between(user_id, prev_start, prev_end)
        revenue_today, _, entries_today = await self._sum_between(user_id, today, today)

        profit = revenue - expenses
        prev_profit = prev_revenue - prev_expenses

        return TransactionStatistics(
            revenue_month=revenue,
            expenses_month=expenses,
            profit_month=profit,
            revenue_today=revenue_today,
            entries_today=entries_today,
            revenue_change_percent=_percent_change(revenue, prev_revenue),
            expenses_change_percent=_percent_change(expenses, prev_expenses),
            profit_change_percent=_percent_change(profit, prev_profit),
        )
