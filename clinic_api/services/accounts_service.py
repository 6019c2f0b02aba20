"""Accounts payable and receivable services."""

from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

import structlog
from pydantic import BaseModel
from sqlalchemy import Table, and_, delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_api.core.exceptions import LedgerSyncError, NotFoundException
from clinic_api.models.finance import accounts_payable, accounts_receivable
from clinic_api.schemas.finance import (
    AccountFilters,
    AccountStatistics,
    PayableResponse,
    PayableStatus,
    ReceivableResponse,
    ReceivableStatus,
)
from clinic_api.services.ledger_service import POLICIES, LedgerCoordinator, LedgerEntity

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AccountKind:
    """Table and vocabulary of one account flavour."""

    entity: LedgerEntity
    table: Table
    status_enum: type[Enum]
    settled_column: str
    response: type[BaseModel]
    label: str

    @property
    def pending(self) -> Enum:
        return self.status_enum("pendente")


PAYABLE = AccountKind(
    entity=LedgerEntity.PAYABLE,
    table=accounts_payable,
    status_enum=PayableStatus,
    settled_column="payment_date",
    response=PayableResponse,
    label="Account payable",
)

RECEIVABLE = AccountKind(
    entity=LedgerEntity.RECEIVABLE,
    table=accounts_receivable,
    status_enum=ReceivableStatus,
    settled_column="receive_date",
    response=ReceivableResponse,
    label="Account receivable",
)


class AccountStore:
    """Persistence for one account flavour, scoped by clinic."""

    def __init__(self, db: AsyncSession, kind: AccountKind):
        """Initialize store with database session and account flavour."""
        self.db = db
        self.kind = kind
        self.table = kind.table

    def _to_response(self, row: Any) -> Any:
        return self.kind.response.model_validate(dict(row._mapping))

    def _owned(self, user_id: UUID, account_id: UUID) -> Any:
        return and_(self.table.c.id == account_id, self.table.c.user_id == user_id)

    async def insert(self, user_id: UUID, values: dict[str, Any]) -> Any:
        """Persist a new account."""
        stmt = insert(self.table).values(user_id=user_id, **values).returning(self.table)
        result = await self.db.execute(stmt)
        row = result.fetchone()
        await self.db.commit()
        return self._to_response(row)

    async def get(self, user_id: UUID, account_id: UUID) -> Any:
        """
        Get an account by ID.

        Raises:
            NotFoundException: If the account is not found
        """
        result = await self.db.execute(select(self.table).where(self._owned(user_id, account_id)))
        row = result.fetchone()
        if not row:
            raise NotFoundException(f"{self.kind.label} not found")
        return self._to_response(row)

    async def list_accounts(
        self,
        user_id: UUID,
        filters: AccountFilters,
        status: Enum | None = None,
    ) -> list[Any]:
        """List accounts ordered by due date."""
        conditions = [self.table.c.user_id == user_id]

        if status is not None:
            conditions.append(self.table.c.status == status.value)

        if filters.category:
            conditions.append(self.table.c.category == filters.category)

        if filters.start_date:
            conditions.append(self.table.c.due_date >= filters.start_date)

        if filters.end_date:
            conditions.append(self.table.c.due_date <= filters.end_date)

        if filters.min_amount is not None:
            conditions.append(self.table.c.amount >= filters.min_amount)

        if filters.max_amount is not None:
            conditions.append(self.table.c.amount <= filters.max_amount)

        stmt = select(self.table).where(and_(*conditions)).order_by(self.table.c.due_date.asc())
        result = await self.db.execute(stmt)
        return [self._to_response(row) for row in result]

    async def search_by_name(self, user_id: UUID, name: str) -> list[Any]:
        """Case-insensitive substring search on the account name."""
        stmt = (
            select(self.table)
            .where(and_(self.table.c.user_id == user_id, self.table.c.name.ilike(f"%{name}%")))
            .order_by(self.table.c.due_date.asc())
        )
        result = await self.db.execute(stmt)
        return [self._to_response(row) for row in result]

    async def update_fields(self, user_id: UUID, account_id: UUID, values: dict[str, Any]) -> Any:
        """Write the given columns and return the fresh row."""
        stmt = (
            update(self.table)
            .where(self._owned(user_id, account_id))
            .values(**values, updated_at=datetime.now(UTC))
            .returning(self.table)
        )
        result = await self.db.execute(stmt)
        row = result.fetchone()
        await self.db.commit()
        if not row:
            raise NotFoundException(f"{self.kind.label} not found")
        return self._to_response(row)

    async def write_status(
        self,
        user_id: UUID,
        account_id: UUID,
        status: Enum,
        settled_on: date | None,
    ) -> Any:
        """Persist a status together with its settlement date."""
        return await self.update_fields(
            user_id,
            account_id,
            {"status": status.value, self.kind.settled_column: settled_on},
        )

    async def restore(self, user_id: UUID, previous: Any) -> Any:
        """Write back the status and settlement date of an earlier snapshot."""
        # A failed ledger write may have left the transaction aborted
        await self.db.rollback()
        return await self.update_fields(
            user_id,
            previous.id,
            {
                "status": previous.status.value,
                self.kind.settled_column: getattr(previous, self.kind.settled_column),
            },
        )

    async def delete(self, user_id: UUID, account_id: UUID) -> None:
        """
        Delete an account.

        Raises:
            NotFoundException: If the account is not found
        """
        result = await self.db.execute(delete(self.table).where(self._owned(user_id, account_id)))
        await self.db.commit()
        if result.rowcount == 0:
            raise NotFoundException(f"{self.kind.label} not found")

    async def statistics(self, user_id: UUID) -> AccountStatistics:
        """Totals by status."""
        stmt = select(self.table.c.amount, self.table.c.status).where(
            self.table.c.user_id == user_id
        )
        result = await self.db.execute(stmt)

        total = settled = pending = Decimal("0")
        count = 0
        for row in result:
            amount = Decimal(row.amount)
            total += amount
            count += 1
            if row.status == self.kind.pending.value:
                pending += amount
            else:
                settled += amount

        return AccountStatistics(total=total, settled=settled, pending=pending, count=count)


class AccountsService:
    """Business logic shared by payables and receivables."""

    kind: AccountKind

    def __init__(self, db: AsyncSession, ledger: LedgerCoordinator | None = None):
        """Initialize service with database session."""
        self.db = db
        self.store = AccountStore(db, self.kind)
        self.ledger = ledger or LedgerCoordinator.for_session(db)

    async def create_account(self, user_id: UUID, data: Any) -> Any:
        """
        Create an account.

        An account created as already settled is stored as pending first and
        then settled, so its ledger entry is created like any other.
        """
        values = data.model_dump(exclude={"status", self.kind.settled_column})
        values["status"] = self.kind.pending.value

        account = await self.store.insert(user_id, values)
        logger.info("account_created", entity=self.kind.entity.value, account_id=str(account.id))

        if data.status.is_realized:
            account = await self.set_status(
                user_id, account.id, data.status, getattr(data, self.kind.settled_column)
            )
        return account

    async def get_account(self, user_id: UUID, account_id: UUID) -> Any:
        """Get an account by ID."""
        return await self.store.get(user_id, account_id)

    async def list_accounts(
        self,
        user_id: UUID,
        filters: AccountFilters,
        status: Enum | None = None,
    ) -> list[Any]:
        """List accounts with filtering."""
        return await self.store.list_accounts(user_id, filters, status)

    async def search_by_name(self, user_id: UUID, name: str) -> list[Any]:
        """Search accounts by name."""
        return await self.store.search_by_name(user_id, name)

    async def get_statistics(self, user_id: UUID) -> AccountStatistics:
        """Totals by status."""
        return await self.store.statistics(user_id)

    async def update_account(self, user_id: UUID, account_id: UUID, data: Any) -> Any:
        """
        Update an account.

        Plain fields are written directly; a status change is applied through
        :meth:`set_status` so the ledger follows it.
        """
        changes = data.model_dump(exclude_unset=True)
        status = changes.pop("status", None)
        settled_on = changes.pop(self.kind.settled_column, None)

        account = await self.store.get(user_id, account_id)
        if changes:
            account = await self.store.update_fields(user_id, account_id, changes)

        if status is not None:
            account = await self.set_status(user_id, account_id, status, settled_on)
        elif settled_on is not None and account.status.is_realized:
            account = await self.store.update_fields(
                user_id, account_id, {self.kind.settled_column: settled_on}
            )
        return account

    async def set_status(
        self,
        user_id: UUID,
        account_id: UUID,
        status: Enum,
        settled_on: date | None = None,
    ) -> Any:
        """
        Change the status of an account.

        Settling books the amount in the ledger dated ``settled_on`` (today by
        default). Going back to ``pendente`` clears the settlement date and
        removes the ledger entry; a failed removal is logged only.

        Raises:
            NotFoundException: If the account is not found
            LedgerSyncError: If the ledger entry could not be created; the
                account keeps its previous status
        """
        account, info = await self.ledger.transition(
            self.kind.entity, self.store, user_id, account_id, status, settled_on
        )
        if status.is_realized and info.error is not None:
            raise LedgerSyncError(
                f"Status not changed, ledger untouched: {info.error}",
                origin=POLICIES[self.kind.entity].origin.value,
                origin_id=str(account_id),
                entity=account,
            )
        return account

    async def delete_account(self, user_id: UUID, account_id: UUID) -> None:
        """
        Delete an account.

        The ledger entry of a settled account is kept as financial history.
        """
        await self.store.delete(user_id, account_id)
        logger.info("account_deleted", entity=self.kind.entity.value, account_id=str(account_id))


class PayableService(AccountsService):
    """Service for accounts payable."""

    kind = PAYABLE

    async def mark_as_paid(
        self,
        user_id: UUID,
        account_id: UUID,
        payment_date: date | None = None,
    ) -> PayableResponse:
        """Settle a payable, booking an outgoing ledger entry."""
        return await self.set_status(user_id, account_id, PayableStatus.PAGO, payment_date)


class ReceivableService(AccountsService):
    """Service for accounts receivable."""

    kind = RECEIVABLE

    async def mark_as_received(
        self,
        user_id: UUID,
        account_id: UUID,
        receive_date: date | None = None,
    ) -> ReceivableResponse:
        """Settle a receivable, booking an incoming ledger entry."""
        return await self.set_status(user_id, account_id, ReceivableStatus.RECEBIDO, receive_date)
