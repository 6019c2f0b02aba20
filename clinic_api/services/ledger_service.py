"""
Ledger side effects of entity status changes.

Appointments, payables and receivables each have one "realized" status
(``completed``, ``pago``, ``recebido``). Exactly one ledger entry tagged with
``(origin, origin_id)`` must exist while an entity is realized and none while
it is not. Entity rows and ledger rows are committed separately, so the
realize direction compensates: when the ledger insert fails the entity status
is written back to its previous value. The unrealize direction is best-effort:
a failed delete is reported but the status change stands, which can leave an
orphaned ledger entry behind.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_api.config import settings
from clinic_api.core.exceptions import ValidationException
from clinic_api.schemas.finance import (
    LedgerAction,
    TransactionCreate,
    TransactionInfo,
    TransactionOrigin,
    TransactionType,
)
from clinic_api.services.catalog_service import CatalogService
from clinic_api.services.transaction_service import DuplicateTransactionError, TransactionService
from clinic_api.utils.intervals import get_zone, local_today

logger = structlog.get_logger(__name__)


class LedgerEntity(str, Enum):
    """Entity kinds that produce ledger entries."""

    APPOINTMENT = "appointment"
    PAYABLE = "payable"
    RECEIVABLE = "receivable"


@dataclass(frozen=True)
class LedgerPolicy:
    """How a realized entity is booked."""

    origin: TransactionOrigin
    type: TransactionType


POLICIES: dict[LedgerEntity, LedgerPolicy] = {
    LedgerEntity.APPOINTMENT: LedgerPolicy(TransactionOrigin.AGENDAMENTO, TransactionType.ENTRADA),
    LedgerEntity.PAYABLE: LedgerPolicy(TransactionOrigin.CONTA_A_PAGAR, TransactionType.SAIDA),
    LedgerEntity.RECEIVABLE: LedgerPolicy(TransactionOrigin.CONTA_A_RECEBER, TransactionType.ENTRADA),
}


class TransactionStore(Protocol):
    """Ledger operations the coordinator relies on."""

    async def find_by_origin(
        self, user_id: UUID, origin: TransactionOrigin, origin_id: str
    ) -> Any | None: ...

    async def insert(self, data: TransactionCreate) -> Any: ...

    async def delete_by_origin(
        self, user_id: UUID, origin: TransactionOrigin, origin_id: str
    ) -> int: ...


class ServiceLookup(Protocol):
    """Catalog lookup used to price appointments."""

    async def find_service(self, user_id: UUID, service_id: UUID) -> Any | None: ...


class StatusStore(Protocol):
    """Entity store the coordinator writes statuses through."""

    async def get(self, user_id: UUID, entity_id: UUID) -> Any: ...

    async def write_status(
        self, user_id: UUID, entity_id: UUID, status: Any, settled_on: date | None
    ) -> Any: ...

    async def restore(self, user_id: UUID, previous: Any) -> Any: ...


class LedgerCoordinator:
    """Keeps the ledger in step with entity statuses."""

    def __init__(
        self,
        transactions: TransactionStore,
        catalog: ServiceLookup | None = None,
        timezone: str | None = None,
    ):
        """Initialize with the ledger store and an optional catalog."""
        self.transactions = transactions
        self.catalog = catalog
        self.tz = get_zone(timezone or settings.clinic_timezone)

    @classmethod
    def for_session(cls, db: AsyncSession) -> "LedgerCoordinator":
        """Build a coordinator backed by the database stores."""
        return cls(TransactionService(db), CatalogService(db))

    async def transition(
        self,
        kind: LedgerEntity,
        store: StatusStore,
        user_id: UUID,
        entity_id: UUID,
        status: Any,
        settled_on: date | None = None,
    ) -> tuple[Any, TransactionInfo]:
        """
        Change an entity status and apply its ledger side effect.

        Args:
            kind: Entity kind
            store: Store owning the entity
            user_id: Clinic owner ID
            entity_id: Entity ID
            status: New status (an enum with ``is_realized``)
            settled_on: Settlement date for realized statuses, defaults to today

        Returns:
            The entity as persisted after the call and the ledger outcome. When
            the realize side effect fails the entity is returned with its
            previous status restored.
        """
        previous = await store.get(user_id, entity_id)

        if status.is_realized:
            realized_on = settled_on or local_today(self.tz)
            updated = await store.write_status(user_id, entity_id, status, realized_on)
            info = await self.on_realized(kind, updated, realized_on)
            if info.error is None:
                return updated, info

            restored = await store.restore(user_id, previous)
            logger.warning(
                "ledger_status_rolled_back",
                entity=kind.value,
                entity_id=str(entity_id),
                restored_status=str(getattr(restored.status, "value", restored.status)),
                error=info.error,
            )
            return restored, info

        updated = await store.write_status(user_id, entity_id, status, None)
        info = await self.on_unrealized(kind, updated)
        return updated, info

    async def on_realized(
        self,
        kind: LedgerEntity,
        entity: Any,
        realization_date: date,
    ) -> TransactionInfo:
        """
        Ensure the ledger entry for a realized entity exists.

        Repeated calls are idempotent: an existing entry for the origin is
        left alone and reported as ``none``. Failures are returned in
        ``error`` rather than raised so the caller can compensate.
        """
        policy = POLICIES[kind]
        origin_id = str(entity.id)

        try:
            existing = await self.transactions.find_by_origin(
                entity.user_id, policy.origin, origin_id
            )
            if existing is not None:
                return TransactionInfo(action=LedgerAction.NONE)

            amount, description = await self._entry_details(kind, entity)
            await self.transactions.insert(
                TransactionCreate(
                    user_id=entity.user_id,
                    date=realization_date,
                    type=policy.type,
                    origin=policy.origin,
                    origin_id=origin_id,
                    description=description,
                    amount=amount,
                )
            )
        except DuplicateTransactionError:
            # A concurrent realization won the insert
            return TransactionInfo(action=LedgerAction.NONE)
        except Exception as e:
            logger.error(
                "transaction_create_failed",
                entity=kind.value,
                origin_id=origin_id,
                error=str(e),
            )
            return TransactionInfo(action=LedgerAction.NONE, error=str(e) or type(e).__name__)

        logger.info(
            "transaction_created",
            entity=kind.value,
            origin=policy.origin.value,
            origin_id=origin_id,
            amount=str(amount),
        )
        return TransactionInfo(action=LedgerAction.CREATED)

    async def on_unrealized(self, kind: LedgerEntity, entity: Any) -> TransactionInfo:
        """Remove the ledger entry of an entity that is no longer realized."""
        policy = POLICIES[kind]
        origin_id = str(entity.id)

        try:
            existing = await self.transactions.find_by_origin(
                entity.user_id, policy.origin, origin_id
            )
            if existing is None:
                return TransactionInfo(action=LedgerAction.NONE)

            await self.transactions.delete_by_origin(entity.user_id, policy.origin, origin_id)
        except Exception as e:
            logger.warning(
                "transaction_delete_failed",
                entity=kind.value,
                origin_id=origin_id,
                error=str(e),
            )
            return TransactionInfo(action=LedgerAction.NONE, error=str(e) or type(e).__name__)

        logger.info(
            "transaction_deleted",
            entity=kind.value,
            origin=policy.origin.value,
            origin_id=origin_id,
        )
        return TransactionInfo(action=LedgerAction.DELETED)

    async def _entry_details(self, kind: LedgerEntity, entity: Any) -> tuple[Decimal, str]:
        if kind is LedgerEntity.PAYABLE:
            return Decimal(entity.amount), f"Pagamento: {entity.name}"
        if kind is LedgerEntity.RECEIVABLE:
            return Decimal(entity.amount), f"Recebimento: {entity.name}"

        service = None
        if self.catalog is not None:
            service = await self.catalog.find_service(entity.user_id, entity.service_id)
        if service is None or service.price is None:
            raise ValidationException("Appointment has no priced service; revenue not recorded")

        service_name = service.name or "Serviço"
        patient_name = entity.patient_name or "Paciente"
        return Decimal(service.price), f"Agendamento - {service_name} - {patient_name}"
