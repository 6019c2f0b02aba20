"""Ledger endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from clinic_api.config import settings
from clinic_api.dependencies import CurrentClinicId, DatabaseSession
from clinic_api.schemas.finance import (
    ManualTransactionCreate,
    TransactionFilters,
    TransactionOrigin,
    TransactionResponse,
    TransactionStatistics,
    TransactionType,
)
from clinic_api.services.transaction_service import TransactionService
from clinic_api.utils.intervals import get_zone, local_today

router = APIRouter()


@router.get(
    "/",
    response_model=list[TransactionResponse],
    status_code=status.HTTP_200_OK,
    summary="List ledger entries",
)
async def list_transactions(
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
    type_filter: TransactionType | None = Query(None, alias="type"),
    origin: TransactionOrigin | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
) -> list[TransactionResponse]:
    """List ledger entries, newest first."""
    filters = TransactionFilters(
        type=type_filter,
        origin=origin,
        start_date=start_date,
        end_date=end_date,
    )
    return await TransactionService(db).list_transactions(clinic_id, filters)


@router.post(
    "/",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create manual ledger entry",
)
async def create_transaction(
    data: ManualTransactionCreate,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> TransactionResponse:
    """Record a manual income or expense."""
    return await TransactionService(db).create_manual(clinic_id, data)


@router.get(
    "/statistics",
    response_model=TransactionStatistics,
    status_code=status.HTTP_200_OK,
    summary="Monthly ledger summary",
)
async def transaction_statistics(
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> TransactionStatistics:
    """Current month totals compared with last month."""
    today = local_today(get_zone(settings.clinic_timezone))
    return await TransactionService(db).get_statistics(clinic_id, today)


@router.delete(
    "/{transaction_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete ledger entry",
)
async def delete_transaction(
    transaction_id: UUID,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> None:
    """Delete a ledger entry."""
    await TransactionService(db).delete_transaction(clinic_id, transaction_id)
