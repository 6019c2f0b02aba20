"""Accounts payable and receivable endpoints."""

from datetime import date
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Query, status

from clinic_api.dependencies import CurrentClinicId, DatabaseSession
from clinic_api.schemas.finance import (
    AccountFilters,
    AccountStatistics,
    PayableCreate,
    PayableResponse,
    PayableStatus,
    PayableStatusUpdate,
    PayableUpdate,
    ReceivableCreate,
    ReceivableResponse,
    ReceivableStatus,
    ReceivableStatusUpdate,
    ReceivableUpdate,
)
from clinic_api.services.accounts_service import PayableService, ReceivableService

payables_router = APIRouter()
receivables_router = APIRouter()


def _filters(
    category: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    min_amount: Decimal | None = None,
    max_amount: Decimal | None = None,
) -> AccountFilters:
    return AccountFilters(
        category=category,
        start_date=start_date,
        end_date=end_date,
        min_amount=min_amount,
        max_amount=max_amount,
    )


# ============================================================================
# Accounts payable
# ============================================================================


@payables_router.post(
    "/",
    response_model=PayableResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create account payable",
)
async def create_payable(
    data: PayableCreate,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> PayableResponse:
    """Create an account payable."""
    return await PayableService(db).create_account(clinic_id, data)


@payables_router.get(
    "/",
    response_model=list[PayableResponse],
    status_code=status.HTTP_200_OK,
    summary="List accounts payable",
)
async def list_payables(
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
    status_filter: PayableStatus | None = Query(None, alias="status"),
    category: str | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    min_amount: Decimal | None = Query(None),
    max_amount: Decimal | None = Query(None),
) -> list[PayableResponse]:
    """List accounts payable ordered by due date."""
    filters = _filters(category, start_date, end_date, min_amount, max_amount)
    return await PayableService(db).list_accounts(clinic_id, filters, status_filter)


@payables_router.get(
    "/statistics",
    response_model=AccountStatistics,
    status_code=status.HTTP_200_OK,
    summary="Accounts payable totals",
)
async def payable_statistics(
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> AccountStatistics:
    """Totals of paid and pending accounts payable."""
    return await PayableService(db).get_statistics(clinic_id)


@payables_router.get(
    "/search",
    response_model=list[PayableResponse],
    status_code=status.HTTP_200_OK,
    summary="Search accounts payable by name",
)
async def search_payables(
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
    name: str = Query(..., min_length=1),
) -> list[PayableResponse]:
    """Search accounts payable by name."""
    return await PayableService(db).search_by_name(clinic_id, name)


@payables_router.get(
    "/{account_id}",
    response_model=PayableResponse,
    status_code=status.HTTP_200_OK,
    summary="Get account payable",
)
async def get_payable(
    account_id: UUID,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> PayableResponse:
    """Get an account payable by ID."""
    return await PayableService(db).get_account(clinic_id, account_id)


@payables_router.put(
    "/{account_id}",
    response_model=PayableResponse,
    status_code=status.HTTP_200_OK,
    summary="Update account payable",
)
async def update_payable(
    account_id: UUID,
    data: PayableUpdate,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> PayableResponse:
    """Update an account payable; a status change also updates the ledger."""
    return await PayableService(db).update_account(clinic_id, account_id, data)


@payables_router.patch(
    "/{account_id}/status",
    response_model=PayableResponse,
    status_code=status.HTTP_200_OK,
    summary="Change account payable status",
)
async def set_payable_status(
    account_id: UUID,
    data: PayableStatusUpdate,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> PayableResponse:
    """
    Mark an account payable as paid or pending.

    Raises:
        LedgerSyncError: If the outgoing entry could not be recorded; the
            account keeps its previous status
    """
    return await PayableService(db).set_status(
        clinic_id, account_id, data.status, data.payment_date
    )


@payables_router.post(
    "/{account_id}/pay",
    response_model=PayableResponse,
    status_code=status.HTTP_200_OK,
    summary="Mark account payable as paid",
)
async def pay_payable(
    account_id: UUID,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
    payment_date: date | None = Query(None),
) -> PayableResponse:
    """Mark an account payable as paid."""
    return await PayableService(db).mark_as_paid(clinic_id, account_id, payment_date)


@payables_router.delete(
    "/{account_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete account payable",
)
async def delete_payable(
    account_id: UUID,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> None:
    """Delete an account payable."""
    await PayableService(db).delete_account(clinic_id, account_id)


# ============================================================================
# Accounts receivable
# ============================================================================


@receivables_router.post(
    "/",
    response_model=ReceivableResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create account receivable",
)
async def create_receivable(
    data: ReceivableCreate,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> ReceivableResponse:
    """Create an account receivable."""
    return await ReceivableService(db).create_account(clinic_id, data)


@receivables_router.get(
    "/",
    response_model=list[ReceivableResponse],
    status_code=status.HTTP_200_OK,
    summary="List accounts receivable",
)
async def list_receivables(
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
    status_filter: ReceivableStatus | None = Query(None, alias="status"),
    category: str | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    min_amount: Decimal | None = Query(None),
    max_amount: Decimal | None = Query(None),
) -> list[ReceivableResponse]:
    """List accounts receivable ordered by due date."""
    filters = _filters(category, start_date, end_date, min_amount, max_amount)
    return await ReceivableService(db).list_accounts(clinic_id, filters, status_filter)


@receivables_router.get(
    "/statistics",
    response_model=AccountStatistics,
    status_code=status.HTTP_200_OK,
    summary="Accounts receivable totals",
)
async def receivable_statistics(
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> AccountStatistics:
    """Totals of received and pending accounts receivable."""
    return await ReceivableService(db).get_statistics(clinic_id)


@receivables_router.get(
    "/search",
    response_model=list[ReceivableResponse],
    status_code=status.HTTP_200_OK,
    summary="Search accounts receivable by name",
)
async def search_receivables(
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
    name: str = Query(..., min_length=1),
) -> list[ReceivableResponse]:
    """Search accounts receivable by name."""
    return await ReceivableService(db).search_by_name(clinic_id, name)


@receivables_router.get(
    "/{account_id}",
    response_model=ReceivableResponse,
    status_code=status.HTTP_200_OK,
    summary="Get account receivable",
)
async def get_receivable(
    account_id: UUID,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> ReceivableResponse:
    """Get an account receivable by ID."""
    return await ReceivableService(db).get_account(clinic_id, account_id)


@receivables_router.put(
    "/{account_id}",
    response_model=ReceivableResponse,
    status_code=status.HTTP_200_OK,
    summary="Update account receivable",
)
async def update_receivable(
    account_id: UUID,
    data: ReceivableUpdate,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> ReceivableResponse:
    """Update an account receivable; a status change also updates the ledger."""
    return await ReceivableService(db).update_account(clinic_id, account_id, data)


@receivables_router.patch(
    "/{account_id}/status",
    response_model=ReceivableResponse,
    status_code=status.HTTP_200_OK,
    summary="Change account receivable status",
)
async def set_receivable_status(
    account_id: UUID,
    data: ReceivableStatusUpdate,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> ReceivableResponse:
    """Mark an account receivable as received or pending."""
    return await ReceivableService(db).set_status(
        clinic_id, account_id, data.status, data.receive_date
    )


@receivables_router.post(
    "/{account_id}/receive",
    response_model=ReceivableResponse,
    status_code=status.HTTP_200_OK,
    summary="Mark account receivable as received",
)
async def receive_receivable(
    account_id: UUID,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
    receive_date: date | None = Query(None),
) -> ReceivableResponse:
    """Mark an account receivable as received."""
    return await ReceivableService(db).mark_as_received(clinic_id, account_id, receive_date)


@receivables_router.delete(
    "/{account_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete account receivable",
)
async def delete_receivable(
    account_id: UUID,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> None:
    """Delete an account receivable."""
    await ReceivableService(db).delete_account(clinic_id, account_id)
