"""Accounts payable/receivable and ledger schemas."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from clinic_api.schemas.common import reject_explicit_nulls


class PayableStatus(str, Enum):
    """Accounts payable status enumeration."""

    PENDENTE = "pendente"
    PAGO = "pago"

    @property
    def is_realized(self) -> bool:
        """Whether the bill was paid."""
        return self is PayableStatus.PAGO


class ReceivableStatus(str, Enum):
    """Accounts receivable status enumeration."""

    PENDENTE = "pendente"
    RECEBIDO = "recebido"

    @property
    def is_realized(self) -> bool:
        """Whether the amount was received."""
        return self is ReceivableStatus.RECEBIDO


class TransactionType(str, Enum):
    """Ledger direction."""

    ENTRADA = "entrada"
    SAIDA = "saida"


class TransactionOrigin(str, Enum):
    """What created a ledger entry."""

    AGENDAMENTO = "agendamento"
    CONTA_A_RECEBER = "conta_a_receber"
    CONTA_A_PAGAR = "conta_a_pagar"
    MANUAL = "manual"
    STRIPE_PAYMENT = "stripe_payment"


class LedgerAction(str, Enum):
    """Ledger side effect of a status change."""

    CREATED = "created"
    DELETED = "deleted"
    NONE = "none"


class TransactionInfo(BaseModel):
    """Reported ledger side effect."""

    action: LedgerAction = LedgerAction.NONE
    error: str | None = None


# Accounts


class AccountBase(BaseModel):
    """Fields shared by payables and receivables."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=1000)
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    due_date: date
    category: str | None = Field(None, max_length=100)


class AccountUpdate(BaseModel):
    """Partial update shared by payables and receivables."""

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=1000)
    amount: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    due_date: date | None = None
    category: str | None = Field(None, max_length=100)

    @model_validator(mode="after")
    def validate_nulls(self) -> "AccountUpdate":
        """Description and category may be cleared, the rest may only change."""
        reject_explicit_nulls(self, ("name", "amount", "due_date", "status"))
        return self


class AccountFilters(BaseModel):
    """Schema for account filtering."""

    category: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None


class PayableCreate(AccountBase):
    """Schema for creating an account payable."""

    status: PayableStatus = PayableStatus.PENDENTE
    payment_date: date | None = None


class PayableUpdate(AccountUpdate):
    """Schema for updating an account payable."""

    status: PayableStatus | None = None
    payment_date: date | None = None


class PayableStatusUpdate(BaseModel):
    """Schema for changing an account payable status."""

    status: PayableStatus
    payment_date: date | None = None


class PayableResponse(AccountBase):
    """Schema for account payable response."""

    id: UUID
    user_id: UUID
    status: PayableStatus
    payment_date: date | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ReceivableCreate(AccountBase):
    """Schema for creating an account receivable."""

    status: ReceivableStatus = ReceivableStatus.PENDENTE
    receive_date: date | None = None


class ReceivableUpdate(AccountUpdate):
    """Schema for updating an account receivable."""

    status: ReceivableStatus | None = None
    receive_date: date | None = None


class ReceivableStatusUpdate(BaseModel):
    """Schema for changing an account receivable status."""

    status: ReceivableStatus
    receive_date: date | None = None


class ReceivableResponse(AccountBase):
    """Schema for account receivable response."""

    id: UUID
    user_id: UUID
    status: ReceivableStatus
    receive_date: date | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class AccountStatistics(BaseModel):
    """Totals per status."""

    total: Decimal
    settled: Decimal
    pending: Decimal
    count: int


# Transactions


class TransactionCreate(BaseModel):
    """Internal schema for inserting a ledger entry."""

    user_id: UUID
    date: date
    type: TransactionType
    origin: TransactionOrigin
    origin_id: str | None = None
    description: str | None = None
    amount: Decimal


class ManualTransactionCreate(BaseModel):
    """Schema for a manual ledger entry."""

    date: date
    type: TransactionType
    description: str | None = Field(None, max_length=500)
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)


class TransactionResponse(BaseModel):
    """Schema for ledger entry response."""

    id: UUID
    user_id: UUID
    date: date
    type: TransactionType
    origin: TransactionOrigin
    origin_id: str | None = None
    description: str | None = None
    amount: Decimal
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class TransactionFilters(BaseModel):
    """Schema for ledger filtering."""

    type: TransactionType | None = None
    origin: TransactionOrigin | None = None
    start_date: date | None = None
    end_date: date | None = None


class TransactionStatistics(BaseModel):
    """Monthly ledger summary."""

    revenue_month: Decimal
    expenses_month: Decimal
    profit_month: Decimal
    revenue_today: Decimal
    entries_today: int
    revenue_change_percent: float | None = None
    expenses_change_percent: float | None = None
    profit_change_percent: float | None = None
