"""Database models."""

from sqlalchemy import MetaData

from clinic_api.models.appointments import user_appointments
from clinic_api.models.finance import accounts_payable, accounts_receivable, transactions
from clinic_api.models.schedules import user_schedules
from clinic_api.models.services import user_services

# Combined metadata for create_all in scripts and tests
metadata = MetaData()
for _table in (
    user_schedules,
    user_services,
    user_appointments,
    accounts_payable,
    accounts_receivable,
    transactions,
):
    _table.to_metadata(metadata)

__all__ = [
    "accounts_payable",
    "accounts_receivable",
    "metadata",
    "transactions",
    "user_appointments",
    "user_schedules",
    "user_services",
]
