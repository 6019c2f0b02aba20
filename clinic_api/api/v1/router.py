"""API v1 router configuration."""

from fastapi import APIRouter

from clinic_api.api.v1.endpoints import (
    accounts,
    appointments,
    health,
    schedules,
    services,
    transactions,
)

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(schedules.router, prefix="/schedules", tags=["Schedules"])
api_router.include_router(services.router, prefix="/services", tags=["Services"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["Appointments"])
api_router.include_router(
    accounts.payables_router, prefix="/accounts-payable", tags=["Accounts Payable"]
)
api_router.include_router(
    accounts.receivables_router, prefix="/accounts-receivable", tags=["Accounts Receivable"]
)
api_router.include_router(transactions.router, prefix="/transactions", tags=["Transactions"])
