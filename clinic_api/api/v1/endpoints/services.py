"""Service catalog endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from clinic_api.dependencies import CurrentClinicId, DatabaseSession
from clinic_api.schemas.services import ServiceCreate, ServiceResponse, ServiceUpdate
from clinic_api.services.catalog_service import CatalogService

router = APIRouter()


@router.post(
    "/",
    response_model=ServiceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create service",
)
async def create_service(
    data: ServiceCreate,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> ServiceResponse:
    """Create a service offered by the clinic."""
    return await CatalogService(db).create_service(clinic_id, data)


@router.get(
    "/",
    response_model=list[ServiceResponse],
    status_code=status.HTTP_200_OK,
    summary="List services",
)
async def list_services(
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
    active_only: bool = Query(False),
) -> list[ServiceResponse]:
    """List the clinic's services."""
    return await CatalogService(db).list_services(clinic_id, active_only)


@router.get(
    "/{service_id}",
    response_model=ServiceResponse,
    status_code=status.HTTP_200_OK,
    summary="Get service by ID",
)
async def get_service(
    service_id: UUID,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> ServiceResponse:
    """Get a service by ID."""
    return await CatalogService(db).get_service(clinic_id, service_id)


@router.put(
    "/{service_id}",
    response_model=ServiceResponse,
    status_code=status.HTTP_200_OK,
    summary="Update service",
)
async def update_service(
    service_id: UUID,
    data: ServiceUpdate,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> ServiceResponse:
    """Update a service."""
    return await CatalogService(db).update_service(clinic_id, service_id, data)


@router.delete(
    "/{service_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Deactivate service",
)
async def deactivate_service(
    service_id: UUID,
    clinic_id: CurrentClinicId,
    db: DatabaseSession,
) -> None:
    """Deactivate a service."""
    await CatalogService(db).deactivate_service(clinic_id, service_id)
