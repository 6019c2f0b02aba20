"""Clinic service catalog."""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import and_, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_api.core.exceptions import NotFoundException
from clinic_api.models.services import user_services
from clinic_api.schemas.services import ServiceCreate, ServiceResponse, ServiceUpdate


class CatalogService:
    """Service for the procedures a clinic offers."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def create_service(self, user_id: UUID, data: ServiceCreate) -> ServiceResponse:
        """Create a service for a clinic."""
        stmt = (
            insert(user_services)
            .values(user_id=user_id, **data.model_dump())
            .returning(user_services)
        )
        result = await self.db.execute(stmt)
        row = result.fetchone()
        await self.db.commit()

        return ServiceResponse.model_validate(dict(row._mapping))

    async def find_service(self, user_id: UUID, service_id: UUID) -> ServiceResponse | None:
        """
        Look up a service owned by the clinic.

        Returns:
            The service, or None if it does not exist for this clinic
        """
        stmt = select(user_services).where(
            and_(
                user_services.c.id == service_id,
                user_services.c.user_id == user_id,
            )
        )
        result = await self.db.execute(stmt)
        row = result.fetchone()
        return ServiceResponse.model_validate(dict(row._mapping)) if row else None

    async def get_service(self, user_id: UUID, service_id: UUID) -> ServiceResponse:
        """
        Get a service by ID.

        Raises:
            NotFoundException: If the service is not found
        """
        service = await self.find_service(user_id, service_id)
        if service is None:
            raise NotFoundException("Service not found")
        return service

    async def list_services(self, user_id: UUID, active_only: bool = False) -> list[ServiceResponse]:
        """List a clinic's services by name."""
        conditions = [user_services.c.user_id == user_id]
        if active_only:
            conditions.append(user_services.c.active.is_(True))

        stmt = select(user_services).where(and_(*conditions)).order_by(user_services.c.name)
        result = await self.db.execute(stmt)
        return [ServiceResponse.model_validate(dict(row._mapping)) for row in result]

    async def update_service(
        self,
        user_id: UUID,
        service_id: UUID,
        data: ServiceUpdate,
    ) -> ServiceResponse:
        """Update a service."""
        current = await self.get_service(user_id, service_id)

        update_values = data.model_dump(exclude_unset=True)
        if not update_values:
            return current

        update_values["updated_at"] = datetime.now(UTC)
        stmt = (
            update(user_services)
            .where(user_services.c.id == service_id)
            .values(**update_values)
            .returning(user_services)
        )
        result = await self.db.execute(stmt)
        row = result.fetchone()
        await self.db.commit()

        return ServiceResponse.model_validate(dict(row._mapping))

    async def deactivate_service(self, user_id: UUID, service_id: UUID) -> None:
        """
        Deactivate a service.

        Services are never hard deleted because past appointments and ledger
        descriptions still reference them.
        """
        await self.get_service(user_id, service_id)
        stmt = (
            update(user_services)
            .where(user_services.c.id == service_id)
            .values(active=False, updated_at=datetime.now(UTC))
        )
        await self.db.execute(stmt)
        await self.db.commit()
