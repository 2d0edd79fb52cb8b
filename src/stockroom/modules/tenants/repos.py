"""Tenant repository for database operations."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import select

from stockroom.api.dependencies import DBSession
from stockroom.modules.tenants.models import Tenant


class TenantRepository:
    """Repository for Tenant database operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, tenant: Tenant) -> Tenant:
        """Create a new tenant."""
        self.session.add(tenant)
        await self.session.flush()
        await self.session.refresh(tenant)
        return tenant

    async def get_by_id(self, tenant_id: UUID) -> Tenant | None:
        """Get a tenant by ID."""
        return await self.session.get(Tenant, tenant_id)

    async def slug_exists(self, slug: str) -> bool:
        """Check whether a slug is taken."""
        result = await self.session.execute(select(Tenant.id).where(Tenant.slug == slug))
        return result.scalar_one_or_none() is not None

    async def update(self, tenant: Tenant) -> Tenant:
        """Flush changes made to a tenant."""
        await self.session.flush()
        await self.session.refresh(tenant)
        return tenant

    async def delete(self, tenant: Tenant) -> None:
        """Delete a tenant row."""
        await self.session.delete(tenant)
        await self.session.flush()


TenantRepo = Annotated[TenantRepository, Depends(TenantRepository)]
