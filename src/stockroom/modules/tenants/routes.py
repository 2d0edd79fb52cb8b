"""Tenant API routes."""

from uuid import UUID

from fastapi import APIRouter, status

from stockroom.core.errors import ForbiddenError
from stockroom.core.permissions.gate import AccessContext
from stockroom.core.permissions.requirements import access_for
from stockroom.modules.tenants.schemas import TenantCreate, TenantResponse, TenantUpdate
from stockroom.modules.tenants.services import TenantSvc


router = APIRouter(prefix="/tenants", tags=["tenants"])


def _check_path_tenant(tenant_id: UUID, access: AccessContext) -> None:
    """The tenant in the path must be the request's effective tenant."""
    if tenant_id != access.require_tenant():
        raise ForbiddenError("Tenant mismatch", error_code="tenant_mismatch")


@router.post(
    "",
    response_model=TenantResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a tenant",
    description="Creates a tenant owned by the caller, with Owner and Admin roles.",
)
async def create_tenant(
    data: TenantCreate,
    service: TenantSvc,
    access: access_for("tenants.create"),
) -> TenantResponse:
    """Create a tenant for the caller."""
    tenant = await service.create_for_user(access.user_id, data.name, data.description)
    return TenantResponse.model_validate(tenant)


@router.patch(
    "/{tenant_id}",
    response_model=TenantResponse,
    summary="Update tenant settings",
)
async def update_tenant(
    tenant_id: UUID,
    data: TenantUpdate,
    service: TenantSvc,
    access: access_for("tenants.update"),
) -> TenantResponse:
    """Update the tenant (owners only)."""
    _check_path_tenant(tenant_id, access)
    tenant = await service.update_tenant(tenant_id, access.user_id, data)
    return TenantResponse.model_validate(tenant)


@router.delete(
    "/{tenant_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a tenant",
    description="Removes the tenant, its roles and memberships. Users are kept.",
)
async def delete_tenant(
    tenant_id: UUID,
    service: TenantSvc,
    access: access_for("tenants.delete"),
) -> None:
    """Delete the tenant (owners only)."""
    _check_path_tenant(tenant_id, access)
    await service.delete_tenant(tenant_id, access.user_id)
