"""Role and permission administration API routes.

All routes act on the request's effective tenant and require
``role.manage`` (or a super role).
"""

from uuid import UUID

from fastapi import APIRouter, status

from stockroom.core.permissions.requirements import access_for
from stockroom.modules.rbac.schemas import (
    PermissionResponse,
    RoleCreate,
    RolePermissions,
    RoleResponse,
    RoleUpdate,
)
from stockroom.modules.rbac.services import PermissionSvc, RoleSvc


roles_router = APIRouter(prefix="/roles", tags=["roles"])
permissions_router = APIRouter(prefix="/permissions", tags=["permissions"])


@roles_router.get("", response_model=list[RoleResponse], summary="List roles")
async def list_roles(service: RoleSvc, access: access_for("roles.list")) -> list[RoleResponse]:
    """List the tenant's roles with their permissions."""
    return await service.list_roles(access.require_tenant())


@roles_router.get("/ids", response_model=list[UUID], summary="List role ids")
async def list_role_ids(service: RoleSvc, access: access_for("roles.ids")) -> list[UUID]:
    """List the tenant's role ids."""
    return await service.list_role_ids(access.require_tenant())


@roles_router.post(
    "",
    response_model=RoleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a role",
)
async def create_role(
    data: RoleCreate,
    service: RoleSvc,
    access: access_for("roles.create"),
) -> RoleResponse:
    """Create a role, optionally with initial permissions."""
    return await service.create_role(
        access.require_tenant(),
        data.name,
        data.description,
        data.permission_names,
    )


@roles_router.put("/{role_id}", response_model=RoleResponse, summary="Update a role")
async def update_role(
    role_id: UUID,
    data: RoleUpdate,
    service: RoleSvc,
    access: access_for("roles.update"),
) -> RoleResponse:
    """Rename or re-describe a role."""
    return await service.update_role(
        access.require_tenant(),
        role_id,
        name=data.name,
        description=data.description,
    )


@roles_router.patch(
    "/{role_id}",
    response_model=RoleResponse,
    summary="Update a role and its permissions",
    description="Replaces the role's permissions when permissionNames is supplied.",
)
async def update_role_and_permissions(
    role_id: UUID,
    data: RoleUpdate,
    service: RoleSvc,
    access: access_for("roles.update"),
) -> RoleResponse:
    """Update a role and optionally replace its permissions."""
    return await service.update_role_and_permissions(
        access.require_tenant(),
        role_id,
        name=data.name,
        description=data.description,
        permission_names=data.permission_names,
    )


@roles_router.delete(
    "/{role_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a role",
)
async def delete_role(role_id: UUID, service: RoleSvc, access: access_for("roles.delete")) -> None:
    """Delete a role and unassign it from every member."""
    await service.delete_role(access.require_tenant(), role_id)


@roles_router.get(
    "/{role_id}/permissions",
    response_model=list[PermissionResponse],
    summary="List a role's permissions",
)
async def list_role_permissions(
    role_id: UUID,
    service: RoleSvc,
    access: access_for("roles.permissions.list"),
) -> list[PermissionResponse]:
    """List the permissions granted to a role."""
    permissions = await service.list_permissions_for_role(access.require_tenant(), role_id)
    return [PermissionResponse.model_validate(p) for p in permissions]


@roles_router.put(
    "/{role_id}/permissions",
    response_model=RolePermissions,
    summary="Replace a role's permissions",
)
async def set_role_permissions(
    role_id: UUID,
    data: RolePermissions,
    service: RoleSvc,
    access: access_for("roles.permissions.set"),
) -> RolePermissions:
    """Replace the permissions granted to a role."""
    names = await service.set_permissions_for_role(
        access.require_tenant(),
        role_id,
        data.permission_names,
    )
    return RolePermissions(permission_names=names)


@roles_router.post(
    "/{role_id}/permissions/add",
    response_model=RolePermissions,
    summary="Grant permissions to a role",
)
async def add_role_permissions(
    role_id: UUID,
    data: RolePermissions,
    service: RoleSvc,
    access: access_for("roles.permissions.add"),
) -> RolePermissions:
    """Grant additional permissions to a role."""
    names = await service.add_permissions_to_role(
        access.require_tenant(),
        role_id,
        data.permission_names,
    )
    return RolePermissions(permission_names=names)


@roles_router.delete(
    "/{role_id}/permissions",
    response_model=RolePermissions,
    summary="Revoke permissions from a role",
)
async def remove_role_permissions(
    role_id: UUID,
    data: RolePermissions,
    service: RoleSvc,
    access: access_for("roles.permissions.remove"),
) -> RolePermissions:
    """Revoke permissions from a role."""
    names = await service.remove_permissions_from_role(
        access.require_tenant(),
        role_id,
        data.permission_names,
    )
    return RolePermissions(permission_names=names)


@permissions_router.get(
    "",
    response_model=list[PermissionResponse],
    summary="List the permission catalogue",
)
async def list_permissions(
    service: PermissionSvc,
    access: access_for("permissions.list"),  # noqa: ARG001
) -> list[PermissionResponse]:
    """List every permission that can be granted."""
    return await service.list_all()


router = APIRouter()
router.include_router(roles_router)
router.include_router(permissions_router)
