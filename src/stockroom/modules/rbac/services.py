"""Role administration and permission catalogue services."""

from collections.abc import Iterable, Sequence
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends
from sqlalchemy.exc import IntegrityError

from stockroom.core.constants import OWNER_ROLE
from stockroom.core.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from stockroom.core.permissions.models import Permission, Role
from stockroom.modules.rbac.repos import PermissionRepo, RoleRepo
from stockroom.modules.rbac.schemas import PermissionResponse, RoleResponse
from stockroom.modules.users.models import Membership
from stockroom.modules.users.repos import MembershipRepo


logger = structlog.get_logger()


def is_owner_role(name: str) -> bool:
    """Check whether a role name is the protected Owner role (case-insensitive)."""
    return name.strip().lower() == OWNER_ROLE.lower()


class RoleService:
    """Service for tenant role administration.

    Every operation takes the tenant id resolved for the request and only
    ever touches roles and memberships of that tenant. Multi-step changes
    rely on the request's unit of work: nothing is committed here, so a
    failure part-way leaves no partial state behind.
    """

    def __init__(
        self,
        roles: RoleRepo,
        permissions: PermissionRepo,
        memberships: MembershipRepo,
    ) -> None:
        self.roles = roles
        self.permissions = permissions
        self.memberships = memberships

    # ============================================================
    # Roles
    # ============================================================

    async def create_role(
        self,
        tenant_id: UUID,
        name: str,
        description: str | None = None,
        permission_names: Sequence[str] | None = None,
    ) -> RoleResponse:
        """Create a role, optionally with an initial permission set.

        Raises:
            ConflictError: If the tenant already has a role with this name
            ValidationError: If the name is blank
            BadRequestError: If any permission name is unknown
        """
        name = _role_name(name)
        grants = await self._resolve_permissions(permission_names or [])

        if await self.roles.get_by_name(tenant_id, name):
            raise ConflictError(
                "Role with this name already exists",
                error_code="role_exists",
                details={"name": name},
            )

        try:
            role = await self.roles.create(
                Role(tenant_id=tenant_id, name=name, description=description)
            )
        except IntegrityError as exc:
            raise ConflictError(
                "Role with this name already exists",
                error_code="role_exists",
                details={"name": name},
            ) from exc

        if grants:
            await self._grant(role.id, (p.id for p in grants))

        logger.info("role_created", tenant_id=str(tenant_id), role_id=str(role.id), name=name)
        return _role_response(role, [p.name for p in grants])

    async def update_role(
        self,
        tenant_id: UUID,
        role_id: UUID,
        name: str | None = None,
        description: str | None = None,
    ) -> RoleResponse:
        """Rename or re-describe a role.

        Raises:
            NotFoundError: If the role is not in the tenant
            ForbiddenError: If renaming the Owner role
            ValidationError: If the new name is blank
            ConflictError: If the new name is taken
        """
        role = await self._get_role(tenant_id, role_id)

        if name is not None:
            name = _role_name(name)
            if name != role.name:
                if is_owner_role(role.name):
                    raise ForbiddenError(
                        "The Owner role cannot be renamed",
                        error_code="owner_role_protected",
                    )
                if await self.roles.get_by_name(tenant_id, name):
                    raise ConflictError(
                        "Role with this name already exists",
                        error_code="role_exists",
                        details={"name": name},
                    )
                role.name = name
        if description is not None:
            role.description = description

        try:
            await self.roles.update(role)
        except IntegrityError as exc:
            raise ConflictError(
                "Role with this name already exists",
                error_code="role_exists",
            ) from exc

        names = await self._permission_names(role.id)
        return _role_response(role, names)

    async def update_role_and_permissions(
        self,
        tenant_id: UUID,
        role_id: UUID,
        name: str | None = None,
        description: str | None = None,
        permission_names: Sequence[str] | None = None,
    ) -> RoleResponse:
        """Update a role and, when a list is supplied, replace its permissions.

        Permission names are validated before anything is changed.
        """
        if permission_names is not None:
            await self._resolve_permissions(permission_names)

        await self.update_role(tenant_id, role_id, name=name, description=description)
        if permission_names is not None:
            await self.set_permissions_for_role(tenant_id, role_id, permission_names)

        role = await self._get_role(tenant_id, role_id)
        return _role_response(role, await self._permission_names(role.id))

    async def delete_role(self, tenant_id: UUID, role_id: UUID) -> None:
        """Delete a role with its grants and membership assignments.

        Raises:
            NotFoundError: If the role is not in the tenant
            ForbiddenError: If the role is the Owner role
        """
        role = await self._get_role(tenant_id, role_id)
        if is_owner_role(role.name):
            raise ForbiddenError(
                "The Owner role cannot be deleted",
                error_code="owner_role_protected",
            )

        await self.roles.delete(role)
        logger.info("role_deleted", tenant_id=str(tenant_id), role_id=str(role_id))

    async def list_roles(self, tenant_id: UUID) -> list[RoleResponse]:
        """List a tenant's roles with their permission names, ordered by name."""
        roles = await self.roles.list_for_tenant(tenant_id)
        names = await self.roles.permission_names_by_role([role.id for role in roles])
        return [_role_response(role, names[role.id]) for role in roles]

    async def list_role_ids(self, tenant_id: UUID) -> list[UUID]:
        """List a tenant's role ids."""
        return await self.roles.list_ids(tenant_id)

    # ============================================================
    # Role permissions
    # ============================================================

    async def list_permissions_for_role(self, tenant_id: UUID, role_id: UUID) -> list[Permission]:
        """List the permissions granted to a role of the tenant."""
        role = await self._get_role(tenant_id, role_id)
        return await self.roles.permissions_for_role(role.id)

    async def set_permissions_for_role(
        self,
        tenant_id: UUID,
        role_id: UUID,
        permission_names: Sequence[str],
    ) -> list[str]:
        """Replace a role's permissions.

        Old grants are deleted and new ones inserted in the same unit of
        work, so no reader ever sees a wider set than old or new.

        Returns:
            The role's permission names afterwards
        """
        role = await self._get_role(tenant_id, role_id)
        grants = await self._resolve_permissions(permission_names)

        await self.roles.remove_grants(role.id)
        await self._grant(role.id, (p.id for p in grants))
        logger.info(
            "role_permissions_replaced",
            tenant_id=str(tenant_id),
            role_id=str(role_id),
            permissions=sorted(p.name for p in grants),
        )
        return await self._permission_names(role.id)

    async def add_permissions_to_role(
        self,
        tenant_id: UUID,
        role_id: UUID,
        permission_names: Sequence[str],
    ) -> list[str]:
        """Grant additional permissions to a role, keeping existing ones."""
        role = await self._get_role(tenant_id, role_id)
        grants = await self._resolve_permissions(permission_names)

        await self._grant(role.id, (p.id for p in grants))
        return await self._permission_names(role.id)

    async def remove_permissions_from_role(
        self,
        tenant_id: UUID,
        role_id: UUID,
        permission_names: Sequence[str],
    ) -> list[str]:
        """Revoke permissions from a role."""
        role = await self._get_role(tenant_id, role_id)
        grants = await self._resolve_permissions(permission_names)

        await self.roles.remove_grants(role.id, (p.id for p in grants))
        return await self._permission_names(role.id)

    # ============================================================
    # Member roles
    # ============================================================

    async def set_roles_for_user_in_tenant(
        self,
        tenant_id: UUID,
        user_id: UUID,
        role_ids: Sequence[UUID],
    ) -> list[Role]:
        """Replace the roles of a user's membership in the tenant.

        Raises:
            NotFoundError: If the user is not a member, or a role id is not
                a role of the tenant
        """
        membership = await self._get_membership(tenant_id, user_id)
        await self._check_roles_in_tenant(tenant_id, role_ids)

        await self.roles.unassign(membership.id)
        await self._assign(membership.id, role_ids)
        return await self.roles.roles_for_membership(tenant_id, membership.id)

    async def add_roles_for_user_in_tenant(
        self,
        tenant_id: UUID,
        user_id: UUID,
        role_ids: Sequence[UUID],
    ) -> list[Role]:
        """Assign additional roles to a user's membership in the tenant."""
        membership = await self._get_membership(tenant_id, user_id)
        await self._check_roles_in_tenant(tenant_id, role_ids)

        await self._assign(membership.id, role_ids)
        return await self.roles.roles_for_membership(tenant_id, membership.id)

    async def remove_roles_for_user_in_tenant(
        self,
        tenant_id: UUID,
        user_id: UUID,
        role_ids: Sequence[UUID],
    ) -> list[Role]:
        """Remove roles from a user's membership in the tenant."""
        membership = await self._get_membership(tenant_id, user_id)
        await self._check_roles_in_tenant(tenant_id, role_ids)

        await self.roles.unassign(membership.id, role_ids)
        return await self.roles.roles_for_membership(tenant_id, membership.id)

    async def list_user_roles_in_tenant(self, tenant_id: UUID, user_id: UUID) -> list[Role]:
        """List the roles a user holds in the tenant."""
        membership = await self._get_membership(tenant_id, user_id)
        return await self.roles.roles_for_membership(tenant_id, membership.id)

    async def assign_roles(
        self,
        tenant_id: UUID,
        membership: Membership,
        role_ids: Iterable[UUID],
    ) -> None:
        """Assign tenant roles to a membership that is already loaded."""
        role_ids = list(role_ids)
        await self._check_roles_in_tenant(tenant_id, role_ids)
        await self._assign(membership.id, role_ids)

    # ============================================================
    # Helpers
    # ============================================================

    async def _get_role(self, tenant_id: UUID, role_id: UUID) -> Role:
        role = await self.roles.get(tenant_id, role_id)
        if not role:
            raise NotFoundError(
                "Role not found for this tenant",
                resource="role",
                resource_id=str(role_id),
            )
        return role

    async def _get_membership(self, tenant_id: UUID, user_id: UUID) -> Membership:
        membership = await self.memberships.get(user_id, tenant_id)
        if not membership:
            raise NotFoundError(
                "User is not a member of this tenant",
                resource="membership",
                resource_id=str(user_id),
            )
        return membership

    async def _check_roles_in_tenant(self, tenant_id: UUID, role_ids: Iterable[UUID]) -> None:
        foreign = await self.roles.foreign_ids(tenant_id, role_ids)
        if foreign:
            raise NotFoundError(
                "One or more roles do not belong to this tenant",
                resource="role",
                details={"role_ids": [str(role_id) for role_id in foreign]},
            )

    async def _resolve_permissions(self, names: Iterable[str]) -> list[Permission]:
        """Look up permissions by name, reporting every unknown name at once.

        Raises:
            BadRequestError: If any name is not in the catalogue
        """
        wanted = set(names)
        found = await self.permissions.get_by_names(wanted)
        unknown = sorted(wanted - {p.name for p in found})
        if unknown:
            raise BadRequestError(
                f"Unknown permissions: {', '.join(unknown)}",
                error_code="unknown_permissions",
                details={"unknown": unknown},
            )
        return found

    async def _grant(self, role_id: UUID, permission_ids: Iterable[UUID]) -> None:
        try:
            await self.roles.add_grants(role_id, permission_ids)
        except IntegrityError as exc:
            raise ConflictError(
                "Role permissions were changed concurrently",
                error_code="role_grant_exists",
            ) from exc

    async def _assign(self, membership_id: UUID, role_ids: Iterable[UUID]) -> None:
        try:
            await self.roles.assign(membership_id, role_ids)
        except IntegrityError as exc:
            raise ConflictError(
                "Member roles were changed concurrently",
                error_code="membership_role_exists",
            ) from exc

    async def _permission_names(self, role_id: UUID) -> list[str]:
        return [p.name for p in await self.roles.permissions_for_role(role_id)]


class PermissionService:
    """Read access to the global permission catalogue."""

    def __init__(self, permissions: PermissionRepo) -> None:
        self.permissions = permissions

    async def list_all(self) -> list[PermissionResponse]:
        """List every permission with its module and action parts."""
        return [PermissionResponse.model_validate(p) for p in await self.permissions.list_all()]


def _role_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise ValidationError(
            "Role name must not be blank",
            errors=[{"field": "name", "message": "Role name must not be blank"}],
        )
    return name


def _role_response(role: Role, permission_names: Iterable[str]) -> RoleResponse:
    return RoleResponse(
        id=role.id,
        name=role.name,
        description=role.description,
        permissions=sorted(permission_names),
    )


RoleSvc = Annotated[RoleService, Depends(RoleService)]
PermissionSvc = Annotated[PermissionService, Depends(PermissionService)]
