"""Role and permission repositories."""

from collections.abc import Iterable, Sequence
from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import delete, func, select

from stockroom.api.dependencies import DBSession
from stockroom.core.permissions.models import MembershipRole, Permission, Role, RoleGrant


class PermissionRepository:
    """Repository for the global permission catalogue."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def list_all(self) -> list[Permission]:
        """List every permission ordered by name."""
        result = await self.session.execute(select(Permission).order_by(Permission.name))
        return list(result.scalars().all())

    async def get_by_names(self, names: Iterable[str]) -> list[Permission]:
        """Get the permissions whose names are in ``names``."""
        wanted = set(names)
        if not wanted:
            return []
        result = await self.session.execute(
            select(Permission).where(Permission.name.in_(wanted)).order_by(Permission.name)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        """Count catalogue entries."""
        result = await self.session.execute(select(func.count()).select_from(Permission))
        return result.scalar_one()


class RoleRepository:
    """Repository for tenant roles, their grants and their assignments.

    Every role lookup is scoped by tenant id.
    """

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, role: Role) -> Role:
        """Create a new role."""
        self.session.add(role)
        await self.session.flush()
        await self.session.refresh(role)
        return role

    async def update(self, role: Role) -> Role:
        """Flush changes made to a role."""
        await self.session.flush()
        await self.session.refresh(role)
        return role

    async def get(self, tenant_id: UUID, role_id: UUID) -> Role | None:
        """Get a role of a tenant by ID.

        Returns:
            Role if found in this tenant, None otherwise
        """
        result = await self.session.execute(
            select(Role).where(Role.id == role_id, Role.tenant_id == tenant_id)
        )
        return result.scalar_one_or_none()

    async def get_by_name(self, tenant_id: UUID, name: str) -> Role | None:
        """Get a role of a tenant by exact name."""
        result = await self.session.execute(
            select(Role).where(Role.tenant_id == tenant_id, Role.name == name)
        )
        return result.scalar_one_or_none()

    async def list_for_tenant(self, tenant_id: UUID) -> list[Role]:
        """List a tenant's roles ordered by name."""
        result = await self.session.execute(
            select(Role).where(Role.tenant_id == tenant_id).order_by(Role.name)
        )
        return list(result.scalars().all())

    async def list_ids(self, tenant_id: UUID) -> list[UUID]:
        """List a tenant's role ids."""
        result = await self.session.execute(
            select(Role.id).where(Role.tenant_id == tenant_id).order_by(Role.name)
        )
        return list(result.scalars().all())

    async def foreign_ids(self, tenant_id: UUID, role_ids: Iterable[UUID]) -> list[UUID]:
        """Return the ids in ``role_ids`` that are not roles of the tenant."""
        wanted = set(role_ids)
        if not wanted:
            return []
        result = await self.session.execute(
            select(Role.id).where(Role.tenant_id == tenant_id, Role.id.in_(wanted))
        )
        found = set(result.scalars().all())
        return sorted(wanted - found, key=str)

    async def delete(self, role: Role) -> None:
        """Delete a role with its grants and membership assignments."""
        await self.session.execute(
            delete(RoleGrant)
            .where(RoleGrant.role_id == role.id)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(
            delete(MembershipRole)
            .where(MembershipRole.role_id == role.id)
            .execution_options(synchronize_session=False)
        )
        await self.session.delete(role)
        await self.session.flush()

    async def delete_by_tenant(self, tenant_id: UUID) -> None:
        """Delete every role of a tenant and its grants."""
        role_ids = select(Role.id).where(Role.tenant_id == tenant_id)
        await self.session.execute(
            delete(RoleGrant)
            .where(RoleGrant.role_id.in_(role_ids))
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(
            delete(MembershipRole)
            .where(MembershipRole.role_id.in_(role_ids))
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(
            delete(Role)
            .where(Role.tenant_id == tenant_id)
            .execution_options(synchronize_session=False)
        )

    # ============================================================
    # Grants
    # ============================================================

    async def permissions_for_role(self, role_id: UUID) -> list[Permission]:
        """Get the permissions granted to a role ordered by name."""
        result = await self.session.execute(
            select(Permission)
            .join(RoleGrant, RoleGrant.permission_id == Permission.id)
            .where(RoleGrant.role_id == role_id)
            .order_by(Permission.name)
        )
        return list(result.scalars().all())

    async def permission_names_by_role(
        self,
        role_ids: Sequence[UUID],
    ) -> dict[UUID, list[str]]:
        """Get granted permission names for several roles."""
        names: dict[UUID, list[str]] = {role_id: [] for role_id in role_ids}
        if not role_ids:
            return names
        result = await self.session.execute(
            select(RoleGrant.role_id, Permission.name)
            .join(Permission, Permission.id == RoleGrant.permission_id)
            .where(RoleGrant.role_id.in_(role_ids))
            .order_by(Permission.name)
        )
        for role_id, permission_name in result.all():
            names[role_id].append(permission_name)
        return names

    async def add_grants(self, role_id: UUID, permission_ids: Iterable[UUID]) -> None:
        """Grant permissions to a role, skipping ones it already has."""
        existing = await self.session.execute(
            select(RoleGrant.permission_id).where(RoleGrant.role_id == role_id)
        )
        held = set(existing.scalars().all())
        self.session.add_all(
            RoleGrant(role_id=role_id, permission_id=permission_id)
            for permission_id in set(permission_ids) - held
        )
        await self.session.flush()

    async def remove_grants(
        self,
        role_id: UUID,
        permission_ids: Iterable[UUID] | None = None,
    ) -> None:
        """Revoke permissions from a role; all of them when ``permission_ids`` is None."""
        stmt = delete(RoleGrant).where(RoleGrant.role_id == role_id)
        if permission_ids is not None:
            stmt = stmt.where(RoleGrant.permission_id.in_(set(permission_ids)))
        await self.session.execute(stmt.execution_options(synchronize_session=False))

    # ============================================================
    # Membership assignments
    # ============================================================

    async def roles_for_membership(self, tenant_id: UUID, membership_id: UUID) -> list[Role]:
        """Get the tenant roles assigned to a membership ordered by name."""
        result = await self.session.execute(
            select(Role)
            .join(MembershipRole, MembershipRole.role_id == Role.id)
            .where(
                MembershipRole.membership_id == membership_id,
                Role.tenant_id == tenant_id,
            )
            .order_by(Role.name)
        )
        return list(result.scalars().all())

    async def assign(self, membership_id: UUID, role_ids: Iterable[UUID]) -> None:
        """Assign roles to a membership, skipping ones already assigned."""
        existing = await self.session.execute(
            select(MembershipRole.role_id).where(MembershipRole.membership_id == membership_id)
        )
        held = set(existing.scalars().all())
        self.session.add_all(
            MembershipRole(membership_id=membership_id, role_id=role_id)
            for role_id in set(role_ids) - held
        )
        await self.session.flush()

    async def unassign(
        self,
        membership_id: UUID,
        role_ids: Iterable[UUID] | None = None,
    ) -> None:
        """Remove roles from a membership; all of them when ``role_ids`` is None."""
        stmt = delete(MembershipRole).where(MembershipRole.membership_id == membership_id)
        if role_ids is not None:
            stmt = stmt.where(MembershipRole.role_id.in_(set(role_ids)))
        await self.session.execute(stmt.execution_options(synchronize_session=False))


RoleRepo = Annotated[RoleRepository, Depends(RoleRepository)]
PermissionRepo = Annotated[PermissionRepository, Depends(PermissionRepository)]
