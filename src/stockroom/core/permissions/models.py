"""Permission system database models.

This module defines the RBAC (Role-Based Access Control) models:
- Permission: A global, stable permission name such as "inventory.read"
- Role: A tenant-scoped named bundle of permissions
- RoleGrant: Junction table linking roles to permissions
- MembershipRole: Junction table linking tenant memberships to roles
"""

from uuid import UUID

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from stockroom.core.constants import (
    MAX_DESCRIPTION_LENGTH,
    MAX_PERMISSION_NAME_LENGTH,
    MAX_ROLE_DESCRIPTION_LENGTH,
    MAX_ROLE_NAME_LENGTH,
)
from stockroom.core.database.base import Base, TenantMixin, TimestampMixin, UUIDMixin


class Permission(Base, UUIDMixin, TimestampMixin):
    """Permission model.

    Permissions are global (not tenant-scoped) and are seeded once from
    the catalogue. Names have the form ``<module>.<action>`` or are the
    universal wildcard ``*``.

    Examples:
        - "inventory.read" -> Can view inventory
        - "inventory.*" -> Any inventory action
        - "role.manage" -> Can manage roles and permissions
    """

    __tablename__ = "permissions"

    name: Mapped[str] = mapped_column(
        String(MAX_PERMISSION_NAME_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    description: Mapped[str | None] = mapped_column(
        String(MAX_DESCRIPTION_LENGTH),
        nullable=True,
    )

    @property
    def module(self) -> str:
        """Return the module part of the name ("inventory" for "inventory.read")."""
        return self.name.split(".", 1)[0]

    @property
    def action(self) -> str | None:
        """Return the action part of the name, None for dot-less names."""
        parts = self.name.split(".", 1)
        return parts[1] if len(parts) > 1 else None

    def __repr__(self) -> str:
        return f"<Permission({self.name})>"


class Role(Base, UUIDMixin, TimestampMixin, TenantMixin):
    """Role model representing a named set of permissions within a tenant.

    Every tenant starts with "Owner" and "Admin". Both are ordinary roles
    that can be edited, but "Owner" can never be deleted.
    """

    __tablename__ = "roles"
    __table_args__ = (
        UniqueConstraint("tenant_id", "name", name="uq_role_tenant_name"),
    )

    name: Mapped[str] = mapped_column(
        String(MAX_ROLE_NAME_LENGTH),
        nullable=False,
        index=True,
    )
    description: Mapped[str | None] = mapped_column(
        String(MAX_ROLE_DESCRIPTION_LENGTH),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name={self.name}, tenant_id={self.tenant_id})>"


class RoleGrant(Base, UUIDMixin, TimestampMixin):
    """Junction table linking roles to permissions.

    A role's effective permission set is the union of its grants.
    """

    __tablename__ = "role_grants"
    __table_args__ = (
        UniqueConstraint("role_id", "permission_id", name="uq_role_grant"),
    )

    role_id: Mapped[UUID] = mapped_column(
        ForeignKey("roles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    permission_id: Mapped[UUID] = mapped_column(
        ForeignKey("permissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<RoleGrant(role_id={self.role_id}, permission_id={self.permission_id})>"


class MembershipRole(Base, UUIDMixin, TimestampMixin):
    """Junction table linking tenant memberships to roles.

    The role must belong to the same tenant as the membership; callers
    validate this before inserting.
    """

    __tablename__ = "membership_roles"
    __table_args__ = (
        UniqueConstraint("membership_id", "role_id", name="uq_membership_role"),
    )

    membership_id: Mapped[UUID] = mapped_column(
        ForeignKey("memberships.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role_id: Mapped[UUID] = mapped_column(
        ForeignKey("roles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<MembershipRole(membership_id={self.membership_id}, role_id={self.role_id})>"
