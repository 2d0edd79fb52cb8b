"""Tenant provisioning service."""

from typing import Annotated
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog
from fastapi import Depends
from sqlalchemy.exc import IntegrityError

from stockroom.core.constants import (
    ADMIN_ROLE,
    DEFAULT_CURRENCY,
    DEFAULT_TIMEZONE,
    OWNER_ROLE,
)
from stockroom.core.database import utc_now
from stockroom.core.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from stockroom.core.permissions.models import Role
from stockroom.core.utils.text import generate_slug, slug_with_suffix
from stockroom.modules.rbac.repos import PermissionRepo, RoleRepo
from stockroom.modules.tenants.models import Tenant
from stockroom.modules.tenants.repos import TenantRepo
from stockroom.modules.tenants.schemas import TenantUpdate
from stockroom.modules.users.models import Membership, MembershipStatus
from stockroom.modules.users.repos import MembershipRepo, UserRepo


logger = structlog.get_logger()

# Roles every new tenant starts with; both receive the whole catalogue
DEFAULT_ROLES = (OWNER_ROLE, ADMIN_ROLE)


class TenantService:
    """Service for creating, updating and deleting tenants."""

    def __init__(
        self,
        tenants: TenantRepo,
        users: UserRepo,
        memberships: MembershipRepo,
        roles: RoleRepo,
        permissions: PermissionRepo,
    ) -> None:
        self.tenants = tenants
        self.users = users
        self.memberships = memberships
        self.roles = roles
        self.permissions = permissions

    async def create_for_user(
        self,
        user_id: UUID,
        name: str | None = None,
        description: str | None = None,
    ) -> Tenant:
        """Create a tenant owned by an existing user.

        Seeds the Owner and Admin roles with every catalogue permission and
        makes the user the tenant's active owner member holding Owner.

        Args:
            user_id: The future owner
            name: Tenant name; defaults to "<first name>'s Workspace"
            description: Optional description

        Returns:
            The created tenant

        Raises:
            BadRequestError: If the user is missing or inactive, or the
                permission catalogue has not been seeded
            ConflictError: If another request took the slug first
        """
        user = await self.users.get_by_id(user_id)
        if not user or not user.is_active:
            raise BadRequestError("Invalid user", error_code="invalid_user")

        catalogue = await self.permissions.list_all()
        if not catalogue:
            raise BadRequestError(
                "No permissions found; seed the permission catalogue before creating tenants",
                error_code="permissions_not_seeded",
            )

        tenant_name = (name or "").strip() or _default_tenant_name(user.full_name)
        slug = await self._unique_slug(tenant_name)
        try:
            tenant = await self.tenants.create(
                Tenant(
                    name=tenant_name,
                    slug=slug,
                    description=(description or "").strip() or None,
                    currency=DEFAULT_CURRENCY,
                    timezone=DEFAULT_TIMEZONE,
                )
            )
        except IntegrityError as exc:
            raise ConflictError(
                "Tenant slug already taken",
                error_code="tenant_slug_exists",
                details={"slug": slug},
            ) from exc

        seeded: dict[str, Role] = {}
        for role_name in DEFAULT_ROLES:
            role = await self.roles.create(Role(tenant_id=tenant.id, name=role_name))
            await self.roles.add_grants(role.id, (p.id for p in catalogue))
            seeded[role_name] = role

        membership = await self.memberships.create(
            Membership(
                user_id=user.id,
                tenant_id=tenant.id,
                status=MembershipStatus.ACTIVE.value,
                is_owner=True,
                accepted_at=utc_now(),
            )
        )
        await self.roles.assign(membership.id, [seeded[OWNER_ROLE].id])

        logger.info(
            "tenant_created",
            tenant_id=str(tenant.id),
            slug=tenant.slug,
            owner_id=str(user.id),
        )
        return tenant

    async def update_tenant(
        self,
        tenant_id: UUID,
        requester_id: UUID,
        data: TenantUpdate,
    ) -> Tenant:
        """Update tenant settings (owner only).

        Raises:
            NotFoundError: If the tenant does not exist
            ForbiddenError: If the requester is not an owner member
            ValidationError: If the timezone is unknown
        """
        tenant = await self._get_owned_tenant(tenant_id, requester_id)

        if data.name is not None:
            tenant.name = data.name.strip()
        if data.description is not None:
            tenant.description = data.description.strip() or None
        if data.currency is not None:
            tenant.currency = data.currency.upper()
        if data.timezone is not None:
            tenant.timezone = _validate_timezone(data.timezone)

        return await self.tenants.update(tenant)

    async def delete_tenant(self, tenant_id: UUID, requester_id: UUID) -> None:
        """Delete a tenant with its memberships and roles (owner only).

        Users are retained, even those left without any tenant.
        """
        tenant = await self._get_owned_tenant(tenant_id, requester_id)

        await self.memberships.delete_by_tenant(tenant.id)
        await self.roles.delete_by_tenant(tenant.id)
        await self.tenants.delete(tenant)
        logger.info("tenant_deleted", tenant_id=str(tenant_id), requester_id=str(requester_id))

    async def _get_owned_tenant(self, tenant_id: UUID, requester_id: UUID) -> Tenant:
        tenant = await self.tenants.get_by_id(tenant_id)
        if not tenant:
            raise NotFoundError("Tenant not found", resource="tenant", resource_id=str(tenant_id))

        membership = await self.memberships.get(requester_id, tenant_id)
        if not membership or not membership.is_owner:
            raise ForbiddenError(
                "Only tenant owners can manage the tenant",
                error_code="owner_required",
            )
        return tenant

    async def _unique_slug(self, name: str) -> str:
        base = generate_slug(name)
        slug = base
        while await self.tenants.slug_exists(slug):
            slug = slug_with_suffix(base)
        return slug


def _default_tenant_name(full_name: str | None) -> str:
    parts = (full_name or "").split()
    first = parts[0] if parts else "Tenant"
    return f"{first}'s Workspace"


def _validate_timezone(value: str) -> str:
    value = value.strip()
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValidationError(
            "Unknown timezone",
            errors=[{"field": "timezone", "message": f"Unknown timezone: {value}"}],
        ) from exc
    return value


TenantSvc = Annotated[TenantService, Depends(TenantService)]
