"""Authorization gate.

Runs the per-request checks in order: tenant resolution, role check,
super-role bypass, permission check and the tenant-match guard. The
outcome is an ``AccessContext`` that handlers receive explicitly.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from uuid import UUID

import structlog

from stockroom.config import settings
from stockroom.core.auth.schemas import TokenClaims
from stockroom.core.errors import BadRequestError, ForbiddenError
from stockroom.core.permissions.resolver import has_permission
from stockroom.core.tenancy.resolver import resolve_tenant_id


logger = structlog.get_logger()


@dataclass(frozen=True)
class RouteRequirements:
    """What a protected action demands of its caller.

    Attributes:
        roles: Role names; the caller must hold at least one (empty = no constraint)
        permissions: Permission names; any one suffices (empty = no constraint)
        tenant_scoped: Whether the action needs an effective tenant
    """

    roles: frozenset[str] = field(default_factory=frozenset)
    permissions: frozenset[str] = field(default_factory=frozenset)
    tenant_scoped: bool = True


@dataclass(frozen=True)
class AccessContext:
    """The authorized caller and the tenant the request acts on."""

    claims: TokenClaims
    tenant_id: UUID | None

    @property
    def user_id(self) -> UUID:
        return self.claims.sub

    @property
    def roles(self) -> list[str]:
        return self.claims.roles

    @property
    def perms(self) -> list[str]:
        return self.claims.perms

    def require_tenant(self) -> UUID:
        """Return the effective tenant, failing when there is none."""
        if self.tenant_id is None:
            raise BadRequestError("Tenant context required", error_code="tenant_required")
        return self.tenant_id


def authorize(
    claims: TokenClaims,
    requirements: RouteRequirements,
    header_tenant_id: UUID | None = None,
    super_roles: Iterable[str] | None = None,
) -> AccessContext:
    """Decide whether verified claims may perform an action.

    Args:
        claims: Verified session claims
        requirements: The action's declared requirements
        header_tenant_id: Parsed ``X-Tenant-ID`` header, if sent
        super_roles: Role names that skip the permission check
            (defaults to ``settings.super_roles``)

    Returns:
        The access context for the handler

    Raises:
        BadRequestError: If the action is tenant scoped and no tenant is known
        ForbiddenError: On missing role, missing permission or tenant mismatch
    """
    tenant_id = resolve_tenant_id(
        header_tenant_id,
        claims,
        required=requirements.tenant_scoped,
    )
    held_roles = set(claims.roles)

    if requirements.roles and not held_roles & requirements.roles:
        logger.warning(
            "access_denied",
            reason="insufficient_role",
            user_id=str(claims.sub),
            tenant_id=str(tenant_id) if tenant_id else None,
        )
        raise ForbiddenError("Insufficient role", error_code="insufficient_role")

    bypass_roles = held_roles & set(super_roles if super_roles is not None else settings.super_roles)
    if bypass_roles:
        logger.info(
            "super_role_bypass",
            user_id=str(claims.sub),
            tenant_id=str(tenant_id) if tenant_id else None,
            roles=sorted(bypass_roles),
        )
    elif not has_permission(requirements.permissions, claims.perms):
        logger.warning(
            "access_denied",
            reason="missing_permission",
            user_id=str(claims.sub),
            tenant_id=str(tenant_id) if tenant_id else None,
        )
        raise ForbiddenError("Missing permission", error_code="permission_denied")

    if (
        header_tenant_id is not None
        and claims.tenant_id is not None
        and header_tenant_id != claims.tenant_id
    ):
        logger.warning(
            "tenant_mismatch",
            user_id=str(claims.sub),
            header_tenant_id=str(header_tenant_id),
            token_tenant_id=str(claims.tenant_id),
        )
        raise ForbiddenError("Tenant mismatch", error_code="tenant_mismatch")

    return AccessContext(claims=claims, tenant_id=tenant_id)
