"""Route requirement table and the access dependency factory.

Every protected route names its entry in ``ROUTE_REQUIREMENTS`` through
``require_access``. Routes not in the table cannot be protected by mistake:
an unknown key fails at import time.
"""

from collections.abc import Awaitable, Callable
from typing import Annotated, Any

import structlog
from fastapi import Depends, Header, Request

from stockroom.core.auth.dependencies import SessionClaims
from stockroom.core.constants import ADMIN_ROLE, OWNER_ROLE, TENANT_HEADER
from stockroom.core.permissions.gate import AccessContext, RouteRequirements, authorize
from stockroom.core.tenancy.resolver import parse_tenant_header


_ROLE_MANAGE = RouteRequirements(permissions=frozenset({"role.manage"}))
# Invites need the catalogue too, so either permission reads it
_CATALOGUE_READ = RouteRequirements(permissions=frozenset({"role.manage", "user.manage"}))
_ADMINS = frozenset({ADMIN_ROLE, OWNER_ROLE})
_MEMBER_ADMIN = RouteRequirements(roles=_ADMINS, permissions=frozenset({"user.manage"}))
_MEMBER_ROLE_ADMIN = RouteRequirements(
    roles=_ADMINS,
    permissions=frozenset({"user.manage", "role.manage"}),
)
_TENANT_OWNER = RouteRequirements(roles=frozenset({OWNER_ROLE}))


ROUTE_REQUIREMENTS: dict[str, RouteRequirements] = {
    # Session
    "auth.check": RouteRequirements(tenant_scoped=False),
    "auth.password.change": RouteRequirements(tenant_scoped=False),
    # Tenants
    "tenants.create": RouteRequirements(tenant_scoped=False),
    "tenants.update": _TENANT_OWNER,
    "tenants.delete": _TENANT_OWNER,
    # Roles
    "roles.list": _ROLE_MANAGE,
    "roles.ids": _ROLE_MANAGE,
    "roles.create": _ROLE_MANAGE,
    "roles.update": _ROLE_MANAGE,
    "roles.delete": _ROLE_MANAGE,
    "roles.permissions.list": _ROLE_MANAGE,
    "roles.permissions.set": _ROLE_MANAGE,
    "roles.permissions.add": _ROLE_MANAGE,
    "roles.permissions.remove": _ROLE_MANAGE,
    # Permission catalogue
    "permissions.list": _CATALOGUE_READ,
    # Members
    "users.list": _MEMBER_ADMIN,
    "users.create": _MEMBER_ADMIN,
    "users.invite": _MEMBER_ADMIN,
    "users.suspend": _MEMBER_ADMIN,
    "users.activate": _MEMBER_ADMIN,
    "users.roles.list": _MEMBER_ROLE_ADMIN,
    "users.roles.set": _MEMBER_ROLE_ADMIN,
    "users.roles.add": _MEMBER_ROLE_ADMIN,
    "users.roles.remove": _MEMBER_ROLE_ADMIN,
}


def require_access(route_key: str) -> Callable[..., Awaitable[AccessContext]]:
    """Build a dependency that authorizes the caller for a route.

    Usage:
        @router.get("/roles")
        async def list_roles(access: Annotated[AccessContext, Depends(require_access("roles.list"))]):
            ...

    Args:
        route_key: Key into ``ROUTE_REQUIREMENTS``

    Returns:
        A FastAPI dependency returning the ``AccessContext``

    Raises:
        KeyError: If the route key is not declared
    """
    requirements = ROUTE_REQUIREMENTS[route_key]

    async def dependency(
        request: Request,
        claims: SessionClaims,
        x_tenant_id: Annotated[str | None, Header(alias=TENANT_HEADER)] = None,
    ) -> AccessContext:
        access = authorize(claims, requirements, parse_tenant_header(x_tenant_id))

        request.state.user_id = access.user_id
        request.state.tenant_id = access.tenant_id
        structlog.contextvars.bind_contextvars(
            user_id=str(access.user_id),
            tenant_id=str(access.tenant_id) if access.tenant_id else None,
        )
        return access

    dependency.__name__ = f"require_access_{route_key.replace('.', '_')}"
    return dependency


def access_for(route_key: str) -> Any:
    """Annotated ``AccessContext`` parameter type for a route.

    Usage:
        async def list_roles(access: access_for("roles.list")): ...
    """
    return Annotated[AccessContext, Depends(require_access(route_key))]
