"""Role-based access control: models, resolution and the authorization gate."""

from stockroom.core.permissions.gate import AccessContext, RouteRequirements, authorize
from stockroom.core.permissions.models import MembershipRole, Permission, Role, RoleGrant
from stockroom.core.permissions.requirements import ROUTE_REQUIREMENTS, require_access
from stockroom.core.permissions.resolver import expand_permissions, has_permission


__all__ = [
    "ROUTE_REQUIREMENTS",
    "AccessContext",
    "MembershipRole",
    "Permission",
    "Role",
    "RoleGrant",
    "RouteRequirements",
    "authorize",
    "expand_permissions",
    "has_permission",
    "require_access",
]
