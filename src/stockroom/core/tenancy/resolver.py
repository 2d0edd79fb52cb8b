"""Tenant context resolution.

The effective tenant of a request is the explicit ``X-Tenant-ID`` header
when present, otherwise the tenant embedded in the session token.
"""

from uuid import UUID

from stockroom.core.auth.schemas import TokenClaims
from stockroom.core.constants import TENANT_HEADER
from stockroom.core.errors import BadRequestError


def parse_tenant_header(raw: str | None) -> UUID | None:
    """Parse the raw tenant header value.

    Args:
        raw: Header value as sent by the client, or None

    Returns:
        The tenant UUID, or None when the header is absent or blank

    Raises:
        BadRequestError: If the header is present but not a UUID
    """
    if raw is None:
        return None
    value = raw.strip()
    if not value:
        return None
    try:
        return UUID(value)
    except ValueError as exc:
        raise BadRequestError(
            f"{TENANT_HEADER} header must be a valid UUID",
            error_code="invalid_tenant_header",
        ) from exc


def resolve_tenant_id(
    header_tenant_id: UUID | None,
    claims: TokenClaims,
    *,
    required: bool = True,
) -> UUID | None:
    """Pick the effective tenant for a request.

    Args:
        header_tenant_id: Parsed tenant header, if any
        claims: Verified session claims
        required: Whether the route is tenant scoped

    Returns:
        The effective tenant id, or None for routes that are not tenant scoped

    Raises:
        BadRequestError: If the route is tenant scoped and no tenant is known
    """
    tenant_id = header_tenant_id or claims.tenant_id
    if tenant_id is None and required:
        raise BadRequestError(
            f"Tenant context required: send the {TENANT_HEADER} header "
            "or use a tenant-scoped token",
            error_code="tenant_required",
        )
    return tenant_id
