"""Per-request tenant context resolution."""

from stockroom.core.tenancy.resolver import parse_tenant_header, resolve_tenant_id


__all__ = ["parse_tenant_header", "resolve_tenant_id"]
