"""Stockroom: identity, membership and access control for a multi-tenant backend."""

__version__ = "0.1.0"
