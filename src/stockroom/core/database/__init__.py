"""Database layer - session management, base models, and mixins."""

from stockroom.core.database.base import (
    Base,
    TenantMixin,
    TimestampMixin,
    UUIDMixin,
    utc_now,
)
from stockroom.core.database.session import (
    async_engine,
    async_session_factory,
    get_db,
)


__all__ = [
    "Base",
    "TenantMixin",
    "TimestampMixin",
    "UUIDMixin",
    "async_engine",
    "async_session_factory",
    "get_db",
    "utc_now",
]
