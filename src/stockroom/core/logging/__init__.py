"""Logging module with structured logging and request tracking."""

from stockroom.core.logging.middleware import RequestLoggingMiddleware


__all__ = [
    "RequestLoggingMiddleware",
]
