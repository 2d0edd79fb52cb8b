"""Error handling module with RFC 7807 Problem Details."""

from stockroom.core.errors.exceptions import (
    AppException,
    BadRequestError,
    ConflictError,
    DataIntegrityError,
    DeliveryError,
    ForbiddenError,
    NotFoundError,
    TokenInvalidError,
    UnauthorizedError,
    ValidationError,
)
from stockroom.core.errors.handlers import (
    FieldError,
    ProblemDetail,
    register_exception_handlers,
)


__all__ = [
    # Exceptions
    "AppException",
    "BadRequestError",
    "ConflictError",
    "DataIntegrityError",
    "DeliveryError",
    # Handlers
    "FieldError",
    "ForbiddenError",
    "NotFoundError",
    "ProblemDetail",
    "TokenInvalidError",
    "UnauthorizedError",
    "ValidationError",
    "register_exception_handlers",
]
