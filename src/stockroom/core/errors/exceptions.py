"""Domain exceptions for the application.

These exceptions represent business-logic errors and are automatically
converted to RFC 7807 Problem Details responses by the exception handlers.
"""

from typing import Any


class AppException(Exception):
    """Base exception for all application errors.

    All domain exceptions should inherit from this class.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for clients
        status_code: HTTP status code for the response
        details: Additional error details
    """

    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Raised when a requested resource is not found in the caller's scope.

    Example:
        raise NotFoundError("Role not found", resource="role", resource_id=str(role_id))
    """

    message = "Resource not found"
    error_code = "not_found"
    status_code = 404

    def __init__(
        self,
        message: str | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if resource:
            details["resource"] = resource
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message=message, details=details, **kwargs)


class ConflictError(AppException):
    """Raised when a uniqueness rule would be violated.

    Example:
        raise ConflictError("Email already registered", error_code="email_already_registered")
    """

    message = "Resource conflict"
    error_code = "conflict"
    status_code = 409


class ValidationError(AppException):
    """Raised when input data fails validation before reaching the store.

    Example:
        raise ValidationError(
            "Invalid input data",
            errors=[{"field": "password", "message": "Password must not be empty"}]
        )
    """

    message = "Validation error"
    error_code = "validation_error"
    status_code = 422

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if errors:
            details["errors"] = errors
        super().__init__(message=message, details=details, **kwargs)


class UnauthorizedError(AppException):
    """Raised when authentication is required but not provided or invalid.

    Example:
        raise UnauthorizedError("Invalid credentials")
    """

    message = "Authentication required"
    error_code = "unauthorized"
    status_code = 401


class TokenInvalidError(UnauthorizedError):
    """Raised when a bearer token cannot be verified.

    Covers bad signatures, malformed payloads and expired tokens alike.
    """

    message = "Invalid or expired token"
    error_code = "invalid_token"


class ForbiddenError(AppException):
    """Raised when an authenticated caller is not allowed to act.

    Example:
        raise ForbiddenError("Missing permission", error_code="permission_denied")
    """

    message = "Access forbidden"
    error_code = "forbidden"
    status_code = 403


class BadRequestError(AppException):
    """Raised for general client errors.

    Example:
        raise BadRequestError("Invalid or expired token")
    """

    message = "Bad request"
    error_code = "bad_request"
    status_code = 400


class DataIntegrityError(AppException):
    """Raised when stored data is corrupt (e.g. an unreadable password hash).

    Fatal and never retried. The client only sees a generic server error.
    """

    message = "Stored data failed an integrity check"
    error_code = "integrity_error"
    status_code = 500


class DeliveryError(AppException):
    """Raised when the mail collaborator fails to deliver a message."""

    message = "Failed to send email"
    error_code = "delivery_failed"
    status_code = 500
