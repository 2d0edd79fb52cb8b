"""Authentication module for JWT and password handling."""

from stockroom.core.auth.backend import (
    create_invitation_token,
    create_password_reset_token,
    create_session_token,
    decode_token,
    hash_password,
    sign_token,
    verify_password,
)
from stockroom.core.auth.dependencies import SessionClaims, get_session_claims
from stockroom.core.auth.middleware import RequestIdMiddleware
from stockroom.core.auth.schemas import SESSION_TOKEN_TYPES, TokenClaims, TokenType


__all__ = [
    "SESSION_TOKEN_TYPES",
    # Middleware
    "RequestIdMiddleware",
    # Dependencies
    "SessionClaims",
    # Schemas
    "TokenClaims",
    "TokenType",
    # Token utilities
    "create_invitation_token",
    "create_password_reset_token",
    "create_session_token",
    "decode_token",
    "get_session_claims",
    # Password utilities
    "hash_password",
    "sign_token",
    "verify_password",
]
