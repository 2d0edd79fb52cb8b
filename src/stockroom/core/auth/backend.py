"""Authentication backend for JWT and password handling.

This module provides core authentication utilities including:
- Password hashing with bcrypt
- JWT signing and verification
- Builders for session, password-reset and invitation tokens
"""

import secrets
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import structlog
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError as PydanticValidationError

from stockroom.config import settings
from stockroom.core.auth.schemas import TokenClaims, TokenType
from stockroom.core.constants import MAX_PASSWORD_BYTES, TOKEN_JTI_LENGTH
from stockroom.core.errors import DataIntegrityError, TokenInvalidError, ValidationError


logger = structlog.get_logger()


# Password hashing context using bcrypt
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.password_hash_rounds,
)


# ============================================================
# Password Utilities
# ============================================================


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    The hash is self-describing: it embeds the salt and the work factor.

    Args:
        password: Plain text password

    Returns:
        Bcrypt hash of the password

    Raises:
        ValidationError: If the password is empty or longer than bcrypt reads
    """
    if not password:
        raise ValidationError(
            "Password must not be empty",
            errors=[{"field": "password", "message": "Password must not be empty"}],
        )
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(
            "Password is too long",
            errors=[
                {
                    "field": "password",
                    "message": f"Password must be at most {MAX_PASSWORD_BYTES} bytes",
                }
            ],
        )
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash in constant time.

    Args:
        plain_password: Plain text password to verify
        hashed_password: Stored bcrypt hash

    Returns:
        True if password matches, False otherwise

    Raises:
        DataIntegrityError: If the stored hash is malformed
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError) as exc:
        logger.error("password_hash_corrupted", error=str(exc))
        raise DataIntegrityError(
            "Stored password hash is malformed",
            error_code="password_hash_corrupted",
        ) from exc


# ============================================================
# JWT Token Utilities
# ============================================================


def sign_token(claims: dict[str, Any], ttl: timedelta) -> str:
    """Sign a claim set into a JWT.

    Args:
        claims: Claims to embed; must include "sub" and "typ"
        ttl: Lifetime from now

    Returns:
        Encoded JWT
    """
    now = datetime.now(UTC)
    to_encode: dict[str, Any] = {
        **claims,
        "iat": now,
        "exp": now + ttl,
        "jti": secrets.token_urlsafe(TOKEN_JTI_LENGTH),
    }
    return jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_token(token: str) -> TokenClaims:
    """Verify and decode a JWT.

    Args:
        token: The JWT to decode

    Returns:
        The verified claims

    Raises:
        TokenInvalidError: If the signature does not match, the payload is
            malformed, or the token has expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"require_exp": True, "require_sub": True},
        )
        return TokenClaims.model_validate(payload)
    except (JWTError, PydanticValidationError) as exc:
        raise TokenInvalidError() from exc


def session_ttl() -> timedelta:
    """Lifetime of session tokens."""
    return timedelta(minutes=settings.session_token_expire_minutes)


def create_session_token(
    user_id: UUID,
    email: str,
    token_type: TokenType,
    tenant_id: UUID | None = None,
    roles: Sequence[str] = (),
    perms: Sequence[str] = (),
) -> str:
    """Create a session token.

    Args:
        user_id: The user's UUID
        email: The user's email
        token_type: owner, member or owner-global
        tenant_id: Tenant scope; omitted for global tokens
        roles: Role names held in the tenant
        perms: Flattened permission names

    Returns:
        Encoded JWT
    """
    claims: dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "typ": token_type.value,
    }
    if tenant_id is not None:
        claims["tenantId"] = str(tenant_id)
        claims["roles"] = list(roles)
        claims["perms"] = list(perms)
    return sign_token(claims, session_ttl())


def create_password_reset_token(user_id: UUID, email: str) -> str:
    """Create a short-lived password reset token (no tenant)."""
    return sign_token(
        {"sub": str(user_id), "email": email, "typ": TokenType.PASSWORD_RESET.value},
        timedelta(minutes=settings.reset_token_expire_minutes),
    )


def create_invitation_token(user_id: UUID, email: str, tenant_id: UUID) -> str:
    """Create a tenant invitation token."""
    return sign_token(
        {
            "sub": str(user_id),
            "email": email,
            "tenantId": str(tenant_id),
            "typ": TokenType.TENANT_INVITE.value,
        },
        timedelta(days=settings.invite_token_expire_days),
    )
