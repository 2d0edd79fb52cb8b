"""FastAPI dependencies for authentication.

This module provides FastAPI dependency injection functions for:
- Extracting and verifying the bearer token
- Restricting bearer use to session token types
"""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from stockroom.core.auth.backend import decode_token
from stockroom.core.auth.schemas import TokenClaims
from stockroom.core.errors import UnauthorizedError


# HTTP Bearer token security scheme
bearer_scheme = HTTPBearer(auto_error=False)


async def get_session_claims(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> TokenClaims:
    """Extract and verify session claims from the Authorization header.

    Password-reset and invitation tokens are rejected here; they are only
    accepted by their own flows.

    Args:
        credentials: Bearer token credentials from the request

    Returns:
        Verified session claims

    Raises:
        UnauthorizedError: If the token is missing, invalid or not a session token
    """
    if not credentials:
        raise UnauthorizedError(
            "Missing authentication token",
            error_code="missing_token",
        )

    claims = decode_token(credentials.credentials)

    if not claims.is_session:
        raise UnauthorizedError(
            "Invalid token type",
            error_code="invalid_token_type",
        )

    return claims


SessionClaims = Annotated[TokenClaims, Depends(get_session_claims)]
