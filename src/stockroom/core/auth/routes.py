"""Authentication API routes.

Provides endpoints for:
- Owner registration and login
- Member login
- Password reset
- Session check
"""

from fastapi import APIRouter, status

from stockroom.core.auth.schemas import (
    LoginRequest,
    MessageResponse,
    OwnerRegisterRequest,
    PasswordChangeRequest,
    PasswordResetConfirm,
    PasswordResetRequest,
    SessionSnapshot,
    SessionToken,
    TenantSelection,
)
from stockroom.core.auth.service import AuthSvc, LoginResult
from stockroom.core.permissions.requirements import access_for


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/owner/register",
    response_model=SessionToken,
    status_code=status.HTTP_201_CREATED,
    summary="Register a tenant owner",
    description="Creates a user and returns a global owner token for creating a first tenant.",
)
async def owner_register(data: OwnerRegisterRequest, service: AuthSvc) -> SessionToken:
    """Register a new owner."""
    return await service.owner_register(data.email, data.password, data.full_name)


@router.post(
    "/owner/login",
    response_model=SessionToken | TenantSelection,
    summary="Owner login",
    description=(
        "Returns an owner token for the given tenant, a global token for owners "
        "without tenants, or the list of owned tenants to choose from."
    ),
)
async def owner_login(data: LoginRequest, service: AuthSvc) -> LoginResult:
    """Login as a tenant owner."""
    return await service.owner_login(data.email, data.password, data.tenant_id)


@router.post(
    "/member/login",
    response_model=SessionToken | TenantSelection,
    summary="Member login",
    description=(
        "Returns a member token for the given tenant. Without a tenant, a single "
        "active membership is selected automatically."
    ),
)
async def member_login(data: LoginRequest, service: AuthSvc) -> LoginResult:
    """Login as a tenant member."""
    return await service.member_login(data.email, data.password, data.tenant_id)


@router.post(
    "/password/request",
    response_model=MessageResponse,
    summary="Request a password reset link",
)
async def request_password_reset(data: PasswordResetRequest, service: AuthSvc) -> MessageResponse:
    """Send a reset link if the account exists. The response never tells."""
    return await service.request_password_reset(data.email, data.tenant_id)


@router.post(
    "/password/reset",
    response_model=MessageResponse,
    summary="Reset password with a token",
)
async def reset_password(data: PasswordResetConfirm, service: AuthSvc) -> MessageResponse:
    """Set a new password using a reset token."""
    return await service.reset_password(data.token, data.new_password)


@router.post(
    "/password/change",
    response_model=MessageResponse,
    summary="Change own password (unavailable)",
)
async def change_password(
    data: PasswordChangeRequest,
    service: AuthSvc,
    access: access_for("auth.password.change"),
) -> MessageResponse:
    """Change the caller's password."""
    return await service.change_own_password(
        access.claims,
        data.current_password,
        data.new_password,
    )


@router.get(
    "/check",
    response_model=SessionSnapshot,
    summary="Validate the current session",
    description="Re-checks the user and membership and returns live roles and permissions.",
)
async def check_session(
    service: AuthSvc,
    access: access_for("auth.check"),
) -> SessionSnapshot:
    """Validate the session against current data."""
    return await service.check_session(access.claims)
