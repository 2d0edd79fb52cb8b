"""Authentication schemas for token handling."""

from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from stockroom.core.constants import MAX_NAME_LENGTH, MAX_PASSWORD_LENGTH, MIN_PASSWORD_LENGTH


class TokenType(StrEnum):
    """Values of the ``typ`` claim."""

    OWNER = "owner"
    MEMBER = "member"
    OWNER_GLOBAL = "owner-global"
    PASSWORD_RESET = "password-reset"
    TENANT_INVITE = "tenant-invite"


# Token types accepted as bearer tokens on protected routes
SESSION_TOKEN_TYPES = frozenset(
    {TokenType.OWNER, TokenType.MEMBER, TokenType.OWNER_GLOBAL}
)


class TokenClaims(BaseModel):
    """Claims carried by a signed token.

    Session claims are a point-in-time snapshot of the caller's roles and
    permissions; they do not follow later changes to the store.

    Attributes:
        sub: The user's UUID
        email: The user's normalized email
        tenant_id: Tenant the token is scoped to (serialized as "tenantId")
        roles: Role names held in that tenant
        perms: Flattened permission names of those roles
        typ: Token type
        exp: Expiration time (set when decoded)
        iat: Issue time (set when decoded)
        jti: Unique token ID (set when decoded)
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    sub: UUID
    email: str
    tenant_id: UUID | None = Field(default=None, alias="tenantId")
    roles: list[str] = Field(default_factory=list)
    perms: list[str] = Field(default_factory=list)
    typ: TokenType
    exp: datetime | None = None
    iat: datetime | None = None
    jti: str | None = None

    @property
    def user_id(self) -> UUID:
        """Alias for ``sub``."""
        return self.sub

    @property
    def is_session(self) -> bool:
        """Whether this token may be used as a bearer token."""
        return self.typ in SESSION_TOKEN_TYPES


class TenantSummary(BaseModel):
    """Public tenant fields shown in login responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str


class UserSummary(BaseModel):
    """Public user fields shown in login responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    full_name: str


class SessionToken(BaseModel):
    """A signed session token and who/where it is for.

    Attributes:
        access_token: Signed bearer token
        token_type: Always "bearer"
        expires_in: Token lifetime in seconds
        typ: Token type claim
        user: The authenticated user
        tenant: Tenant the token is scoped to, if any
    """

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    typ: TokenType
    user: UserSummary
    tenant: TenantSummary | None = None


class TenantSelection(BaseModel):
    """Returned instead of a token when the caller must pick a tenant."""

    need_tenant_selection: bool = True
    user: UserSummary
    tenants: list[TenantSummary]


class SessionSnapshot(BaseModel):
    """Live view of a session, recomputed from the store."""

    user: UserSummary
    typ: TokenType
    tenant: TenantSummary | None = None
    is_owner: bool = False
    roles: list[str] = Field(default_factory=list)
    perms: list[str] = Field(default_factory=list)


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


# ============================================================
# Request Schemas
# ============================================================


class _EmailRequest(BaseModel):
    """Base for requests keyed by an email address."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def normalize(cls, v: Any) -> Any:
        """Trim and lower-case before validating."""
        return v.strip().lower() if isinstance(v, str) else v


class OwnerRegisterRequest(_EmailRequest):
    """Owner self-registration."""

    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)
    full_name: str | None = Field(default=None, max_length=MAX_NAME_LENGTH)


class LoginRequest(_EmailRequest):
    """Owner or member login, optionally for a specific tenant."""

    password: str = Field(..., min_length=1, max_length=MAX_PASSWORD_LENGTH)
    tenant_id: UUID | None = Field(default=None, alias="tenantId")


class PasswordResetRequest(_EmailRequest):
    """Request a password reset link."""

    tenant_id: UUID | None = Field(default=None, alias="tenantId")


class PasswordResetConfirm(BaseModel):
    """Set a new password with a reset token."""

    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)


class PasswordChangeRequest(BaseModel):
    """Change the caller's own password."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)
