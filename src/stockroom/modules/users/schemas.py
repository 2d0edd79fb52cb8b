"""Pydantic schemas for membership administration."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from stockroom.core.constants import MAX_NAME_LENGTH, MAX_PASSWORD_LENGTH, MIN_PASSWORD_LENGTH


class MemberInvite(BaseModel):
    """Schema for inviting someone to the tenant."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    full_name: str | None = Field(default=None, max_length=MAX_NAME_LENGTH)
    role_ids: list[UUID] = Field(default_factory=list, alias="roleIds")

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: Any) -> Any:
        """Trim and lower-case before validating."""
        return v.strip().lower() if isinstance(v, str) else v


class MemberCreate(MemberInvite):
    """Schema for adding a member directly with a password."""

    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)


class RoleAssignment(BaseModel):
    """Role ids to set, add or remove for a member."""

    model_config = ConfigDict(populate_by_name=True)

    role_ids: list[UUID] = Field(..., alias="roleIds")


class InvitationAccept(BaseModel):
    """Schema for accepting an invitation."""

    token: str = Field(..., min_length=1)


class MemberResponse(BaseModel):
    """A tenant member: the user and their membership."""

    user_id: UUID
    membership_id: UUID
    email: str
    full_name: str
    status: str
    is_owner: bool
    roles: list[str] = Field(default_factory=list)
    invited_at: datetime | None = None
    accepted_at: datetime | None = None


class MemberListResponse(BaseModel):
    """Schema for paginated member list responses."""

    items: list[MemberResponse]
    total: int
    page: int
    page_size: int
    pages: int


class MemberRolesResponse(BaseModel):
    """Roles held by a member in the tenant."""

    user_id: UUID
    role_ids: list[UUID]
    roles: list[str]


class InvitationAcceptResponse(BaseModel):
    """Result of accepting an invitation."""

    message: str
    tenant_id: UUID
    tenant_name: str
    status: str
