"""Pydantic schemas for role and permission administration."""

from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from stockroom.core.constants import MAX_ROLE_DESCRIPTION_LENGTH, MAX_ROLE_NAME_LENGTH


RoleName = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=MAX_ROLE_NAME_LENGTH),
]


class RoleCreate(BaseModel):
    """Schema for creating a role, optionally with its initial permissions."""

    model_config = ConfigDict(populate_by_name=True)

    name: RoleName
    description: str | None = Field(default=None, max_length=MAX_ROLE_DESCRIPTION_LENGTH)
    permission_names: list[str] | None = Field(default=None, alias="permissionNames")


class RoleUpdate(BaseModel):
    """Schema for renaming or re-describing a role.

    ``permission_names`` replaces the role's permissions when supplied;
    an empty list clears them.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: RoleName | None = None
    description: str | None = Field(default=None, max_length=MAX_ROLE_DESCRIPTION_LENGTH)
    permission_names: list[str] | None = Field(default=None, alias="permissionNames")


class RolePermissions(BaseModel):
    """A list of permission names to set, add or remove."""

    model_config = ConfigDict(populate_by_name=True)

    permission_names: list[str] = Field(..., alias="permissionNames")


class RoleResponse(BaseModel):
    """Schema for role responses."""

    id: UUID
    name: str
    description: str | None
    permissions: list[str] = Field(default_factory=list)


class PermissionResponse(BaseModel):
    """Schema for permission catalogue entries."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    module: str
    action: str | None
