"""Pydantic schemas for tenant operations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from stockroom.core.constants import (
    MAX_CURRENCY_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    MAX_NAME_LENGTH,
    MAX_TIMEZONE_LENGTH,
)


class TenantCreate(BaseModel):
    """Schema for creating a tenant; the name defaults from the owner's name."""

    name: str | None = Field(default=None, min_length=1, max_length=MAX_NAME_LENGTH)
    description: str | None = Field(default=None, max_length=MAX_DESCRIPTION_LENGTH)


class TenantUpdate(BaseModel):
    """Schema for updating tenant settings."""

    name: str | None = Field(default=None, min_length=1, max_length=MAX_NAME_LENGTH)
    description: str | None = Field(default=None, max_length=MAX_DESCRIPTION_LENGTH)
    currency: str | None = Field(
        default=None,
        min_length=MAX_CURRENCY_LENGTH,
        max_length=MAX_CURRENCY_LENGTH,
    )
    timezone: str | None = Field(default=None, min_length=1, max_length=MAX_TIMEZONE_LENGTH)


class TenantResponse(BaseModel):
    """Schema for tenant responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    description: str | None
    currency: str
    timezone: str
    is_active: bool
    created_at: datetime
