"""User and membership database models."""

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from stockroom.core.constants import MAX_EMAIL_LENGTH, MAX_NAME_LENGTH, MAX_STATUS_LENGTH
from stockroom.core.database.base import Base, TimestampMixin, UUIDMixin


class User(Base, UUIDMixin, TimestampMixin):
    """User model representing a global identity.

    A user is not bound to a tenant; tenant access comes from memberships.
    Users are deactivated, never hard-deleted.

    Attributes:
        email: Normalized (trimmed, lower-cased) unique email address
        password_hash: Bcrypt hash of the password
        full_name: Display name
        is_active: Whether the user can log in at all
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    password_hash: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    full_name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"


class MembershipStatus(StrEnum):
    """Lifecycle states of a tenant membership."""

    INVITED = "invited"
    ACTIVE = "active"
    SUSPENDED = "suspended"


class Membership(Base, UUIDMixin, TimestampMixin):
    """A user's membership in a tenant.

    The unit of tenant-scoped access: every permission decision for a
    user inside a tenant starts from this row. At most one membership
    exists per (user, tenant) pair.
    """

    __tablename__ = "memberships"
    __table_args__ = (
        UniqueConstraint("user_id", "tenant_id", name="uq_membership_user_tenant"),
    )

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tenant_id: Mapped[UUID] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String(MAX_STATUS_LENGTH),
        default=MembershipStatus.ACTIVE.value,
        nullable=False,
    )
    is_owner: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    invited_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    accepted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    @property
    def is_active(self) -> bool:
        """Whether the membership currently grants access."""
        return self.status == MembershipStatus.ACTIVE

    def __repr__(self) -> str:
        return (
            f"<Membership(id={self.id}, user_id={self.user_id}, "
            f"tenant_id={self.tenant_id}, status={self.status})>"
        )
