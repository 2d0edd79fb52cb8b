"""User and membership repositories for database operations."""

from collections.abc import Sequence
from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import delete, func, or_, select

from stockroom.api.dependencies import DBSession
from stockroom.core.permissions.models import MembershipRole, Permission, Role, RoleGrant
from stockroom.modules.tenants.models import Tenant
from stockroom.modules.users.models import Membership, MembershipStatus, User


class UserRepository:
    """Repository for User database operations.

    Users are global; emails are stored normalized, so lookups expect
    an already normalized address.
    """

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, user: User) -> User:
        """Create a new user.

        Args:
            user: User instance to create

        Returns:
            The created user with ID populated
        """
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def get_by_id(self, user_id: UUID) -> User | None:
        """Get a user by ID."""
        return await self.session.get(User, user_id)

    async def get_by_email(self, email: str) -> User | None:
        """Get a user by normalized email address.

        Args:
            email: The normalized email

        Returns:
            User if found, None otherwise
        """
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def update_password_hash(self, user: User, password_hash: str) -> User:
        """Store a new password hash for a user."""
        user.password_hash = password_hash
        await self.session.flush()
        return user


class MembershipRepository:
    """Repository for tenant memberships and their effective roles.

    Every query that reads memberships of a tenant takes the tenant id as
    a required argument.
    """

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, membership: Membership) -> Membership:
        """Create a new membership."""
        self.session.add(membership)
        await self.session.flush()
        await self.session.refresh(membership)
        return membership

    async def get(self, user_id: UUID, tenant_id: UUID) -> Membership | None:
        """Get the membership of a user in a tenant.

        Args:
            user_id: The user's UUID
            tenant_id: The tenant's UUID

        Returns:
            Membership if found, None otherwise
        """
        result = await self.session.execute(
            select(Membership).where(
                Membership.user_id == user_id,
                Membership.tenant_id == tenant_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_owner_membership(self, tenant_id: UUID) -> Membership | None:
        """Get the owner membership of a tenant."""
        result = await self.session.execute(
            select(Membership)
            .where(Membership.tenant_id == tenant_id, Membership.is_owner.is_(True))
            .order_by(Membership.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_active_for_user(
        self,
        user_id: UUID,
        owned_only: bool = False,
    ) -> list[tuple[Membership, Tenant]]:
        """List a user's active memberships in active tenants.

        Args:
            user_id: The user's UUID
            owned_only: Only return memberships flagged as owner

        Returns:
            (membership, tenant) pairs ordered by tenant name
        """
        stmt = (
            select(Membership, Tenant)
            .join(Tenant, Tenant.id == Membership.tenant_id)
            .where(
                Membership.user_id == user_id,
                Membership.status == MembershipStatus.ACTIVE.value,
                Tenant.is_active.is_(True),
            )
            .order_by(Tenant.name, Tenant.id)
        )
        if owned_only:
            stmt = stmt.where(Membership.is_owner.is_(True))
        result = await self.session.execute(stmt)
        return [(membership, tenant) for membership, tenant in result.all()]

    async def role_names(self, membership: Membership) -> list[str]:
        """Get the names of the roles assigned to a membership, sorted."""
        result = await self.session.execute(
            select(Role.name)
            .join(MembershipRole, MembershipRole.role_id == Role.id)
            .where(
                MembershipRole.membership_id == membership.id,
                Role.tenant_id == membership.tenant_id,
            )
            .order_by(Role.name)
        )
        return list(result.scalars().all())

    async def permission_names(self, membership: Membership) -> list[str]:
        """Get the flattened permission names of a membership's roles, sorted."""
        result = await self.session.execute(
            select(Permission.name)
            .distinct()
            .join(RoleGrant, RoleGrant.permission_id == Permission.id)
            .join(Role, Role.id == RoleGrant.role_id)
            .join(MembershipRole, MembershipRole.role_id == Role.id)
            .where(
                MembershipRole.membership_id == membership.id,
                Role.tenant_id == membership.tenant_id,
            )
            .order_by(Permission.name)
        )
        return list(result.scalars().all())

    async def list_by_tenant(
        self,
        tenant_id: UUID,
        page: int = 1,
        page_size: int = 20,
        search: str | None = None,
    ) -> tuple[list[tuple[Membership, User]], int]:
        """List a tenant's members with pagination.

        Args:
            tenant_id: The tenant's UUID
            page: Page number (1-indexed)
            page_size: Number of items per page
            search: Case-insensitive substring of email or full name

        Returns:
            Tuple of ((membership, user) pairs, total count)
        """
        filters = [Membership.tenant_id == tenant_id]
        if search:
            pattern = f"%{search.strip().lower()}%"
            filters.append(
                or_(
                    func.lower(User.email).like(pattern),
                    func.lower(User.full_name).like(pattern),
                )
            )

        count_stmt = (
            select(func.count())
            .select_from(Membership)
            .join(User, User.id == Membership.user_id)
            .where(*filters)
        )
        total = (await self.session.execute(count_stmt)).scalar_one()

        offset = (page - 1) * page_size
        stmt = (
            select(Membership, User)
            .join(User, User.id == Membership.user_id)
            .where(*filters)
            .order_by(Membership.created_at.desc(), Membership.id)
            .offset(offset)
            .limit(page_size)
        )
        result = await self.session.execute(stmt)
        return [(membership, user) for membership, user in result.all()], total

    async def role_names_by_membership(
        self,
        tenant_id: UUID,
        membership_ids: Sequence[UUID],
    ) -> dict[UUID, list[str]]:
        """Get role names for several memberships of one tenant."""
        names: dict[UUID, list[str]] = {membership_id: [] for membership_id in membership_ids}
        if not membership_ids:
            return names
        result = await self.session.execute(
            select(MembershipRole.membership_id, Role.name)
            .join(Role, Role.id == MembershipRole.role_id)
            .where(
                MembershipRole.membership_id.in_(membership_ids),
                Role.tenant_id == tenant_id,
            )
            .order_by(Role.name)
        )
        for membership_id, role_name in result.all():
            names[membership_id].append(role_name)
        return names

    async def delete_by_tenant(self, tenant_id: UUID) -> None:
        """Delete every membership of a tenant and its role assignments."""
        membership_ids = select(Membership.id).where(Membership.tenant_id == tenant_id)
        await self.session.execute(
            delete(MembershipRole)
            .where(MembershipRole.membership_id.in_(membership_ids))
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(
            delete(Membership)
            .where(Membership.tenant_id == tenant_id)
            .execution_options(synchronize_session=False)
        )


UserRepo = Annotated[UserRepository, Depends(UserRepository)]
MembershipRepo = Annotated[MembershipRepository, Depends(MembershipRepository)]
