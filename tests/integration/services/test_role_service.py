"""Integration tests for RoleService against the database.

These tests verify:
- Role creation with permission validation
- Permission grants taking effect at the next login
- Role deletion cascading to grants and assignments
- Tenant scoping of role ids
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.core.auth.backend import decode_token
from stockroom.core.auth.service import AuthService
from stockroom.core.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from stockroom.core.permissions.gate import RouteRequirements, authorize
from stockroom.core.permissions.models import MembershipRole, RoleGrant
from stockroom.modules.rbac.services import RoleService
from stockroom.modules.tenants.models import Tenant
from stockroom.modules.tenants.services import TenantService
from stockroom.modules.users.models import Membership
from stockroom.modules.users.services import MemberService


pytestmark = pytest.mark.integration

PASSWORD = "password1"
WRITE_INVENTORY = RouteRequirements(permissions=frozenset({"inventory.write"}))


async def count(db: AsyncSession, statement) -> int:
    return (await db.execute(statement)).scalar_one()


class TestCreateRole:
    """Tests for role creation."""

    async def test_create_with_permissions(self, role_service: RoleService, tenant: Tenant):
        role = await role_service.create_role(
            tenant.id,
            "  Packer ",
            description="Packs orders",
            permission_names=["inventory.read", "inventory.product.read"],
        )

        assert role.name == "Packer"
        assert role.permissions == ["inventory.product.read", "inventory.read"]

    async def test_duplicate_name_conflicts(self, role_service: RoleService, tenant: Tenant):
        with pytest.raises(ConflictError):
            await role_service.create_role(tenant.id, "Admin")

    async def test_blank_name_rejected(self, role_service: RoleService, tenant: Tenant):
        with pytest.raises(ValidationError):
            await role_service.create_role(tenant.id, "   ")

        assert [role.name for role in await role_service.list_roles(tenant.id)] == [
            "Admin",
            "Owner",
        ]

    async def test_rename_to_blank_rejected(self, role_service: RoleService, tenant: Tenant):
        clerk = await role_service.create_role(tenant.id, "Clerk")

        with pytest.raises(ValidationError):
            await role_service.update_role(tenant.id, clerk.id, name="  ")

    async def test_all_unknown_permissions_reported(
        self,
        role_service: RoleService,
        tenant: Tenant,
    ):
        with pytest.raises(BadRequestError) as exc_info:
            await role_service.create_role(
                tenant.id,
                "Packer",
                permission_names=["inventory.read", "stock.teleport", "audit.erase"],
            )

        assert exc_info.value.details["unknown"] == ["audit.erase", "stock.teleport"]
        assert await role_service.roles.get_by_name(tenant.id, "Packer") is None

    async def test_same_name_allowed_in_other_tenant(
        self,
        role_service: RoleService,
        tenant_service: TenantService,
        make_user,
        tenant: Tenant,
    ):
        other_owner = await make_user(email="other@acme.com")
        other = await tenant_service.create_for_user(other_owner.id, "Beta Depot")

        first = await role_service.create_role(tenant.id, "Packer")
        second = await role_service.create_role(other.id, "Packer")

        assert first.id != second.id


class TestPermissionChangesAtNextLogin:
    """Grants are read when a token is issued, not afterwards."""

    async def test_module_wildcard_grant_unlocks_action(
        self,
        role_service: RoleService,
        member_service: MemberService,
        auth_service: AuthService,
        tenant: Tenant,
    ):
        packer = await role_service.create_role(
            tenant.id,
            "Packer",
            permission_names=["inventory.read"],
        )
        await member_service.create_member_with_password(
            tenant.id,
            "m@acme.com",
            PASSWORD,
            role_ids=[packer.id],
        )

        before = await auth_service.member_login("m@acme.com", PASSWORD)
        old_claims = decode_token(before.access_token)
        with pytest.raises(ForbiddenError):
            authorize(old_claims, WRITE_INVENTORY)

        await role_service.add_permissions_to_role(tenant.id, packer.id, ["inventory.*"])

        after = await auth_service.member_login("m@acme.com", PASSWORD)
        context = authorize(decode_token(after.access_token), WRITE_INVENTORY)
        assert context.tenant_id == tenant.id

        # The earlier token is a snapshot and stays as it was
        with pytest.raises(ForbiddenError):
            authorize(old_claims, WRITE_INVENTORY)

    async def test_replace_and_remove_permissions(
        self,
        role_service: RoleService,
        tenant: Tenant,
    ):
        role = await role_service.create_role(
            tenant.id,
            "Clerk",
            permission_names=["inventory.read", "suppliers.read"],
        )

        replaced = await role_service.set_permissions_for_role(
            tenant.id,
            role.id,
            ["warehouses.read", "warehouses.manage"],
        )
        removed = await role_service.remove_permissions_from_role(
            tenant.id,
            role.id,
            ["warehouses.manage"],
        )

        assert sorted(replaced) == ["warehouses.manage", "warehouses.read"]
        assert removed == ["warehouses.read"]

    async def test_replace_with_unknown_name_changes_nothing(
        self,
        role_service: RoleService,
        tenant: Tenant,
    ):
        role = await role_service.create_role(
            tenant.id,
            "Clerk",
            permission_names=["inventory.read"],
        )

        with pytest.raises(BadRequestError):
            await role_service.set_permissions_for_role(
                tenant.id,
                role.id,
                ["suppliers.read", "suppliers.fly"],
            )

        permissions = await role_service.list_permissions_for_role(tenant.id, role.id)
        assert [p.name for p in permissions] == ["inventory.read"]


class TestDeleteRole:
    """Tests for role deletion."""

    async def test_delete_removes_grants_and_assignments(
        self,
        db: AsyncSession,
        role_service: RoleService,
        member_service: MemberService,
        tenant: Tenant,
    ):
        packer = await role_service.create_role(
            tenant.id,
            "Packer",
            permission_names=["inventory.read", "inventory.stock.reserve"],
        )
        viewer = await role_service.create_role(
            tenant.id,
            "Viewer",
            permission_names=["inventory.read"],
        )
        members = [
            await member_service.create_member_with_password(
                tenant.id,
                f"m{i}@acme.com",
                PASSWORD,
                role_ids=[packer.id, viewer.id],
            )
            for i in range(3)
        ]
        memberships_before = await count(
            db,
            select(func.count()).select_from(Membership).where(Membership.tenant_id == tenant.id),
        )

        await role_service.delete_role(tenant.id, packer.id)

        assert await count(
            db,
            select(func.count()).select_from(RoleGrant).where(RoleGrant.role_id == packer.id),
        ) == 0
        assert await count(
            db,
            select(func.count())
            .select_from(MembershipRole)
            .where(MembershipRole.role_id == packer.id),
        ) == 0
        assert await count(
            db,
            select(func.count()).select_from(Membership).where(Membership.tenant_id == tenant.id),
        ) == memberships_before
        for member in members:
            roles = await role_service.list_user_roles_in_tenant(tenant.id, member.user_id)
            assert [role.name for role in roles] == ["Viewer"]

    async def test_owner_role_cannot_be_deleted(
        self,
        role_service: RoleService,
        tenant: Tenant,
    ):
        owner_role = await role_service.roles.get_by_name(tenant.id, "Owner")

        with pytest.raises(ForbiddenError):
            await role_service.delete_role(tenant.id, owner_role.id)

    async def test_owner_role_cannot_be_renamed(
        self,
        role_service: RoleService,
        tenant: Tenant,
    ):
        owner_role = await role_service.roles.get_by_name(tenant.id, "Owner")

        with pytest.raises(ForbiddenError):
            await role_service.update_role(tenant.id, owner_role.id, name="Boss")

    async def test_admin_role_can_be_deleted(
        self,
        role_service: RoleService,
        tenant: Tenant,
    ):
        admin_role = await role_service.roles.get_by_name(tenant.id, "Admin")

        await role_service.delete_role(tenant.id, admin_role.id)

        assert [role.name for role in await role_service.list_roles(tenant.id)] == ["Owner"]


class TestTenantScoping:
    """Role ids from another tenant are never usable."""

    async def test_foreign_role_rejected_before_any_change(
        self,
        role_service: RoleService,
        tenant_service: TenantService,
        member_service: MemberService,
        make_user,
        tenant: Tenant,
    ):
        other_owner = await make_user(email="other@acme.com")
        other = await tenant_service.create_for_user(other_owner.id, "Beta Depot")
        foreign_role = await role_service.roles.get_by_name(other.id, "Admin")
        own_role = await role_service.create_role(tenant.id, "Packer")
        member = await member_service.create_member_with_password(
            tenant.id,
            "m@acme.com",
            PASSWORD,
            role_ids=[own_role.id],
        )

        with pytest.raises(NotFoundError) as exc_info:
            await role_service.set_roles_for_user_in_tenant(
                tenant.id,
                member.user_id,
                [foreign_role.id],
            )

        assert exc_info.value.details["role_ids"] == [str(foreign_role.id)]
        roles = await role_service.list_user_roles_in_tenant(tenant.id, member.user_id)
        assert [role.id for role in roles] == [own_role.id]

    async def test_foreign_role_not_found_for_grants(
        self,
        role_service: RoleService,
        tenant_service: TenantService,
        make_user,
        tenant: Tenant,
    ):
        other_owner = await make_user(email="other@acme.com")
        other = await tenant_service.create_for_user(other_owner.id, "Beta Depot")
        foreign_role = await role_service.roles.get_by_name(other.id, "Admin")

        with pytest.raises(NotFoundError):
            await role_service.add_permissions_to_role(tenant.id, foreign_role.id, ["*"])

    async def test_non_member_has_no_roles_here(
        self,
        role_service: RoleService,
        make_user,
        tenant: Tenant,
    ):
        outsider = await make_user(email="outsider@acme.com")

        with pytest.raises(NotFoundError):
            await role_service.list_user_roles_in_tenant(tenant.id, outsider.id)

    async def test_add_and_remove_member_roles(
        self,
        role_service: RoleService,
        member_service: MemberService,
        tenant: Tenant,
    ):
        packer = await role_service.create_role(tenant.id, "Packer")
        viewer = await role_service.create_role(tenant.id, "Viewer")
        member = await member_service.create_member_with_password(
            tenant.id,
            "m@acme.com",
            PASSWORD,
        )

        added = await role_service.add_roles_for_user_in_tenant(
            tenant.id,
            member.user_id,
            [packer.id, viewer.id],
        )
        remaining = await role_service.remove_roles_for_user_in_tenant(
            tenant.id,
            member.user_id,
            [packer.id],
        )

        assert {role.name for role in added} == {"Packer", "Viewer"}
        assert [role.name for role in remaining] == ["Viewer"]


class TestConcurrentLinkInserts:
    """Unique-constraint races on grants and assignments surface as conflicts."""

    async def test_grant_race_conflicts(
        self,
        role_service: RoleService,
        monkeypatch: pytest.MonkeyPatch,
        tenant: Tenant,
    ):
        packer = await role_service.create_role(tenant.id, "Packer")
        monkeypatch.setattr(
            role_service.roles,
            "add_grants",
            AsyncMock(side_effect=IntegrityError("INSERT INTO role_grants", {}, Exception())),
        )

        with pytest.raises(ConflictError) as exc_info:
            await role_service.add_permissions_to_role(tenant.id, packer.id, ["inventory.read"])

        assert exc_info.value.error_code == "role_grant_exists"

    async def test_assignment_race_conflicts(
        self,
        role_service: RoleService,
        member_service: MemberService,
        monkeypatch: pytest.MonkeyPatch,
        tenant: Tenant,
    ):
        packer = await role_service.create_role(tenant.id, "Packer")
        member = await member_service.create_member_with_password(
            tenant.id,
            "m@acme.com",
            PASSWORD,
        )
        monkeypatch.setattr(
            role_service.roles,
            "assign",
            AsyncMock(side_effect=IntegrityError("INSERT INTO membership_roles", {}, Exception())),
        )

        with pytest.raises(ConflictError) as exc_info:
            await role_service.add_roles_for_user_in_tenant(tenant.id, member.user_id, [packer.id])

        assert exc_info.value.error_code == "membership_role_exists"
