"""Integration tests for role and permission endpoints."""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from stockroom.core.auth.backend import create_session_token
from stockroom.core.auth.schemas import TokenType
from stockroom.core.permissions.catalog import PERMISSION_CATALOG
from stockroom.modules.rbac.services import RoleService
from stockroom.modules.tenants.models import Tenant
from stockroom.modules.users.models import User
from stockroom.modules.users.services import MemberService
from tests.helpers import bearer, error_code


pytestmark = pytest.mark.integration

ROLES = "/api/v1/roles"


@pytest.fixture
async def packer_token(
    role_service: RoleService,
    member_service: MemberService,
    client: AsyncClient,
    tenant: Tenant,
) -> str:
    """A member token holding only inventory.read."""
    packer = await role_service.create_role(tenant.id, "Packer", permission_names=["inventory.read"])
    await member_service.create_member_with_password(
        tenant.id,
        "packer@acme.com",
        "password1",
        role_ids=[packer.id],
    )
    response = await client.post(
        "/api/v1/auth/member/login",
        json={"email": "packer@acme.com", "password": "password1"},
    )
    return response.json()["access_token"]


class TestListRoles:
    """Tests for GET /roles."""

    async def test_owner_sees_seeded_roles(self, client: AsyncClient, owner_token: str):
        response = await client.get(ROLES, headers=bearer(owner_token))

        assert response.status_code == 200
        assert [role["name"] for role in response.json()] == ["Admin", "Owner"]

    async def test_role_ids(self, client: AsyncClient, owner_token: str):
        response = await client.get(f"{ROLES}/ids", headers=bearer(owner_token))

        assert response.status_code == 200
        assert len(response.json()) == 2

    async def test_member_without_role_manage(self, client: AsyncClient, packer_token: str):
        response = await client.get(ROLES, headers=bearer(packer_token))

        assert response.status_code == 403
        assert error_code(response) == "permission_denied"

    async def test_header_for_other_tenant(self, client: AsyncClient, owner_token: str):
        response = await client.get(ROLES, headers=bearer(owner_token, tenant_id=uuid4()))

        assert response.status_code == 403
        assert error_code(response) == "tenant_mismatch"

    async def test_global_token_needs_tenant(self, client: AsyncClient, owner: User):
        token = create_session_token(owner.id, owner.email, TokenType.OWNER_GLOBAL)

        response = await client.get(ROLES, headers=bearer(token))

        assert response.status_code == 400
        assert error_code(response) == "tenant_required"


class TestManageRoles:
    """Tests for creating, updating and deleting roles."""

    async def test_create_role(self, client: AsyncClient, owner_token: str):
        response = await client.post(
            ROLES,
            headers=bearer(owner_token),
            json={"name": "Packer", "permissionNames": ["inventory.read", "inventory.*"]},
        )

        assert response.status_code == 201
        assert response.json()["permissions"] == ["inventory.*", "inventory.read"]

    async def test_unknown_permissions_listed(self, client: AsyncClient, owner_token: str):
        response = await client.post(
            ROLES,
            headers=bearer(owner_token),
            json={"name": "Packer", "permissionNames": ["inventory.read", "x.y", "a.b"]},
        )

        assert response.status_code == 400
        assert response.json()["unknown"] == ["a.b", "x.y"]

    async def test_blank_name_rejected(self, client: AsyncClient, owner_token: str):
        response = await client.post(ROLES, headers=bearer(owner_token), json={"name": "   "})

        assert response.status_code == 422
        assert error_code(response) == "validation_error"

    async def test_rename_to_blank_rejected(
        self,
        client: AsyncClient,
        owner_token: str,
        role_service: RoleService,
        tenant: Tenant,
    ):
        role = await role_service.create_role(tenant.id, "Clerk")

        response = await client.patch(
            f"{ROLES}/{role.id}",
            headers=bearer(owner_token),
            json={"name": "  "},
        )

        assert response.status_code == 422
        roles = {r.id: r.name for r in await role_service.list_roles(tenant.id)}
        assert roles[role.id] == "Clerk"

    async def test_update_role_and_permissions(
        self,
        client: AsyncClient,
        owner_token: str,
        role_service: RoleService,
        tenant: Tenant,
    ):
        role = await role_service.create_role(tenant.id, "Clerk", permission_names=["inventory.read"])

        response = await client.patch(
            f"{ROLES}/{role.id}",
            headers=bearer(owner_token),
            json={"name": "Senior Clerk", "permissionNames": ["suppliers.read"]},
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Senior Clerk"
        assert response.json()["permissions"] == ["suppliers.read"]

    async def test_delete_owner_role_forbidden(
        self,
        client: AsyncClient,
        owner_token: str,
        role_service: RoleService,
        tenant: Tenant,
    ):
        owner_role = await role_service.roles.get_by_name(tenant.id, "Owner")

        response = await client.delete(f"{ROLES}/{owner_role.id}", headers=bearer(owner_token))

        assert response.status_code == 403

    async def test_delete_role(
        self,
        client: AsyncClient,
        owner_token: str,
        role_service: RoleService,
        tenant: Tenant,
    ):
        role = await role_service.create_role(tenant.id, "Temp")

        response = await client.delete(f"{ROLES}/{role.id}", headers=bearer(owner_token))

        assert response.status_code == 204
        assert await role_service.roles.get(tenant.id, role.id) is None

    async def test_unknown_role_not_found(self, client: AsyncClient, owner_token: str):
        response = await client.delete(f"{ROLES}/{uuid4()}", headers=bearer(owner_token))

        assert response.status_code == 404


class TestRolePermissions:
    """Tests for the /roles/{id}/permissions endpoints."""

    async def test_replace_add_remove(
        self,
        client: AsyncClient,
        owner_token: str,
        role_service: RoleService,
        tenant: Tenant,
    ):
        role = await role_service.create_role(tenant.id, "Clerk")
        url = f"{ROLES}/{role.id}/permissions"
        headers = bearer(owner_token)

        replaced = await client.put(url, headers=headers, json={"permissionNames": ["inventory.read"]})
        added = await client.post(
            f"{url}/add",
            headers=headers,
            json={"permissionNames": ["suppliers.read"]},
        )
        removed = await client.request(
            "DELETE",
            url,
            headers=headers,
            json={"permissionNames": ["inventory.read"]},
        )
        listed = await client.get(url, headers=headers)

        assert replaced.json()["permissionNames"] == ["inventory.read"]
        assert added.json()["permissionNames"] == ["inventory.read", "suppliers.read"]
        assert removed.json()["permissionNames"] == ["suppliers.read"]
        assert [p["name"] for p in listed.json()] == ["suppliers.read"]


class TestPermissionCatalogue:
    """Tests for GET /permissions."""

    async def test_lists_catalogue(self, client: AsyncClient, owner_token: str):
        response = await client.get("/api/v1/permissions", headers=bearer(owner_token))

        assert response.status_code == 200
        data = response.json()
        assert len(data) == len(PERMISSION_CATALOG)
        read = next(p for p in data if p["name"] == "inventory.read")
        assert read["module"] == "inventory"
        assert read["action"] == "read"

    async def test_user_manage_alone_reads_catalogue(
        self,
        client: AsyncClient,
        make_user,
        tenant: Tenant,
    ):
        recruiter = await make_user(email="recruiter@acme.com")
        token = create_session_token(
            recruiter.id,
            recruiter.email,
            TokenType.MEMBER,
            tenant_id=tenant.id,
            roles=["Recruiter"],
            perms=["user.manage"],
        )

        response = await client.get("/api/v1/permissions", headers=bearer(token))

        assert response.status_code == 200

    async def test_unrelated_permission_cannot_read_catalogue(
        self,
        client: AsyncClient,
        packer_token: str,
    ):
        response = await client.get("/api/v1/permissions", headers=bearer(packer_token))

        assert response.status_code == 403
        assert error_code(response) == "permission_denied"
