"""Integration tests for tenant endpoints."""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from stockroom.core.auth.backend import decode_token
from stockroom.modules.tenants.models import Tenant
from stockroom.modules.users.services import MemberService
from tests.helpers import bearer, error_code


pytestmark = pytest.mark.integration

TENANTS = "/api/v1/tenants"


class TestCreateTenant:
    """Tests for POST /tenants."""

    async def test_register_create_and_log_in(self, client: AsyncClient, permissions):  # noqa: ARG002
        registered = await client.post(
            "/api/v1/auth/owner/register",
            json={"email": "founder@acme.com", "password": "password1", "full_name": "Fay Founder"},
        )
        global_token = registered.json()["access_token"]

        created = await client.post(TENANTS, headers=bearer(global_token), json={})

        assert created.status_code == 201
        tenant = created.json()
        assert tenant["name"] == "Fay's Workspace"
        assert tenant["slug"] == "fays-workspace"

        login = await client.post(
            "/api/v1/auth/owner/login",
            json={"email": "founder@acme.com", "password": "password1", "tenantId": tenant["id"]},
        )
        claims = decode_token(login.json()["access_token"])
        assert claims.typ == "owner"
        assert claims.roles == ["Owner"]

    async def test_requires_authentication(self, client: AsyncClient):
        response = await client.post(TENANTS, json={"name": "Acme"})

        assert response.status_code == 401

    async def test_unseeded_catalogue(self, client: AsyncClient):
        registered = await client.post(
            "/api/v1/auth/owner/register",
            json={"email": "founder@acme.com", "password": "password1"},
        )

        response = await client.post(
            TENANTS,
            headers=bearer(registered.json()["access_token"]),
            json={"name": "Acme"},
        )

        assert response.status_code == 400
        assert error_code(response) == "permissions_not_seeded"


class TestUpdateTenant:
    """Tests for PATCH /tenants/{id}."""

    async def test_owner_updates(self, client: AsyncClient, owner_token: str, tenant: Tenant):
        response = await client.patch(
            f"{TENANTS}/{tenant.id}",
            headers=bearer(owner_token),
            json={"currency": "gbp", "timezone": "Europe/London"},
        )

        assert response.status_code == 200
        assert response.json()["currency"] == "GBP"
        assert response.json()["timezone"] == "Europe/London"

    async def test_path_must_match_token_tenant(self, client: AsyncClient, owner_token: str):
        response = await client.patch(
            f"{TENANTS}/{uuid4()}",
            headers=bearer(owner_token),
            json={"name": "Elsewhere"},
        )

        assert response.status_code == 403
        assert error_code(response) == "tenant_mismatch"

    async def test_member_lacks_owner_role(
        self,
        client: AsyncClient,
        member_service: MemberService,
        tenant: Tenant,
    ):
        await member_service.create_member_with_password(tenant.id, "m@acme.com", "password1")
        login = await client.post(
            "/api/v1/auth/member/login",
            json={"email": "m@acme.com", "password": "password1"},
        )

        response = await client.patch(
            f"{TENANTS}/{tenant.id}",
            headers=bearer(login.json()["access_token"]),
            json={"name": "Mine"},
        )

        assert response.status_code == 403
        assert error_code(response) == "insufficient_role"


class TestDeleteTenant:
    """Tests for DELETE /tenants/{id}."""

    async def test_owner_deletes(self, client: AsyncClient, owner_token: str, tenant: Tenant):
        response = await client.delete(f"{TENANTS}/{tenant.id}", headers=bearer(owner_token))

        assert response.status_code == 204
        check = await client.get("/api/v1/auth/check", headers=bearer(owner_token))
        assert check.status_code == 401
