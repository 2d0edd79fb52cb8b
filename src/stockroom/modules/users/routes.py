"""Member administration and invitation API routes."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from stockroom.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from stockroom.core.permissions.models import Role
from stockroom.core.permissions.requirements import access_for
from stockroom.modules.rbac.services import RoleSvc
from stockroom.modules.users.schemas import (
    InvitationAccept,
    InvitationAcceptResponse,
    MemberCreate,
    MemberInvite,
    MemberListResponse,
    MemberResponse,
    MemberRolesResponse,
    RoleAssignment,
)
from stockroom.modules.users.services import MemberSvc


users_router = APIRouter(prefix="/users", tags=["users"])
invitations_router = APIRouter(prefix="/invitations", tags=["invitations"])


def _roles_response(user_id: UUID, roles: list[Role]) -> MemberRolesResponse:
    return MemberRolesResponse(
        user_id=user_id,
        role_ids=[role.id for role in roles],
        roles=[role.name for role in roles],
    )


@users_router.get("", response_model=MemberListResponse, summary="List members")
async def list_members(
    service: MemberSvc,
    access: access_for("users.list"),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, alias="pageSize"),
    search: str | None = Query(None, max_length=255),
) -> MemberListResponse:
    """List the tenant's members with their roles."""
    return await service.list_members(access.require_tenant(), page, page_size, search)


@users_router.post(
    "",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a member with a password",
)
async def create_member(
    data: MemberCreate,
    service: MemberSvc,
    access: access_for("users.create"),
) -> MemberResponse:
    """Add an active member with a known password."""
    return await service.create_member_with_password(
        access.require_tenant(),
        data.email,
        data.password,
        full_name=data.full_name,
        role_ids=data.role_ids,
    )


@users_router.post(
    "/invite",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invite someone by email",
)
async def invite_member(
    data: MemberInvite,
    service: MemberSvc,
    access: access_for("users.invite"),
) -> MemberResponse:
    """Invite someone to the tenant."""
    return await service.invite_member(
        access.require_tenant(),
        data.email,
        full_name=data.full_name,
        role_ids=data.role_ids,
    )


@users_router.get(
    "/{user_id}/roles",
    response_model=MemberRolesResponse,
    summary="List a member's roles",
)
async def list_member_roles(
    user_id: UUID,
    service: RoleSvc,
    access: access_for("users.roles.list"),
) -> MemberRolesResponse:
    """List the roles a member holds in the tenant."""
    roles = await service.list_user_roles_in_tenant(access.require_tenant(), user_id)
    return _roles_response(user_id, roles)


@users_router.put(
    "/{user_id}/roles",
    response_model=MemberRolesResponse,
    summary="Replace a member's roles",
)
async def set_member_roles(
    user_id: UUID,
    data: RoleAssignment,
    service: RoleSvc,
    access: access_for("users.roles.set"),
) -> MemberRolesResponse:
    """Replace the roles a member holds in the tenant."""
    roles = await service.set_roles_for_user_in_tenant(
        access.require_tenant(),
        user_id,
        data.role_ids,
    )
    return _roles_response(user_id, roles)


@users_router.post(
    "/{user_id}/roles/add",
    response_model=MemberRolesResponse,
    summary="Assign roles to a member",
)
async def add_member_roles(
    user_id: UUID,
    data: RoleAssignment,
    service: RoleSvc,
    access: access_for("users.roles.add"),
) -> MemberRolesResponse:
    """Assign additional roles to a member."""
    roles = await service.add_roles_for_user_in_tenant(
        access.require_tenant(),
        user_id,
        data.role_ids,
    )
    return _roles_response(user_id, roles)


@users_router.delete(
    "/{user_id}/roles",
    response_model=MemberRolesResponse,
    summary="Remove roles from a member",
)
async def remove_member_roles(
    user_id: UUID,
    data: RoleAssignment,
    service: RoleSvc,
    access: access_for("users.roles.remove"),
) -> MemberRolesResponse:
    """Remove roles from a member."""
    roles = await service.remove_roles_for_user_in_tenant(
        access.require_tenant(),
        user_id,
        data.role_ids,
    )
    return _roles_response(user_id, roles)


@users_router.post(
    "/{user_id}/suspend",
    response_model=MemberResponse,
    summary="Suspend a member",
)
async def suspend_member(
    user_id: UUID,
    service: MemberSvc,
    access: access_for("users.suspend"),
) -> MemberResponse:
    """Suspend a member's access to the tenant."""
    return await service.suspend_membership(access.require_tenant(), user_id)


@users_router.post(
    "/{user_id}/activate",
    response_model=MemberResponse,
    summary="Activate a member",
)
async def activate_member(
    user_id: UUID,
    service: MemberSvc,
    access: access_for("users.activate"),
) -> MemberResponse:
    """Restore a member's access to the tenant."""
    return await service.activate_membership(access.require_tenant(), user_id)


@invitations_router.post(
    "/accept",
    response_model=InvitationAcceptResponse,
    summary="Accept an invitation",
    description="Activates the membership the invitation token points at.",
)
async def accept_invitation(data: InvitationAccept, service: MemberSvc) -> InvitationAcceptResponse:
    """Accept a tenant invitation."""
    membership, tenant = await service.accept_invitation(data.token)
    return InvitationAcceptResponse(
        message="Invitation accepted.",
        tenant_id=tenant.id,
        tenant_name=tenant.name,
        status=membership.status,
    )


router = APIRouter()
router.include_router(users_router)
router.include_router(invitations_router)
