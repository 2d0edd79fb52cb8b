"""Membership administration and invitation service."""

import math
import secrets
from collections.abc import Sequence
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends
from sqlalchemy.exc import IntegrityError

from stockroom.api.dependencies import DBSession
from stockroom.config import settings
from stockroom.core.auth.backend import (
    create_invitation_token,
    create_password_reset_token,
    decode_token,
    hash_password,
)
from stockroom.core.auth.schemas import TokenType
from stockroom.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, TEMP_PASSWORD_BYTES
from stockroom.core.database import utc_now
from stockroom.core.email.mailer import MailerDep
from stockroom.core.email.templates import frontend_link, invitation_email
from stockroom.core.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    TokenInvalidError,
)
from stockroom.core.utils.text import email_local_part, normalize_email
from stockroom.modules.rbac.services import RoleSvc
from stockroom.modules.tenants.models import Tenant
from stockroom.modules.tenants.repos import TenantRepo
from stockroom.modules.users.models import Membership, MembershipStatus, User
from stockroom.modules.users.repos import MembershipRepo, UserRepo
from stockroom.modules.users.schemas import MemberListResponse, MemberResponse


logger = structlog.get_logger()


class MemberService:
    """Service for tenant membership administration.

    Covers inviting people, adding members with a known password,
    suspending and re-activating memberships, and listing members.
    """

    def __init__(
        self,
        session: DBSession,
        users: UserRepo,
        memberships: MembershipRepo,
        tenants: TenantRepo,
        role_service: RoleSvc,
        mailer: MailerDep,
    ) -> None:
        self.session = session
        self.users = users
        self.memberships = memberships
        self.tenants = tenants
        self.role_service = role_service
        self.mailer = mailer

    async def invite_member(
        self,
        tenant_id: UUID,
        email: str,
        full_name: str | None = None,
        role_ids: Sequence[UUID] = (),
    ) -> MemberResponse:
        """Invite someone to the tenant by email.

        Unknown addresses get a user with a random temporary password and a
        password setup link alongside the invitation. The membership is
        committed before the mail is sent, so a delivery failure leaves a
        valid invitation that can simply be re-sent.

        Raises:
            NotFoundError: If the tenant or a role does not exist in scope
            DeliveryError: If the invitation mail cannot be sent
        """
        tenant = await self._get_tenant(tenant_id)
        email = normalize_email(email)

        user = await self.users.get_by_email(email)
        is_new_user = user is None
        if user is None:
            user = await self._create_user(
                email, full_name, secrets.token_urlsafe(TEMP_PASSWORD_BYTES)
            )

        membership = await self.memberships.get(user.id, tenant_id)
        if membership is None:
            membership = await self._create_membership(
                Membership(
                    user_id=user.id,
                    tenant_id=tenant_id,
                    status=MembershipStatus.INVITED.value,
                    invited_at=utc_now(),
                )
            )
        elif not membership.is_active:
            membership.status = MembershipStatus.INVITED.value
            membership.invited_at = utc_now()
            await self.session.flush()

        if role_ids:
            await self.role_service.assign_roles(tenant_id, membership, role_ids)

        response = await self._member_response(tenant_id, membership, user)
        await self.session.commit()

        await self._send_invitation(tenant, user, is_new_user)
        logger.info(
            "member_invited",
            tenant_id=str(tenant_id),
            user_id=str(user.id),
            new_user=is_new_user,
        )
        return response

    async def accept_invitation(self, token: str) -> tuple[Membership, Tenant]:
        """Activate the membership an invitation token points at.

        Accepting an already active membership is a no-op.

        Raises:
            BadRequestError: If the token is not a valid invitation or the
                membership no longer exists
            ForbiddenError: If the membership is suspended
        """
        try:
            claims = decode_token(token)
        except TokenInvalidError as exc:
            raise BadRequestError("Invalid or expired invitation", error_code="invalid_invitation") from exc

        if claims.typ != TokenType.TENANT_INVITE or claims.tenant_id is None:
            raise BadRequestError("Invalid or expired invitation", error_code="invalid_invitation")

        user = await self.users.get_by_id(claims.sub)
        if not user or user.email != claims.email:
            raise BadRequestError("Invalid or expired invitation", error_code="invalid_invitation")

        membership = await self.memberships.get(user.id, claims.tenant_id)
        tenant = await self.tenants.get_by_id(claims.tenant_id)
        if membership is None or tenant is None:
            raise BadRequestError(
                "This invitation is no longer valid",
                error_code="invitation_revoked",
            )
        if membership.status == MembershipStatus.SUSPENDED:
            raise ForbiddenError(
                "Your membership in this tenant is suspended",
                error_code="membership_suspended",
            )

        if membership.status == MembershipStatus.INVITED:
            membership.status = MembershipStatus.ACTIVE.value
            membership.accepted_at = utc_now()
            await self.session.flush()
            logger.info(
                "invitation_accepted",
                tenant_id=str(tenant.id),
                user_id=str(user.id),
            )
        return membership, tenant

    async def create_member_with_password(
        self,
        tenant_id: UUID,
        email: str,
        password: str,
        full_name: str | None = None,
        role_ids: Sequence[UUID] = (),
    ) -> MemberResponse:
        """Add an active member with a known password.

        An existing user keeps their current password; an existing
        membership is re-activated.
        """
        await self._get_tenant(tenant_id)
        email = normalize_email(email)

        user = await self.users.get_by_email(email)
        if user is None:
            user = await self._create_user(email, full_name, password)

        membership = await self.memberships.get(user.id, tenant_id)
        if membership is None:
            membership = await self._create_membership(
                Membership(
                    user_id=user.id,
                    tenant_id=tenant_id,
                    status=MembershipStatus.ACTIVE.value,
                    accepted_at=utc_now(),
                )
            )
        elif not membership.is_active:
            membership.status = MembershipStatus.ACTIVE.value
            membership.accepted_at = membership.accepted_at or utc_now()
            await self.session.flush()

        if role_ids:
            await self.role_service.assign_roles(tenant_id, membership, role_ids)

        logger.info("member_created", tenant_id=str(tenant_id), user_id=str(user.id))
        return await self._member_response(tenant_id, membership, user)

    async def suspend_membership(self, tenant_id: UUID, user_id: UUID) -> MemberResponse:
        """Suspend a member; the tenant owner cannot be suspended.

        Raises:
            NotFoundError: If the user is not a member
            ForbiddenError: If the membership is the owner's
        """
        membership, user = await self._get_member(tenant_id, user_id)
        if membership.is_owner:
            raise ForbiddenError(
                "The tenant owner cannot be suspended",
                error_code="owner_membership_protected",
            )

        membership.status = MembershipStatus.SUSPENDED.value
        await self.session.flush()
        logger.info("membership_suspended", tenant_id=str(tenant_id), user_id=str(user_id))
        return await self._member_response(tenant_id, membership, user)

    async def activate_membership(self, tenant_id: UUID, user_id: UUID) -> MemberResponse:
        """Re-activate a suspended or invited member."""
        membership, user = await self._get_member(tenant_id, user_id)

        membership.status = MembershipStatus.ACTIVE.value
        membership.accepted_at = membership.accepted_at or utc_now()
        await self.session.flush()
        logger.info("membership_activated", tenant_id=str(tenant_id), user_id=str(user_id))
        return await self._member_response(tenant_id, membership, user)

    async def list_members(
        self,
        tenant_id: UUID,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        search: str | None = None,
    ) -> MemberListResponse:
        """List a tenant's members, newest first.

        ``page`` is at least 1 and ``page_size`` is clamped to 1..100.
        """
        page = max(1, page)
        page_size = min(MAX_PAGE_SIZE, max(1, page_size))

        rows, total = await self.memberships.list_by_tenant(
            tenant_id,
            page=page,
            page_size=page_size,
            search=(search or "").strip() or None,
        )
        role_names = await self.memberships.role_names_by_membership(
            tenant_id,
            [membership.id for membership, _ in rows],
        )
        return MemberListResponse(
            items=[
                _to_member_response(membership, user, role_names[membership.id])
                for membership, user in rows
            ],
            total=total,
            page=page,
            page_size=page_size,
            pages=math.ceil(total / page_size) if total else 0,
        )

    # ============================================================
    # Helpers
    # ============================================================

    async def _get_tenant(self, tenant_id: UUID) -> Tenant:
        tenant = await self.tenants.get_by_id(tenant_id)
        if not tenant:
            raise NotFoundError("Tenant not found", resource="tenant", resource_id=str(tenant_id))
        return tenant

    async def _create_user(self, email: str, full_name: str | None, password: str) -> User:
        try:
            return await self.users.create(
                User(
                    email=email,
                    full_name=_display_name(full_name, email),
                    password_hash=hash_password(password),
                )
            )
        except IntegrityError as exc:
            raise ConflictError(
                "Email already registered",
                error_code="email_already_registered",
            ) from exc

    async def _create_membership(self, membership: Membership) -> Membership:
        try:
            return await self.memberships.create(membership)
        except IntegrityError as exc:
            raise ConflictError(
                "User is already a member of this tenant",
                error_code="membership_exists",
            ) from exc

    async def _get_member(self, tenant_id: UUID, user_id: UUID) -> tuple[Membership, User]:
        membership = await self.memberships.get(user_id, tenant_id)
        user = await self.users.get_by_id(user_id) if membership else None
        if membership is None or user is None:
            raise NotFoundError(
                "Membership not found for this tenant",
                resource="membership",
                resource_id=str(user_id),
            )
        return membership, user

    async def _member_response(
        self,
        tenant_id: UUID,
        membership: Membership,
        user: User,
    ) -> MemberResponse:
        names = await self.memberships.role_names_by_membership(tenant_id, [membership.id])
        return _to_member_response(membership, user, names[membership.id])

    async def _send_invitation(self, tenant: Tenant, user: User, is_new_user: bool) -> None:
        accept_url = frontend_link(
            "/accept-invitation",
            token=create_invitation_token(user.id, user.email, tenant.id),
        )
        setup_url = None
        if is_new_user:
            setup_url = frontend_link(
                "/reset-password",
                token=create_password_reset_token(user.id, user.email),
                tenantId=str(tenant.id),
            )

        subject, html = invitation_email(
            user.full_name,
            tenant.name,
            accept_url,
            setup_url=setup_url,
            setup_expires_minutes=settings.reset_token_expire_minutes,
        )
        await self.mailer.send_mail(user.email, subject, html)


def _display_name(full_name: str | None, email: str) -> str:
    return (full_name or "").strip() or email_local_part(email)


def _to_member_response(membership: Membership, user: User, roles: list[str]) -> MemberResponse:
    return MemberResponse(
        user_id=user.id,
        membership_id=membership.id,
        email=user.email,
        full_name=user.full_name,
        status=membership.status,
        is_owner=membership.is_owner,
        roles=roles,
        invited_at=membership.invited_at,
        accepted_at=membership.accepted_at,
    )


MemberSvc = Annotated[MemberService, Depends(MemberService)]
