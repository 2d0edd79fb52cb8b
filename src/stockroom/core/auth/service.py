"""Authentication service: registration, login and password flows."""

from functools import lru_cache
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends
from sqlalchemy.exc import IntegrityError

from stockroom.api.dependencies import DBSession
from stockroom.config import settings
from stockroom.core.auth.backend import (
    create_password_reset_token,
    create_session_token,
    decode_token,
    hash_password,
    session_ttl,
    verify_password,
)
from stockroom.core.auth.schemas import (
    MessageResponse,
    SessionSnapshot,
    SessionToken,
    TenantSelection,
    TenantSummary,
    TokenClaims,
    TokenType,
    UserSummary,
)
from stockroom.core.email.mailer import MailerDep
from stockroom.core.email.templates import frontend_link, password_reset_email
from stockroom.core.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    TokenInvalidError,
    UnauthorizedError,
)
from stockroom.core.utils.text import email_local_part, normalize_email
from stockroom.modules.tenants.models import Tenant
from stockroom.modules.tenants.repos import TenantRepository
from stockroom.modules.users.models import Membership, User
from stockroom.modules.users.repos import MembershipRepository, UserRepository


logger = structlog.get_logger()

PASSWORD_RESET_MESSAGE = "If an account exists for that email, a reset link has been sent."

LoginResult = SessionToken | TenantSelection


@lru_cache
def _dummy_hash() -> str:
    """Hash checked against when the email is unknown, to keep timing uniform."""
    return hash_password("stockroom-timing-equalizer")


class AuthService:
    """Service for authentication operations.

    Issues session tokens for owners and members. Tokens carry a snapshot
    of the caller's roles and permissions in one tenant; ``check_session``
    is the only operation that recomputes them from the store.
    """

    def __init__(self, db: DBSession, mailer: MailerDep) -> None:
        self.db = db
        self.mailer = mailer
        self.user_repo = UserRepository(db)
        self.membership_repo = MembershipRepository(db)
        self.tenant_repo = TenantRepository(db)

    # ============================================================
    # Registration & login
    # ============================================================

    async def owner_register(
        self,
        email: str,
        password: str,
        full_name: str | None = None,
    ) -> SessionToken:
        """Register a prospective tenant owner.

        The owner has no tenant yet, so the token is ``owner-global``.

        Raises:
            ConflictError: If the normalized email is already registered
        """
        email = normalize_email(email)
        if await self.user_repo.get_by_email(email):
            raise ConflictError("Email already registered", error_code="email_already_registered")

        try:
            user = await self.user_repo.create(
                User(
                    email=email,
                    password_hash=hash_password(password),
                    full_name=(full_name or "").strip() or email_local_part(email),
                )
            )
        except IntegrityError as exc:
            raise ConflictError(
                "Email already registered",
                error_code="email_already_registered",
            ) from exc

        logger.info("owner_registered", user_id=str(user.id))
        return self._global_session(user)

    async def owner_login(
        self,
        email: str,
        password: str,
        tenant_id: UUID | None = None,
    ) -> LoginResult:
        """Authenticate a tenant owner.

        With a tenant id the owner gets an ``owner`` token for that tenant.
        Without one, an owner of no tenant gets an ``owner-global`` token and
        an owner of one or more tenants must pick one.

        Raises:
            UnauthorizedError: On bad credentials, if the user is not an
                owner of the requested tenant, or if that tenant is inactive
        """
        user = await self._authenticate(email, password)

        if tenant_id is not None:
            membership = await self.membership_repo.get(user.id, tenant_id)
            tenant = await self.tenant_repo.get_by_id(tenant_id)
            if membership is None or tenant is None or not membership.is_owner:
                raise UnauthorizedError(
                    "You are not an owner of this tenant.",
                    error_code="not_tenant_owner",
                )
            if not tenant.is_active:
                raise UnauthorizedError(
                    "This tenant is not active.",
                    error_code="tenant_inactive",
                )
            return await self.issue_for_tenant(user, membership, tenant, TokenType.OWNER)

        owned = await self.membership_repo.list_active_for_user(user.id, owned_only=True)
        if not owned:
            return self._global_session(user)
        return _tenant_selection(user, [tenant for _, tenant in owned])

    async def member_login(
        self,
        email: str,
        password: str,
        tenant_id: UUID | None = None,
    ) -> LoginResult:
        """Authenticate a tenant member.

        Without a tenant id, a single active membership is selected
        automatically; several require the caller to choose.

        Raises:
            UnauthorizedError: On bad credentials, no membership, an inactive
                membership or tenant, or no active memberships at all
        """
        user = await self._authenticate(email, password)

        if tenant_id is not None:
            return await self._member_session(user, tenant_id)

        candidates = await self.resolve_candidate_tenants(user)
        if not candidates:
            raise UnauthorizedError(
                "No active memberships found",
                error_code="no_active_memberships",
            )
        if len(candidates) == 1:
            return await self._member_session(user, candidates[0].id)
        return _tenant_selection(user, candidates)

    async def resolve_candidate_tenants(self, user: User) -> list[Tenant]:
        """List tenants the user holds an active membership in, by name."""
        rows = await self.membership_repo.list_active_for_user(user.id)
        return [tenant for _, tenant in rows]

    async def issue_for_tenant(
        self,
        user: User,
        membership: Membership,
        tenant: Tenant,
        token_type: TokenType,
    ) -> SessionToken:
        """Issue a tenant-scoped token carrying the membership's roles and permissions."""
        roles = await self.membership_repo.role_names(membership)
        perms = await self.membership_repo.permission_names(membership)
        token = create_session_token(
            user.id,
            user.email,
            token_type,
            tenant_id=tenant.id,
            roles=roles,
            perms=perms,
        )
        logger.info(
            "session_issued",
            user_id=str(user.id),
            tenant_id=str(tenant.id),
            typ=token_type.value,
        )
        return SessionToken(
            access_token=token,
            expires_in=int(session_ttl().total_seconds()),
            typ=token_type,
            user=UserSummary.model_validate(user),
            tenant=TenantSummary.model_validate(tenant),
        )

    # ============================================================
    # Passwords
    # ============================================================

    async def request_password_reset(
        self,
        email: str,
        tenant_hint: UUID | None = None,
    ) -> MessageResponse:
        """Mail a password reset link if the account exists and is active.

        The response is identical whether or not the account exists. The
        tenant hint only ends up in the link for the frontend's redirect.

        Raises:
            DeliveryError: If the reset mail cannot be sent
        """
        user = await self.user_repo.get_by_email(normalize_email(email))
        if user is not None and user.is_active:
            params = {"token": create_password_reset_token(user.id, user.email)}
            if tenant_hint is not None:
                params["tenantId"] = str(tenant_hint)
            subject, html = password_reset_email(
                user.full_name,
                frontend_link("/reset-password", **params),
                settings.reset_token_expire_minutes,
            )
            await self.mailer.send_mail(user.email, subject, html)
            logger.info("password_reset_requested", user_id=str(user.id))

        return MessageResponse(message=PASSWORD_RESET_MESSAGE)

    async def reset_password(self, token: str, new_password: str) -> MessageResponse:
        """Set a new password using a reset token.

        Other outstanding tokens of the user stay valid until they expire.

        Raises:
            BadRequestError: If the token is invalid, expired, of another
                type, or no longer matches a user
        """
        try:
            claims = decode_token(token)
        except TokenInvalidError as exc:
            raise BadRequestError("Invalid or expired token", error_code="invalid_reset_token") from exc

        if claims.typ != TokenType.PASSWORD_RESET:
            raise BadRequestError("Invalid or expired token", error_code="invalid_reset_token")

        user = await self.user_repo.get_by_id(claims.sub)
        if user is None or user.email != claims.email:
            raise BadRequestError("Invalid or expired token", error_code="invalid_reset_token")

        await self.user_repo.update_password_hash(user, hash_password(new_password))
        logger.info("password_reset_completed", user_id=str(user.id))
        return MessageResponse(message="Password has been reset.")

    async def change_own_password(
        self,
        claims: TokenClaims,
        current_password: str,
        new_password: str,
    ) -> MessageResponse:
        """Self-service password change is not available.

        Raises:
            ForbiddenError: Always
        """
        logger.warning("password_change_refused", user_id=str(claims.sub))
        raise ForbiddenError(
            "Password change is not available; use the password reset flow",
            error_code="password_change_unavailable",
        )

    # ============================================================
    # Session check
    # ============================================================

    async def check_session(self, claims: TokenClaims) -> SessionSnapshot:
        """Validate a session against the store and return live roles.

        Raises:
            UnauthorizedError: If the user is gone or inactive, or the
                membership of a tenant-scoped token is gone or not active
        """
        user = await self.user_repo.get_by_id(claims.sub)
        if user is None or not user.is_active:
            raise UnauthorizedError("Session is no longer valid", error_code="session_invalid")

        if claims.tenant_id is None:
            return SessionSnapshot(user=UserSummary.model_validate(user), typ=claims.typ)

        membership = await self.membership_repo.get(user.id, claims.tenant_id)
        tenant = await self.tenant_repo.get_by_id(claims.tenant_id)
        if (
            membership is None
            or tenant is None
            or not tenant.is_active
            or not membership.is_active
        ):
            raise UnauthorizedError("Session is no longer valid", error_code="session_invalid")

        return SessionSnapshot(
            user=UserSummary.model_validate(user),
            typ=claims.typ,
            tenant=TenantSummary.model_validate(tenant),
            is_owner=membership.is_owner,
            roles=await self.membership_repo.role_names(membership),
            perms=await self.membership_repo.permission_names(membership),
        )

    # ============================================================
    # Helpers
    # ============================================================

    async def _authenticate(self, email: str, password: str) -> User:
        """Verify credentials; every failure gets the same error."""
        email = normalize_email(email)
        user = await self.user_repo.get_by_email(email)

        if user is None:
            verify_password(password, _dummy_hash())
            valid = False
        else:
            valid = verify_password(password, user.password_hash) and user.is_active

        if not valid or user is None:
            logger.warning("login_failed", email=email)
            raise UnauthorizedError("Invalid credentials", error_code="invalid_credentials")
        return user

    async def _member_session(self, user: User, tenant_id: UUID) -> SessionToken:
        membership = await self.membership_repo.get(user.id, tenant_id)
        tenant = await self.tenant_repo.get_by_id(tenant_id)
        if membership is None or tenant is None:
            raise UnauthorizedError(
                "You are not a member of this tenant.",
                error_code="not_a_member",
            )
        if not tenant.is_active:
            raise UnauthorizedError(
                "This tenant is not active.",
                error_code="tenant_inactive",
            )
        if not membership.is_active:
            raise UnauthorizedError(
                "Your membership in this tenant is not active.",
                error_code="membership_inactive",
            )
        return await self.issue_for_tenant(user, membership, tenant, TokenType.MEMBER)

    def _global_session(self, user: User) -> SessionToken:
        token = create_session_token(user.id, user.email, TokenType.OWNER_GLOBAL)
        return SessionToken(
            access_token=token,
            expires_in=int(session_ttl().total_seconds()),
            typ=TokenType.OWNER_GLOBAL,
            user=UserSummary.model_validate(user),
        )


def _tenant_selection(user: User, tenants: list[Tenant]) -> TenantSelection:
    return TenantSelection(
        user=UserSummary.model_validate(user),
        tenants=[TenantSummary.model_validate(tenant) for tenant in tenants],
    )


AuthSvc = Annotated[AuthService, Depends(AuthService)]
