"""Unit tests for AuthService with mocked repositories."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from stockroom.core.auth.backend import create_session_token, decode_token, hash_password
from stockroom.core.auth.schemas import SessionToken, TenantSelection, TokenType
from stockroom.core.auth.service import PASSWORD_RESET_MESSAGE, AuthService
from stockroom.core.errors import ForbiddenError, UnauthorizedError
from tests.factories.tenant import TenantFactory
from tests.factories.user import MembershipFactory, UserFactory
from tests.helpers import RecordingMailer


pytestmark = pytest.mark.unit


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def service(mailer: RecordingMailer) -> AuthService:
    service = AuthService(db=AsyncMock(), mailer=mailer)
    service.user_repo = AsyncMock()
    service.membership_repo = AsyncMock()
    service.tenant_repo = AsyncMock()
    return service


@pytest.fixture
def user():
    return UserFactory.build(email="member@acme.com", password_hash=hash_password("password1"))


class TestPasswordResetRequest:
    """The reset request never reveals whether an account exists."""

    async def test_unknown_and_known_emails_get_same_response(self, service, mailer, user):
        service.user_repo.get_by_email.return_value = None
        unknown = await service.request_password_reset("nobody@acme.com")

        service.user_repo.get_by_email.return_value = user
        known = await service.request_password_reset("member@acme.com")

        assert unknown == known
        assert known.message == PASSWORD_RESET_MESSAGE
        assert [mail.to for mail in mailer.sent] == ["member@acme.com"]

    async def test_inactive_user_gets_no_mail(self, service, mailer, user):
        user.is_active = False
        service.user_repo.get_by_email.return_value = user

        response = await service.request_password_reset("member@acme.com")

        assert response.message == PASSWORD_RESET_MESSAGE
        assert mailer.sent == []

    async def test_link_carries_reset_token_and_tenant_hint(self, service, mailer, user):
        tenant_id = uuid4()
        service.user_repo.get_by_email.return_value = user

        await service.request_password_reset("member@acme.com", tenant_hint=tenant_id)

        mail = mailer.sent[0]
        assert str(tenant_id) in mail.html
        claims = decode_token(mail.tokens()[0])
        assert claims.typ == TokenType.PASSWORD_RESET
        assert claims.sub == user.id


class TestAuthenticate:
    """Every credential failure looks the same."""

    async def test_unknown_email_and_wrong_password_are_indistinguishable(self, service, user):
        service.user_repo.get_by_email.return_value = None
        with pytest.raises(UnauthorizedError) as unknown:
            await service.member_login("nobody@acme.com", "password1")

        service.user_repo.get_by_email.return_value = user
        with pytest.raises(UnauthorizedError) as wrong:
            await service.member_login("member@acme.com", "wrong-password")

        assert unknown.value.message == wrong.value.message == "Invalid credentials"

    async def test_inactive_user_cannot_log_in(self, service, user):
        user.is_active = False
        service.user_repo.get_by_email.return_value = user

        with pytest.raises(UnauthorizedError) as exc_info:
            await service.member_login("member@acme.com", "password1")

        assert exc_info.value.error_code == "invalid_credentials"


class TestMemberLogin:
    """Tests for tenant auto-selection."""

    async def test_no_active_memberships(self, service, user):
        service.user_repo.get_by_email.return_value = user
        service.membership_repo.list_active_for_user.return_value = []

        with pytest.raises(UnauthorizedError) as exc_info:
            await service.member_login("member@acme.com", "password1")

        assert exc_info.value.message == "No active memberships found"

    async def test_single_membership_is_selected(self, service, user):
        tenant = TenantFactory.build()
        membership = MembershipFactory.build(user_id=user.id, tenant_id=tenant.id)
        service.user_repo.get_by_email.return_value = user
        service.membership_repo.list_active_for_user.return_value = [(membership, tenant)]
        service.membership_repo.get.return_value = membership
        service.tenant_repo.get_by_id.return_value = tenant
        service.membership_repo.role_names.return_value = ["Packer"]
        service.membership_repo.permission_names.return_value = ["inventory.read"]

        result = await service.member_login("member@acme.com", "password1")

        assert isinstance(result, SessionToken)
        claims = decode_token(result.access_token)
        assert claims.typ == TokenType.MEMBER
        assert claims.tenant_id == tenant.id
        assert claims.roles == ["Packer"]
        assert claims.perms == ["inventory.read"]

    async def test_several_memberships_need_selection(self, service, user):
        tenants = TenantFactory.batch(2)
        service.user_repo.get_by_email.return_value = user
        service.membership_repo.list_active_for_user.return_value = [
            (MembershipFactory.build(user_id=user.id, tenant_id=t.id), t) for t in tenants
        ]

        result = await service.member_login("member@acme.com", "password1")

        assert isinstance(result, TenantSelection)
        assert result.need_tenant_selection is True
        assert [t.id for t in result.tenants] == [t.id for t in tenants]

    async def test_explicit_tenant_without_membership(self, service, user):
        service.user_repo.get_by_email.return_value = user
        service.membership_repo.get.return_value = None
        service.tenant_repo.get_by_id.return_value = None

        with pytest.raises(UnauthorizedError) as exc_info:
            await service.member_login("member@acme.com", "password1", tenant_id=uuid4())

        assert exc_info.value.message == "You are not a member of this tenant."

    async def test_explicit_tenant_with_suspended_membership(self, service, user):
        tenant = TenantFactory.build()
        service.user_repo.get_by_email.return_value = user
        service.membership_repo.get.return_value = MembershipFactory.build(
            user_id=user.id,
            tenant_id=tenant.id,
            status="suspended",
        )
        service.tenant_repo.get_by_id.return_value = tenant

        with pytest.raises(UnauthorizedError) as exc_info:
            await service.member_login("member@acme.com", "password1", tenant_id=tenant.id)

        assert exc_info.value.message == "Your membership in this tenant is not active."

    async def test_explicit_tenant_that_is_inactive(self, service, user):
        tenant = TenantFactory.build(is_active=False)
        service.user_repo.get_by_email.return_value = user
        service.membership_repo.get.return_value = MembershipFactory.build(
            user_id=user.id,
            tenant_id=tenant.id,
        )
        service.tenant_repo.get_by_id.return_value = tenant

        with pytest.raises(UnauthorizedError) as exc_info:
            await service.member_login("member@acme.com", "password1", tenant_id=tenant.id)

        assert exc_info.value.error_code == "tenant_inactive"


class TestOwnerLogin:
    """Tests for owner login."""

    async def test_owner_without_tenants_gets_global_token(self, service, user):
        service.user_repo.get_by_email.return_value = user
        service.membership_repo.list_active_for_user.return_value = []

        result = await service.owner_login("member@acme.com", "password1")

        assert result.typ == TokenType.OWNER_GLOBAL
        assert decode_token(result.access_token).tenant_id is None

    async def test_non_owner_member_is_refused(self, service, user):
        tenant = TenantFactory.build()
        service.user_repo.get_by_email.return_value = user
        service.membership_repo.get.return_value = MembershipFactory.build(
            user_id=user.id,
            tenant_id=tenant.id,
            is_owner=False,
        )
        service.tenant_repo.get_by_id.return_value = tenant

        with pytest.raises(UnauthorizedError) as exc_info:
            await service.owner_login("member@acme.com", "password1", tenant_id=tenant.id)

        assert exc_info.value.error_code == "not_tenant_owner"

    async def test_owner_of_inactive_tenant_is_refused(self, service, user):
        tenant = TenantFactory.build(is_active=False)
        service.user_repo.get_by_email.return_value = user
        service.membership_repo.get.return_value = MembershipFactory.build(
            user_id=user.id,
            tenant_id=tenant.id,
            is_owner=True,
        )
        service.tenant_repo.get_by_id.return_value = tenant

        with pytest.raises(UnauthorizedError) as exc_info:
            await service.owner_login("member@acme.com", "password1", tenant_id=tenant.id)

        assert exc_info.value.error_code == "tenant_inactive"


class TestCheckSession:
    """The live session check re-reads tenant state."""

    async def test_inactive_tenant_invalidates_session(self, service, user):
        tenant = TenantFactory.build(is_active=False)
        service.user_repo.get_by_id.return_value = user
        service.membership_repo.get.return_value = MembershipFactory.build(
            user_id=user.id,
            tenant_id=tenant.id,
        )
        service.tenant_repo.get_by_id.return_value = tenant
        claims = decode_token(
            create_session_token(user.id, user.email, TokenType.MEMBER, tenant_id=tenant.id)
        )

        with pytest.raises(UnauthorizedError) as exc_info:
            await service.check_session(claims)

        assert exc_info.value.error_code == "session_invalid"


class TestChangeOwnPassword:
    """Self-service password change fails closed."""

    async def test_always_refused(self, service, user):
        claims = decode_token(
            (await _global_token(service, user)).access_token,
        )

        with pytest.raises(ForbiddenError):
            await service.change_own_password(claims, "password1", "password2")


async def _global_token(service: AuthService, user) -> SessionToken:
    service.user_repo.get_by_email.return_value = user
    service.membership_repo.list_active_for_user.return_value = []
    return await service.owner_login(user.email, "password1")
