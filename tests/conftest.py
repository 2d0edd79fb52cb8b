"""Pytest configuration and shared fixtures."""

import os


# Cheap hashes for tests; must be set before stockroom reads its settings
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")
os.environ.setdefault("ENVIRONMENT", "test")

from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from stockroom.core.auth.backend import create_session_token
from stockroom.core.auth.schemas import TokenType
from stockroom.core.auth.service import AuthService
from stockroom.core.database import Base, get_db
from stockroom.core.email.mailer import get_mailer
from stockroom.core.permissions.catalog import seed_permissions

# Import all models to ensure they're registered with Base.metadata
from stockroom.core.permissions.models import MembershipRole, Permission, Role, RoleGrant  # noqa: F401
from stockroom.main import create_app
from stockroom.modules.rbac.repos import PermissionRepository, RoleRepository
from stockroom.modules.rbac.services import RoleService
from stockroom.modules.tenants.models import Tenant
from stockroom.modules.tenants.repos import TenantRepository
from stockroom.modules.tenants.services import TenantService
from stockroom.modules.users.models import Membership, User  # noqa: F401
from stockroom.modules.users.repos import MembershipRepository, UserRepository
from stockroom.modules.users.services import MemberService
from tests.factories.user import UserFactory
from tests.helpers import RecordingMailer


TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture(scope="function")
async def engine():
    """Create an in-memory test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db(engine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a transactional database session for tests.

    The app under test shares this session, so rows created in a test
    are visible to requests and vice versa.
    """
    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with engine.connect() as conn:
        await conn.begin()

        async with session_factory(bind=conn) as session:
            yield session

        await conn.rollback()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
async def app(db: AsyncSession, mailer: RecordingMailer):
    """Create test application instance."""
    application = create_app()

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_mailer] = lambda: mailer

    yield application

    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


# ============================================================
# Services wired to the test session
# ============================================================


@pytest.fixture
async def permissions(db: AsyncSession) -> list[Permission]:
    """Seed the permission catalogue."""
    return await seed_permissions(db)


@pytest.fixture
def role_service(db: AsyncSession) -> RoleService:
    return RoleService(RoleRepository(db), PermissionRepository(db), MembershipRepository(db))


@pytest.fixture
def tenant_service(db: AsyncSession) -> TenantService:
    return TenantService(
        TenantRepository(db),
        UserRepository(db),
        MembershipRepository(db),
        RoleRepository(db),
        PermissionRepository(db),
    )


@pytest.fixture
def auth_service(db: AsyncSession, mailer: RecordingMailer) -> AuthService:
    return AuthService(db, mailer)


@pytest.fixture
def member_service(
    db: AsyncSession,
    role_service: RoleService,
    mailer: RecordingMailer,
) -> MemberService:
    return MemberService(
        db,
        UserRepository(db),
        MembershipRepository(db),
        TenantRepository(db),
        role_service,
        mailer,
    )


# ============================================================
# Tenant and User Fixtures
# ============================================================


@pytest.fixture
def make_user(db: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Return a coroutine that persists a user built by UserFactory."""

    async def _make_user(**kwargs) -> User:
        user = UserFactory.build(**kwargs)
        db.add(user)
        await db.flush()
        return user

    return _make_user


@pytest.fixture
async def owner(make_user) -> User:
    """A registered user with password "password1"."""
    return await make_user(email="owner@acme.com", full_name="Olivia Owner")


@pytest.fixture
async def tenant(
    owner: User,
    tenant_service: TenantService,
    permissions: list[Permission],  # noqa: ARG001
) -> Tenant:
    """A tenant owned by ``owner``, with seeded Owner and Admin roles."""
    return await tenant_service.create_for_user(owner.id, "Acme Warehouse")


@pytest.fixture
async def owner_token(owner: User, tenant: Tenant, db: AsyncSession) -> str:
    """An owner session token for ``tenant`` with live roles and permissions."""
    memberships = MembershipRepository(db)
    membership = await memberships.get(owner.id, tenant.id)
    return create_session_token(
        owner.id,
        owner.email,
        TokenType.OWNER,
        tenant_id=tenant.id,
        roles=await memberships.role_names(membership),
        perms=await memberships.permission_names(membership),
    )

