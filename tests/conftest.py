"""
Shared test fixtures for the CreatorHub test suite.

Async throughout (aiosqlite + AsyncSession). Each test gets a fresh
in-memory database.
"""

import os
import sys
from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["OPENAI_API_KEY"] = ""

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from creatorhub.api.v1.deps import get_db, get_token_codec
from creatorhub.core.access import Permission, Role
from creatorhub.core.security import TokenCodec, get_password_hash
from creatorhub.db.base import Base
from creatorhub.main import app
from creatorhub.models.user import User

PASSWORD = "password123"
_PASSWORD_HASH = get_password_hash(PASSWORD)


@pytest.fixture(autouse=True)
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh in-memory database per test, wired into the app's get_db."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    yield factory

    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def tokens() -> TokenCodec:
    return get_token_codec()


# ── Users ───────────────────────────────────────────────────────────
MakeUser = Callable[..., Awaitable[User]]


@pytest.fixture
def make_user(db_session: AsyncSession) -> MakeUser:
    """Factory: ``await make_user("a@b.com", role=Role.ADMIN, permissions=[...])``."""
    counter = {"n": 0}

    async def _make(
        email: str | None = None,
        *,
        role: Role = Role.USER,
        permissions: list[Permission] | list[str] | None = None,
        is_active: bool = True,
        **fields,
    ) -> User:
        counter["n"] += 1
        email = email or f"user{counter['n']}@test.com"
        user = User(
            email=email,
            hashed_password=_PASSWORD_HASH,
            first_name=fields.pop("first_name", "Test"),
            last_name=fields.pop("last_name", f"User{counter['n']}"),
            username=email.split("@")[0],
            role=role.value,
            permissions=[str(p) for p in permissions or []],
            is_active=is_active,
            **fields,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def auth_headers(tokens: TokenCodec) -> Callable[[User], dict[str, str]]:
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {tokens.issue(user.id)}"}

    return _headers


@pytest.fixture
async def owner(make_user: MakeUser) -> User:
    return await make_user("owner@test.com", role=Role.OWNER, permissions=list(Permission))


@pytest.fixture
async def admin(make_user: MakeUser) -> User:
    return await make_user(
        "admin@test.com",
        role=Role.ADMIN,
        permissions=[
            Permission.USER_MANAGEMENT,
            Permission.CONTENT_MODERATION,
            Permission.ANALYTICS_ACCESS,
        ],
    )


@pytest.fixture
async def moderator(make_user: MakeUser) -> User:
    return await make_user("mod@test.com", role=Role.MODERATOR)


@pytest.fixture
async def customer(make_user: MakeUser) -> User:
    return await make_user("customer@test.com")


@pytest.fixture
async def vendor(make_user: MakeUser) -> User:
    return await make_user("vendor@test.com", is_vendor=True, store_name="Vendor Store")
