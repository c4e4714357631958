"""
Shared test fixtures for the Casebook test suite.

Each test gets its own in-memory database (aiosqlite + StaticPool).
"""

import os
import sys
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["OWNER_OPEN_ID"] = "owner-1"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["LLM_API_URL"] = ""
os.environ["NOTIFICATION_API_URL"] = ""
os.environ["OAUTH_SERVER_URL"] = ""

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from casebook.api.v1.deps import get_db
from casebook.core.config import settings
from casebook.core.security import create_session_token
from casebook.db.base import Base
from casebook.main import app
from casebook.services.identity import ProviderProfile, get_identity_provider


class FakeIdentityProvider:
    """Stands in for the OAuth server; returns whatever ``profile`` is set to."""

    def __init__(self) -> None:
        self.profile = ProviderProfile()
        self.error: Exception | None = None

    async def exchange_code(self, code: str, state: str) -> str:
        if self.error is not None:
            raise self.error
        return f"token-for-{code}"

    async def get_user_info(self, access_token: str) -> ProviderProfile:
        return self.profile


@pytest.fixture
async def engine():
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
async def async_client(session_factory, identity_provider) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def sign_in(async_client: AsyncClient, identity_provider: FakeIdentityProvider):
    """Run the OAuth callback for a profile and return auth headers for it."""

    async def _sign_in(
        open_id: str,
        name: str | None = None,
        email: str | None = None,
        login_method: str | None = "google",
    ) -> dict[str, str]:
        identity_provider.profile = ProviderProfile(
            open_id=open_id,
            name=name or open_id.title(),
            email=email,
            login_method=login_method,
        )
        resp = await async_client.get(
            "/api/v1/auth/callback", params={"code": "c0de", "state": "st4te"}
        )
        assert resp.status_code == 302, resp.text
        assert settings.SESSION_COOKIE_NAME in resp.headers.get("set-cookie", "")
        async_client.cookies.clear()
        return {"Authorization": f"Bearer {create_session_token(open_id)}"}

    return _sign_in
