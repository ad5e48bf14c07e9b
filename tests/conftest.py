"""
Shared test fixtures for the TaskHub test suite.

Each test gets its own in-memory sqlite ``Database`` injected into a fresh
app through ``create_app``.
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
os.environ["ENVIRONMENT"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CORS_ORIGINS"] = '["*"]'

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.security import create_session_token
from taskhub.crud.user import create_user
from taskhub.db.session import Database
from taskhub.main import create_app
from taskhub.models.user import User

DEFAULT_PASSWORD = "secret1"


@pytest.fixture
async def database() -> AsyncGenerator[Database, None]:
    """Create all tables before usage and dispose after."""
    db = Database("sqlite+aiosqlite:///:memory:")
    await db.create_all()
    yield db
    await db.drop_all()
    await db.dispose()


@pytest.fixture
def app(database: Database) -> FastAPI:
    return create_app(database)


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with database.session_factory() as session:
        yield session


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Factory inserting a user straight into the store."""

    async def _make(
        email: str = "user@example.com",
        password: str = DEFAULT_PASSWORD,
        role: str = "client",
        **profile: str,
    ) -> User:
        return await create_user(
            db_session,
            email=email,
            password=password,
            role=role,
            first_name=profile.get("first_name"),
            last_name=profile.get("last_name"),
        )

    return _make


@pytest.fixture
def bearer() -> Callable[..., dict[str, str]]:
    """Build an Authorization header carrying a fresh session token for a user."""

    def _bearer(user: User, role: str | None = None) -> dict[str, str]:
        token = create_session_token(user.id, user.email, role or user.role)
        return {"Authorization": f"Bearer {token}"}

    return _bearer
