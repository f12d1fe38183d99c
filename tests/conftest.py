"""
Test fixtures for the Ledger API test suite.

This module provides shared fixtures used across all test files:

  - db_engine / db_session: Fresh in-memory SQLite database for each test
  - client: Async HTTP test client (unauthenticated)
  - authenticated_client: Client with a freshly registered user and JWT
  - second_authenticated_client: A different user, on its own client, for
    cross-user tests
  - account_id: An ACTIVE account (number "12345678") owned by the first user

Key design decisions:
  - In-memory SQLite (sqlite+aiosqlite://) with a StaticPool, so every
    session in a test shares the one in-memory database. Each test gets a
    completely fresh database — no state leaks between tests.
  - We override FastAPI's get_db dependency to inject sessions bound to the
    test engine, so the application code works exactly as in production.
  - Users are created through the real registration and login endpoints.
"""

import os

# Settings are read at import time; configure them before importing the app
os.environ.setdefault("SECRET_KEY", "unit-test-signing-key-not-for-production-use")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from ledger_api.database import Base, get_db
from ledger_api.main import app
import ledger_api.models  # noqa: F401  (registers tables on Base.metadata)


# In-memory SQLite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite://"

API = "/v1"

FIRST_USER = {
    "email": "testuser@example.com",
    "password": "SecurePass123",
    "first_name": "Test",
    "last_name": "User",
}
SECOND_USER = {
    "email": "seconduser@example.com",
    "password": "SecurePass456",
    "first_name": "Second",
    "last_name": "User",
}


@pytest_asyncio.fixture
async def db_engine():
    """Create a fresh async engine with all tables for each test."""
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Provide an async session bound to the test engine."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """
    Async HTTP test client with the test database injected.

    This overrides the get_db dependency so all requests hit the
    in-memory test database instead of the real one.
    """

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


async def register_and_login(client: AsyncClient, user: dict) -> dict:
    """Register `user`, log in, and set the bearer header. Returns the user payload."""
    response = await client.post(f"{API}/users", json=user)
    assert response.status_code == 201, f"Registration failed: {response.text}"

    login = await client.post(
        f"{API}/auth/login",
        json={"email": user["email"], "password": user["password"]},
    )
    assert login.status_code == 200, f"Login failed: {login.text}"
    client.headers["Authorization"] = f"Bearer {login.json()['data']['token']}"
    return response.json()["data"]


@pytest_asyncio.fixture
async def authenticated_client(client):
    """Test client with a registered user and JWT token."""
    client.user = await register_and_login(client, FIRST_USER)
    return client


@pytest_asyncio.fixture
async def second_authenticated_client(authenticated_client):
    """
    A second user on a separate client, sharing the same database.

    Use this alongside authenticated_client to verify that User A
    cannot access User B's accounts/data.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as other:
        other.user = await register_and_login(other, SECOND_USER)
        yield other


@pytest_asyncio.fixture
async def account_id(authenticated_client):
    """An ACTIVE GBP checking account owned by the first user, balance 0."""
    response = await authenticated_client.post(
        f"{API}/accounts",
        json={"account_number": "12345678", "currency": "GBP", "type": "CHECKING"},
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]["id"]
