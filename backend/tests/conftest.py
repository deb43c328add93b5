"""
SnipStash Backend - Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: Mock async session (no real DB needed)
    ├── make_snippet:    Factory for detached Snippet rows
    ├── store_db:        Temporary SQLite store with all tables created
    ├── test_client:     HTTPX AsyncClient over the ASGI app, backed by store_db
    └── signed_in:       Registers and signs in a@x.com, returns its cookie header
"""

import os
import tempfile
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

# Override settings for testing BEFORE any snipstash imports
os.environ["STORE_URL"] = "sqlite+aiosqlite:///" + os.path.join(
    tempfile.mkdtemp(prefix="snipstash_test_"), "test.db"
)
os.environ["STORE_KEY"] = "test-store-key-not-real"
os.environ["ENVIRONMENT"] = "test"
os.environ["BCRYPT_ROUNDS"] = "4"  # Minimum work factor keeps the suite fast
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from snipstash.config import settings
from snipstash.database import Base, dispose_engine, get_engine
from snipstash.models.snippet import Snippet

SESSION_COOKIE = settings.session_cookie_name


def session_cookie_from(response) -> str:
    """`name=value` of the session cookie a response sets."""
    for header in response.headers.get_list("set-cookie"):
        pair = header.split(";", 1)[0]
        if pair.startswith(SESSION_COOKIE + "="):
            return pair
    raise AssertionError("response did not set the session cookie")


# ══════════════════════════════════════════════════════════════════════════
# Unit-level Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    A mock AsyncSession for service tests that patch the stores.

    Usage:
        async def test_x(mock_db_session):
            await snippet_service.get_snippet(mock_db_session, "id")
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.get = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def make_snippet():
    """Factory for Snippet rows that never touch a database."""

    def _make(**overrides) -> Snippet:
        now = datetime.now(timezone.utc)
        data = {
            "id": str(uuid4()),
            "title": "Hello",
            "code": "print('hi')",
            "description": None,
            "language": "python",
            "tags": ["demo"],
            "user_id": "owner-1",
            "created_at": now,
            "updated_at": now,
        }
        data.update(overrides)
        return Snippet(**data)

    return _make


# ══════════════════════════════════════════════════════════════════════════
# Store-backed Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def store_db(tmp_path, monkeypatch):
    """
    A fresh SQLite store per test.

    Points STORE_URL at a file under tmp_path, creates every table, and
    disposes the shared engine afterwards so the next test starts clean.
    """
    monkeypatch.setattr(settings, "store_url", f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    await dispose_engine()

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await dispose_engine()


@pytest_asyncio.fixture
async def test_client(store_db):
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    raise_app_exceptions=False: the catch-all 500 handler runs in
    ServerErrorMiddleware, which re-raises after responding.
    """
    from snipstash.main import app

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def sign_up(test_client):
    """
    Register and sign in an account; returns headers carrying its session
    cookie. The client cookie jar is cleared so each request states its
    session explicitly.
    """

    async def _sign_up(email: str, password: str = "secret1") -> dict:
        credentials = {"email": email, "password": password}
        resp = await test_client.post("/api/register", json=credentials)
        assert resp.status_code == 200, resp.text
        resp = await test_client.post("/api/auth/signin", json=credentials)
        assert resp.status_code == 200, resp.text
        test_client.cookies.clear()
        return {"Cookie": session_cookie_from(resp)}

    return _sign_up


@pytest_asyncio.fixture
async def signed_in(sign_up):
    return await sign_up("a@x.com", "secret1")
