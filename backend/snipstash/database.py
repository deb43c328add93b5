"""
SnipStash Backend - Database Session Management
===============================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   One engine per process, created lazily on first use and shared by
       every request; each request gets its own AsyncSession.
Who:   Used by route handlers via Depends(get_db_session) and by the
       session gate middleware via session_scope().

Connection Pooling:
    PostgreSQL uses a QueuePool sized by DB_POOL_SIZE / DB_MAX_OVERFLOW with
    pre-ping and hourly recycling. SQLite (tests, local runs) uses NullPool so
    no connection outlives the event loop that opened it.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from snipstash.config import settings
from snipstash.exceptions import ConfigurationError

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Every model registers with this metadata, which Alembic reads for
    migrations and the test suite uses for create_all/drop_all.
    """
    pass


def _engine_options(url: str) -> Dict[str, Any]:
    if url.startswith("sqlite"):
        return {"poolclass": NullPool}
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_pre_ping": settings.db_pool_pre_ping,
        "pool_recycle": 3600,
    }


def get_engine() -> AsyncEngine:
    """
    Return the shared engine, creating it on first call.

    Raises:
        ConfigurationError: STORE_URL is not set. The masked credential
        status travels in the error context for logging.
    """
    global _engine, _session_factory
    if _engine is None:
        if not settings.store_url:
            raise ConfigurationError(context=settings.store_credentials_status())
        _engine = create_async_engine(
            settings.store_url,
            echo=settings.log_level == "DEBUG",
            **_engine_options(settings.store_url),
        )
        # expire_on_commit=False: records stay readable after the store commits
        _session_factory = async_sessionmaker(
            _engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    get_engine()
    assert _session_factory is not None
    return _session_factory


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits anything still pending
        4. On error: rolls back and re-raises for the global handlers
        5. Always: closes the session (returns connection to pool)

    Stores commit their own writes, so step 3 is normally a no-op.
    """
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    """Same lifecycle as get_db_session, for code outside dependency injection."""
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """
    What:  Closes all pooled connections and forgets the engine.
    When:  Application shutdown, and between tests.
    """
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
