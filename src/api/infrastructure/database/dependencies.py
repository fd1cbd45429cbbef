"""Database dependency injection for FastAPI.

Provides the async session factory with explicit transaction management
and lazily created engine singletons.
"""

from __future__ import annotations

import threading
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from infrastructure.database.engines import create_engine
from infrastructure.observability import DefaultConnectionProbe
from infrastructure.settings import get_database_settings, get_settings

# Module-level probe for observability
_probe = DefaultConnectionProbe()

# Created on first use
_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None

_engine_lock = threading.Lock()


def get_engine() -> AsyncEngine:
    """Get the database engine (singleton).

    Creates the engine and its sessionmaker on first call. Uses double-check
    locking for thread-safe initialization.

    Returns:
        Configured async engine
    """
    global _engine, _sessionmaker
    if _engine is None:
        with _engine_lock:
            if _engine is None:
                settings = get_database_settings()
                _engine = create_engine(settings, echo=get_settings().debug)
                _sessionmaker = async_sessionmaker(
                    _engine,
                    expire_on_commit=False,
                    class_=AsyncSession,
                )
                _probe.engine_created(
                    host=settings.host,
                    database=settings.database,
                    pool_size=settings.pool_max_connections,
                )
    return _engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Get the session factory bound to the engine."""
    get_engine()
    assert _sessionmaker is not None
    return _sessionmaker


async def get_write_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a session for the current request (FastAPI dependency).

    The session does NOT auto-commit. Callers manage transactions using
    `async with session.begin()`.

    Yields:
        AsyncSession for database operations
    """
    async with get_sessionmaker()() as session:
        yield session


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Open a session outside of a request (CLI commands, jobs)."""
    async with get_sessionmaker()() as session:
        yield session


async def close_database_connections() -> None:
    """Dispose the engine.

    Called on application shutdown. Resets the sessionmaker to allow
    reinitialization.
    """
    global _engine, _sessionmaker

    if _engine is not None:
        await _engine.dispose()
        _probe.engine_disposed()
        _engine = None
        _sessionmaker = None
