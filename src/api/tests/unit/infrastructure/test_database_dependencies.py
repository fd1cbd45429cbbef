"""Unit tests for database dependency injection.

Tests the FastAPI dependency providers for async database sessions.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from infrastructure.database.dependencies import (
    close_database_connections,
    get_engine,
    get_write_session,
    session_scope,
)


@pytest.mark.asyncio
async def test_get_engine():
    """Test that get_engine returns an asyncpg AsyncEngine."""
    engine = get_engine()

    assert isinstance(engine, AsyncEngine)
    assert engine.url.drivername == "postgresql+asyncpg"
    await close_database_connections()


@pytest.mark.asyncio
async def test_engine_is_singleton():
    """Test that the engine is cached and reused."""
    assert get_engine() is get_engine()
    await close_database_connections()


@pytest.mark.asyncio
async def test_get_write_session():
    """Test that get_write_session yields exactly one bound session."""
    engine = get_engine()
    sessions = []

    async for session in get_write_session():
        sessions.append(session)

    assert len(sessions) == 1
    assert isinstance(sessions[0], AsyncSession)
    assert sessions[0].bind.sync_engine is engine.sync_engine
    await close_database_connections()


@pytest.mark.asyncio
async def test_session_scope():
    """Test that session_scope opens a session without a request."""
    async with session_scope() as session:
        assert isinstance(session, AsyncSession)
    await close_database_connections()


@pytest.mark.asyncio
async def test_close_database_connections():
    """After closing, the next call creates a new engine."""
    engine = get_engine()

    await close_database_connections()
    new_engine = get_engine()

    assert new_engine is not engine
    await close_database_connections()
