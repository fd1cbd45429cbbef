"""Integration test fixtures for database tests.

These fixtures require a running PostgreSQL instance. Tests are skipped
when the database cannot be reached.
"""

import os

import pytest
import pytest_asyncio
from pydantic import SecretStr
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import identity.infrastructure.models  # noqa: F401 - registers the tables
from infrastructure.database.engines import build_async_url
from infrastructure.database.models import Base
from infrastructure.settings import DatabaseSettings


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires database)",
    )


@pytest.fixture(scope="session")
def integration_db_settings() -> DatabaseSettings:
    """Database settings for integration tests.

    Override with environment variables:
        TEAROOM_DB_HOST, TEAROOM_DB_PORT, etc.
    """
    return DatabaseSettings(
        host=os.getenv("TEAROOM_DB_HOST", "localhost"),
        port=int(os.getenv("TEAROOM_DB_PORT", "5432")),
        database=os.getenv("TEAROOM_DB_DATABASE", "tearoom_test"),
        username=os.getenv("TEAROOM_DB_USERNAME", "tearoom"),
        password=SecretStr(os.getenv("TEAROOM_DB_PASSWORD", "tearoom_dev_password")),
    )


@pytest_asyncio.fixture
async def engine(integration_db_settings):
    """Engine with a fresh schema; skips the test without a database."""
    engine = create_async_engine(
        build_async_url(integration_db_settings), poolclass=NullPool
    )
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
    except (OSError, DBAPIError) as e:
        await engine.dispose()
        pytest.skip(f"PostgreSQL not reachable: {e}")

    yield engine

    async with engine.begin() as conn:
        await conn.execute(
            text("TRUNCATE refresh_tokens, principals, tenants CASCADE")
        )
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def async_session(session_factory):
    async with session_factory() as session:
        yield session
