"""
API test fixtures.

TestClient runs the app on its own event loop, so the database is a
SQLite file created synchronously and opened with a non-pooling async
engine: every connection is created on whichever loop uses it.

Dependencies: pytest, sqlalchemy, fastapi
System role: HTTP layer test infrastructure
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from chatrelay.boundary.db.base import Base
from chatrelay.boundary.db.connection import enable_sqlite_foreign_keys
from chatrelay.boundary.db.models import MessageModel, SessionModel  # noqa: F401
from chatrelay.configs import Settings


@pytest.fixture
def file_session_factory(tmp_path):
    """
    Session factory over a fresh SQLite file with all tables.

    Returns:
        async_sessionmaker: Factory usable from any event loop
    """
    db_path = tmp_path / "chatrelay-test.db"

    sync_engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()

    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    enable_sqlite_foreign_keys(engine)
    return async_sessionmaker(engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)


@pytest.fixture
def test_settings(provider_settings, relay_settings) -> Settings:
    """Application settings using the test provider and relay settings."""
    return Settings(_env_file=None, providers=provider_settings, relay=relay_settings)


@pytest.fixture
def override_db(file_session_factory):
    """Replacement for get_async_db bound to the test database."""

    async def _get_test_db():
        async with file_session_factory() as session:
            yield session

    return _get_test_db
