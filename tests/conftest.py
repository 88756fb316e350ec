"""
Shared test fixtures and configuration for entire test suite.

Provides: In-memory async database, settings without environment lookups,
provider SSE payload builders, common IDs
Dependencies: pytest, sqlalchemy, httpx
System role: Test infrastructure and fixture management
"""

import json
import uuid

import pytest


@pytest.fixture
async def test_engine():
    """
    Create in-memory SQLite async engine with all tables.

    Yields:
        AsyncEngine: Engine bound to a single shared in-memory connection
    """
    from sqlalchemy.ext.asyncio import create_async_engine
    from sqlalchemy.pool import StaticPool
    from chatrelay.boundary.db.base import Base
    from chatrelay.boundary.db.connection import enable_sqlite_foreign_keys
    from chatrelay.boundary.db.models import MessageModel, SessionModel  # noqa: F401

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    """Session factory bound to the test engine."""
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture
async def test_async_db(session_factory):
    """
    Create async database session for testing.

    Yields:
        AsyncSession: Test database session with cleanup
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def provider_settings():
    """Provider settings with both API keys set and no .env lookup."""
    from chatrelay.configs.providers import ProviderSettings

    return ProviderSettings(
        _env_file=None,
        deepseek_api_key="test-deepseek-key",
        deepseek_base_url="https://deepseek.test",
        openai_api_key="test-openai-key",
        openai_base_url="https://openai.test/v1",
    )


@pytest.fixture
def relay_settings():
    """Relay settings with defaults."""
    from chatrelay.configs.relay import RelaySettings

    return RelaySettings(_env_file=None)


@pytest.fixture
def provider_chunk():
    """
    Build one provider SSE frame carrying a streamed delta.

    Returns:
        Callable[..., bytes]: ``provider_chunk(content="", reasoning=None)``
    """

    def build(content: str = "", reasoning: str | None = None) -> bytes:
        delta: dict = {"content": content}
        if reasoning is not None:
            delta["reasoning_content"] = reasoning
        payload = {"choices": [{"index": 0, "delta": delta}]}
        return f"data: {json.dumps(payload)}\n\n".encode("utf-8")

    return build


@pytest.fixture
def session_id():
    """Generate a test session ID."""
    return uuid.uuid4()
