"""
Dependency injection container.

Factory functions for FastAPI dependencies.

Dependencies: chatrelay.configs, chatrelay.application, chatrelay.boundary
System role: DI container for service injection
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chatrelay.configs import Settings, get_settings
from chatrelay.boundary.db import get_async_db, get_async_session_factory
from chatrelay.boundary.llm import ProviderClient
from chatrelay.application.services import SessionService


class ServiceCache:
    """Container for cached service instances."""

    def __init__(self):
        self._provider_client = None

    @property
    def provider_client(self) -> ProviderClient:
        """Get cached provider client (one HTTP connection pool per process)."""
        if self._provider_client is None:
            settings = get_settings()
            self._provider_client = ProviderClient(
                connect_timeout=settings.providers.connect_timeout,
            )
        return self._provider_client

    async def aclose(self) -> None:
        """Close and clear all cached instances."""
        if self._provider_client is not None:
            await self._provider_client.aclose()
        self._provider_client = None


# Global service cache
_service_cache = ServiceCache()


def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


def get_settings_dependency() -> Settings:
    """Get settings singleton."""
    return get_settings()


def get_provider_client() -> ProviderClient:
    """
    Get the shared provider client.

    Returns:
        ProviderClient: Streaming chat-completion client
    """
    return get_service_cache().provider_client


def get_session_factory() -> async_sessionmaker:
    """
    Get the async session factory.

    The streaming chat route opens its own database session inside the
    response body so the session outlives the route function.

    Returns:
        async_sessionmaker: Factory bound to the configured engine
    """
    return get_async_session_factory()


def get_session_service(
    db: AsyncSession = Depends(get_async_db),
    settings: Settings = Depends(get_settings_dependency),
) -> SessionService:
    """
    Get session service instance.

    Args:
        db: Async database session (injected via Depends)
        settings: Application settings (injected via Depends)

    Returns:
        SessionService: Session service instance
    """
    return SessionService(db=db, relay_settings=settings.relay)
