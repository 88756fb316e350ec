"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from chatrelay.configs.base import BaseSettings
from chatrelay.configs.client import ClientSettings
from chatrelay.configs.database import DatabaseSettings
from chatrelay.configs.providers import ProviderSettings
from chatrelay.configs.relay import RelaySettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    database: DatabaseSettings = DatabaseSettings()
    providers: ProviderSettings = ProviderSettings()
    relay: RelaySettings = RelaySettings()
    client: ClientSettings = ClientSettings()


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from chatrelay.configs import get_settings
        settings = get_settings()
    """
    return Settings()
