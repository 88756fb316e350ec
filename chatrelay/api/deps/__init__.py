"""API-specific dependencies."""

# Re-export common dependencies
from .dependencies import (
    get_provider_client,
    get_service_cache,
    get_session_factory,
    get_session_service,
    get_settings_dependency,
)

__all__ = [
    "get_provider_client",
    "get_service_cache",
    "get_session_factory",
    "get_session_service",
    "get_settings_dependency",
]
