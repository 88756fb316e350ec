"""
Core business logic module.

Contains the exception hierarchy, the SSE wire codec and the
model-to-provider registry.
"""

from chatrelay.core.exceptions import (
    ChatRelayException,
    PersistenceError,
    ProviderConfigurationError,
    ProviderError,
    SessionNotFoundError,
    StreamCancelledError,
    StreamConfigurationError,
    StreamError,
    StreamProtocolError,
    StreamRequestError,
    ValidationError,
)

__all__ = [
    "ChatRelayException",
    "PersistenceError",
    "ProviderConfigurationError",
    "ProviderError",
    "SessionNotFoundError",
    "StreamCancelledError",
    "StreamConfigurationError",
    "StreamError",
    "StreamProtocolError",
    "StreamRequestError",
    "ValidationError",
]
