"""
Exception hierarchy for the chat relay.

Provides layered exception structure for relay and client errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class ChatRelayException(Exception):
    """Base exception for all chat relay errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging

        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(ChatRelayException):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class SessionNotFoundError(ChatRelayException):
    """Raised when a session cannot be found."""

    def __init__(self, session_id: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize session not found error.

        Args:
            session_id: ID of the missing session
            details: Additional context
        """
        details = details or {}
        details["session_id"] = session_id
        super().__init__(f"Session not found: {session_id}", details)


class ProviderConfigurationError(ChatRelayException):
    """Raised when a provider is selected but its credentials are absent."""

    def __init__(self, provider: str, setting: str) -> None:
        """
        Initialize configuration error.

        Args:
            provider: Display name of the provider (e.g. "OpenAI")
            setting: Environment variable that is missing
        """
        super().__init__(
            f"{provider} API key not configured",
            {"provider": provider, "setting": setting},
        )


class ProviderError(ChatRelayException):
    """Raised when the upstream provider rejects or breaks the request."""

    def __init__(
        self,
        provider: str,
        status_code: int | None = None,
        body: str = "",
    ) -> None:
        """
        Initialize provider error.

        Args:
            provider: Display name of the provider
            status_code: HTTP status returned by the provider, if any
            body: Response body text, used verbatim in the message
        """
        status = status_code if status_code is not None else "no response"
        message = f"{provider} API error: {status} {body}".rstrip()
        super().__init__(message, {"provider": provider, "status_code": status_code})


class PersistenceError(ChatRelayException):
    """Raised when the session or message store cannot be written."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize persistence error.

        Args:
            message: Error message
            operation: Operation that failed (create_session, insert_message, ...)
            details: Additional context
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class StreamError(ChatRelayException):
    """Base exception for client-side stream consumption failures."""

    pass


class StreamCancelledError(StreamError):
    """Raised (or delivered) when the caller aborts an in-flight stream."""

    def __init__(self, message: str = "Request cancelled") -> None:
        super().__init__(message)


class StreamConfigurationError(StreamError):
    """Raised when the relay address is not configured."""

    pass


class StreamRequestError(StreamError):
    """Raised when the relay cannot be reached or answers with an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """
        Initialize stream request error.

        Args:
            message: Error message (server-provided where available)
            status_code: HTTP status of the relay response, if any
        """
        details = {"status_code": status_code} if status_code is not None else None
        super().__init__(message, details)
        self.status_code = status_code


class StreamProtocolError(StreamError):
    """Raised when the relay stream ends without a terminal event."""

    pass
