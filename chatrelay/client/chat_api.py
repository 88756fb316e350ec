"""
Session and message store client.

Thin httpx wrapper over the relay's REST endpoints used by the
conversation store to load authoritative state.

Dependencies: httpx, chatrelay.models
System role: Client-side collaborator store adapter
"""

import logging
import uuid
from typing import Any

import httpx

from chatrelay.configs.client import ClientSettings
from chatrelay.core.exceptions import StreamConfigurationError
from chatrelay.models.message import MessageResponse
from chatrelay.models.session import SessionResponse

logger = logging.getLogger(__name__)


class ChatApiClient:
    """REST client for ``/sessions`` and ``/sessions/{id}/messages``."""

    def __init__(
        self,
        relay_url: str | None,
        api_key: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        """
        Initialize API client.

        Args:
            relay_url: Relay API base URL, e.g. ``http://localhost:8082/api/v1``
            api_key: Optional bearer token for the relay
            http_client: Preconfigured client (tests pass one with a MockTransport)
            timeout: Request timeout in seconds
        """
        self.relay_url = relay_url
        self.api_key = api_key
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: ClientSettings, **kwargs: Any) -> "ChatApiClient":
        return cls(relay_url=settings.relay_url, api_key=settings.api_key, **kwargs)

    def _url(self, path: str) -> str:
        if not self.relay_url:
            raise StreamConfigurationError("Relay URL not configured")
        return f"{self.relay_url.rstrip('/')}{path}"

    def _headers(self) -> dict[str, str]:
        if self.api_key:
            return {"Authorization": f"Bearer {self.api_key}"}
        return {}

    async def list_sessions(self) -> list[SessionResponse]:
        """Sessions ordered by most recent activity."""
        response = await self._client.get(self._url("/sessions"), headers=self._headers())
        response.raise_for_status()
        return [SessionResponse.model_validate(item) for item in response.json()]

    async def create_session(
        self,
        title: str | None = None,
        model: str | None = None,
    ) -> SessionResponse:
        """Create an empty session; omitted fields take the relay defaults."""
        body = {key: value for key, value in {"title": title, "model": model}.items() if value is not None}
        response = await self._client.post(self._url("/sessions"), json=body, headers=self._headers())
        response.raise_for_status()
        return SessionResponse.model_validate(response.json())

    async def delete_session(self, session_id: str | uuid.UUID) -> None:
        """Delete a session and all of its messages."""
        response = await self._client.delete(self._url(f"/sessions/{session_id}"), headers=self._headers())
        response.raise_for_status()
        logger.info("Session deleted", extra={"session_id": str(session_id)})

    async def list_messages(self, session_id: str | uuid.UUID) -> list[MessageResponse]:
        """Messages of a session in chronological order."""
        response = await self._client.get(
            self._url(f"/sessions/{session_id}/messages"),
            headers=self._headers(),
        )
        response.raise_for_status()
        return [MessageResponse.model_validate(item) for item in response.json()]

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()
