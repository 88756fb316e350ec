"""
Streaming chat-completion client.

Opens an OpenAI-compatible ``/chat/completions`` request with
``stream=true`` and yields the provider's SSE frames as they arrive.

Dependencies: httpx, chatrelay.core.sse, chatrelay.core.providers
System role: Upstream provider HTTP adapter
"""

import logging
from collections.abc import AsyncIterator

import httpx

from chatrelay.core.exceptions import ProviderError
from chatrelay.core.providers import ProviderTarget
from chatrelay.core.sse import SSEFrame, aiter_frames
from chatrelay.models.provider import CompletionRequest

logger = logging.getLogger(__name__)


class ProviderClient:
    """
    Thin async client for streaming chat completions.

    One ``httpx.AsyncClient`` is shared across requests. No read timeout
    is applied to the stream; only opening the connection is bounded.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        connect_timeout: float = 30.0,
    ) -> None:
        """
        Initialize provider client.

        Args:
            http_client: Preconfigured client (tests pass one with a MockTransport)
            connect_timeout: Seconds allowed for connecting to the provider
        """
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(None, connect=connect_timeout),
        )

    async def stream_completion(
        self,
        target: ProviderTarget,
        request: CompletionRequest,
    ) -> AsyncIterator[SSEFrame]:
        """
        Stream a chat completion.

        Args:
            target: Provider endpoint and credentials
            request: Completion request (messages, model)

        Yields:
            SSEFrame: Provider frames in arrival order (including ``[DONE]``)

        Raises:
            ProviderError: On non-2xx status or transport failure
        """
        provider = target.spec.display_name
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {target.api_key}",
        }

        logger.info(
            "Opening provider stream",
            extra={
                "provider": provider,
                "model": request.model,
                "message_count": len(request.messages),
            },
        )

        try:
            async with self._client.stream(
                "POST",
                target.completions_url,
                json=request.to_wire(),
                headers=headers,
            ) as response:
                if not response.is_success:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    logger.warning(
                        "Provider rejected request",
                        extra={"provider": provider, "status_code": response.status_code},
                    )
                    raise ProviderError(provider, response.status_code, body)

                async for frame in aiter_frames(response.aiter_bytes()):
                    yield frame
        except httpx.HTTPError as e:
            logger.error(
                "Provider transport failure",
                extra={"provider": provider, "error_type": type(e).__name__, "error_msg": str(e)},
            )
            raise ProviderError(provider, None, str(e)) from e

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()
