"""
Client-side consumer for the relay's SSE chat stream.

Posts one chat turn to the relay, decodes the event stream incrementally
and reassembles it into typed updates. Two ways to consume a turn:

  - ``iter_events()``: pull-based async iterator of updates
  - ``start_stream()``: push-based callbacks driven by a background task,
    returning a ``StreamHandle`` that can abort the request

Dependencies: httpx, chatrelay.core.sse, chatrelay.core.providers
System role: Relay stream client
"""

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import aclosing
from dataclasses import dataclass
from typing import Any, Union

import httpx

from chatrelay.configs.client import ClientSettings
from chatrelay.core.exceptions import (
    StreamCancelledError,
    StreamConfigurationError,
    StreamError,
    StreamProtocolError,
    StreamRequestError,
)
from chatrelay.core.providers import flatten_text, supports_reasoning
from chatrelay.core.sse import SSEFrame, aiter_frames
from chatrelay.models.chat import ChatStreamRequest

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Server error"


@dataclass(frozen=True)
class SessionUpdate:
    """Session the turn belongs to; ``session`` is set only when it was just created."""

    session_id: str | None
    session: dict[str, Any] | None = None


@dataclass(frozen=True)
class DeltaUpdate:
    """Text fragments to append to the assistant message."""

    content: str
    reasoning: str = ""


@dataclass(frozen=True)
class CompleteUpdate:
    """Turn finished. ``reasoning`` is the full reasoning accumulated client-side."""

    session_id: str | None
    message_id: str | None
    reasoning: str = ""


@dataclass(frozen=True)
class ErrorUpdate:
    """Turn failed on the relay side."""

    message: str


StreamUpdate = Union[SessionUpdate, DeltaUpdate, CompleteUpdate, ErrorUpdate]

Callback = Callable[..., Union[Awaitable[None], None]]


@dataclass
class StreamCallbacks:
    """
    Push-mode handlers. Each may be a plain function or a coroutine function.

    Exactly one of ``on_complete`` / ``on_error`` is called per stream.
    """

    on_session: Callback | None = None
    on_delta: Callback | None = None
    on_complete: Callback | None = None
    on_error: Callback | None = None


async def _invoke(callback: Callback | None, *args: Any) -> None:
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class StreamHandle:
    """Handle to one in-flight push-mode stream."""

    def __init__(self) -> None:
        self._task: asyncio.Task | None = None
        self._started = False
        self._settled = False
        self._abort_requested = False

    @property
    def done(self) -> bool:
        return self._settled or self._task is None or self._task.done()

    def abort(self) -> None:
        """Cancel the request. Safe to call repeatedly and after completion."""
        if self.done or self._abort_requested:
            return
        self._abort_requested = True
        # An unstarted task is left to notice the flag so on_error still runs
        if self._started:
            self._task.cancel()

    async def wait(self) -> None:
        """Wait until the stream and its terminal callback have finished."""
        if self._task is not None:
            await asyncio.wait({self._task})


class _TurnDecoder:
    """Translates relay frames of one turn into updates."""

    def __init__(self, reasoning_enabled: bool) -> None:
        self.reasoning_enabled = reasoning_enabled
        self._reasoning: list[str] = []

    @property
    def reasoning(self) -> str:
        return "".join(self._reasoning) if self.reasoning_enabled else ""

    def translate(self, frame: SSEFrame) -> StreamUpdate | None:
        handler = getattr(self, f"_on_{frame.event}", None)
        if handler is None:
            return None
        return handler(frame)

    def _on_session(self, frame: SSEFrame) -> SessionUpdate | None:
        if frame.malformed or not isinstance(frame.payload, dict):
            logger.warning("Ignoring unreadable session event", extra={"data_preview": frame.data[:50]})
            return None
        session_id = frame.payload.get("sessionId")
        return SessionUpdate(
            session_id=str(session_id) if session_id else None,
            session=frame.payload.get("session"),
        )

    def _on_delta(self, frame: SSEFrame) -> DeltaUpdate | None:
        if frame.malformed:
            if self.reasoning_enabled or not frame.data or frame.is_done:
                return None
            return DeltaUpdate(content=frame.data)

        payload = frame.payload if isinstance(frame.payload, dict) else {}
        if "choices" in payload:
            # Provider-shaped payload passed through unchanged
            choices = payload.get("choices") or []
            first = choices[0] if choices and isinstance(choices[0], dict) else {}
            delta = first.get("delta") or {}
            content = flatten_text(delta.get("content"))
            reasoning = flatten_text(delta.get("reasoning_content"))
        else:
            content = flatten_text(payload.get("content"))
            reasoning = flatten_text(payload.get("reasoning"))

        if not self.reasoning_enabled:
            reasoning = ""
        if not content and not reasoning:
            return None

        if reasoning:
            self._reasoning.append(reasoning)
        return DeltaUpdate(content=content, reasoning=reasoning)

    def _on_complete(self, frame: SSEFrame) -> CompleteUpdate:
        payload = frame.payload if isinstance(frame.payload, dict) else {}
        if frame.malformed:
            logger.warning("Unreadable complete event, completing with local state")
        session_id = payload.get("sessionId")
        message_id = payload.get("messageId")
        return CompleteUpdate(
            session_id=str(session_id) if session_id else None,
            message_id=str(message_id) if message_id else None,
            reasoning=self.reasoning,
        )

    def _on_error(self, frame: SSEFrame) -> ErrorUpdate:
        if frame.malformed or not isinstance(frame.payload, dict):
            return ErrorUpdate(message=frame.data or DEFAULT_ERROR_MESSAGE)
        return ErrorUpdate(message=frame.payload.get("message") or DEFAULT_ERROR_MESSAGE)


class ChatStreamClient:
    """
    HTTP client for ``POST {relay_url}/chat``.

    Every invocation issues exactly one request. No read timeout is applied
    to the stream; only opening the connection is bounded.
    """

    def __init__(
        self,
        relay_url: str | None,
        api_key: str | None = None,
        default_model: str = "deepseek-chat",
        http_client: httpx.AsyncClient | None = None,
        connect_timeout: float = 30.0,
    ) -> None:
        """
        Initialize stream client.

        Args:
            relay_url: Relay API base URL (``None`` leaves the client unusable)
            api_key: Optional bearer token for the relay
            default_model: Model used when the request names none
            http_client: Preconfigured client (tests pass one with a MockTransport)
            connect_timeout: Seconds allowed for connecting to the relay
        """
        self.relay_url = relay_url
        self.api_key = api_key
        self.default_model = default_model
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(None, connect=connect_timeout),
        )

    @classmethod
    def from_settings(cls, settings: ClientSettings, **kwargs: Any) -> "ChatStreamClient":
        return cls(
            relay_url=settings.relay_url,
            api_key=settings.api_key,
            default_model=settings.default_model,
            **kwargs,
        )

    @property
    def chat_url(self) -> str:
        if not self.relay_url:
            raise StreamConfigurationError("Relay URL not configured")
        return f"{self.relay_url.rstrip('/')}/chat"

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "text/event-stream",
        }
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _body(self, request: ChatStreamRequest) -> dict[str, Any]:
        body = request.model_dump(mode="json", by_alias=True, exclude_none=True)
        body["model"] = request.model or self.default_model
        if not body.get("attachments"):
            body.pop("attachments", None)
        return body

    async def iter_events(self, request: ChatStreamRequest) -> AsyncIterator[StreamUpdate]:
        """
        Stream one chat turn as typed updates.

        The last update is always a ``CompleteUpdate`` or an ``ErrorUpdate``.

        Args:
            request: Chat turn to send

        Yields:
            StreamUpdate: Updates in relay order

        Raises:
            StreamConfigurationError: If no relay URL is configured
            StreamRequestError: If the relay is unreachable or answers non-2xx
            StreamProtocolError: If the stream ends without a terminal event
        """
        url = self.chat_url
        model = request.model or self.default_model
        decoder = _TurnDecoder(reasoning_enabled=supports_reasoning(model))

        try:
            async with self._client.stream(
                "POST",
                url,
                json=self._body(request),
                headers=self._headers(),
            ) as response:
                if not response.is_success:
                    raise StreamRequestError(
                        await _error_text(response),
                        status_code=response.status_code,
                    )

                async for frame in aiter_frames(response.aiter_bytes()):
                    update = decoder.translate(frame)
                    if update is None:
                        continue
                    yield update
                    if isinstance(update, (CompleteUpdate, ErrorUpdate)):
                        return
        except httpx.HTTPError as e:
            logger.error(
                "Relay transport failure",
                extra={"error_type": type(e).__name__, "error_msg": str(e)},
            )
            raise StreamRequestError(str(e) or type(e).__name__) from e

        raise StreamProtocolError("Stream ended before completion")

    def start_stream(self, request: ChatStreamRequest, callbacks: StreamCallbacks) -> StreamHandle:
        """
        Consume one chat turn in a background task, dispatching to callbacks.

        Must be called from a running event loop. Aborting delivers a
        ``StreamCancelledError`` to ``on_error``. A missing relay URL is
        reported through ``on_error`` and the returned handle is inert.

        Args:
            request: Chat turn to send
            callbacks: Handlers for session, delta and terminal updates

        Returns:
            StreamHandle: Handle for aborting or awaiting the stream
        """
        handle = StreamHandle()
        if not self.relay_url:
            handle._settled = True
            handle._task = asyncio.create_task(
                _invoke(callbacks.on_error, StreamConfigurationError("Relay URL not configured"))
            )
            return handle

        handle._task = asyncio.create_task(self._run(request, callbacks, handle))
        return handle

    async def _run(
        self,
        request: ChatStreamRequest,
        callbacks: StreamCallbacks,
        handle: StreamHandle,
    ) -> None:
        handle._started = True
        try:
            if handle._abort_requested:
                raise asyncio.CancelledError
            async with aclosing(self.iter_events(request)) as updates:
                async for update in updates:
                    if isinstance(update, SessionUpdate):
                        await _invoke(callbacks.on_session, update)
                    elif isinstance(update, DeltaUpdate):
                        await _invoke(callbacks.on_delta, update)
                    elif isinstance(update, CompleteUpdate):
                        handle._settled = True
                        await _invoke(callbacks.on_complete, update)
                    else:
                        handle._settled = True
                        await _invoke(callbacks.on_error, StreamRequestError(update.message))
        except asyncio.CancelledError:
            if handle._settled:
                raise
            handle._settled = True
            logger.info("Chat stream aborted by caller")
            await _invoke(callbacks.on_error, StreamCancelledError())
        except StreamError as e:
            if handle._settled:
                raise
            handle._settled = True
            await _invoke(callbacks.on_error, e)
        except Exception as e:
            if handle._settled:
                logger.exception("Terminal stream callback failed", extra={"error_type": type(e).__name__})
                return
            handle._settled = True
            logger.exception("Chat stream failed", extra={"error_type": type(e).__name__})
            await _invoke(
                callbacks.on_error,
                StreamError(str(e) or type(e).__name__, details={"error_type": type(e).__name__}),
            )

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()


async def _error_text(response: httpx.Response) -> str:
    """Best-effort error message from a non-2xx relay response."""
    body = (await response.aread()).decode("utf-8", errors="replace")
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and isinstance(payload.get("error"), str):
        return payload["error"]
    return body or f"Relay request failed ({response.status_code})"
