"""
Chat service for the streaming relay.

Orchestrates one chat turn: session resolution, user message persistence,
history loading, the upstream provider stream, and assistant message
persistence. Produces StreamEvents which the router renders as SSE.

Dependencies: chatrelay.boundary.db, chatrelay.boundary.llm, chatrelay.core
System role: Chat relay orchestration layer
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import aclosing
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from chatrelay.application.services.message_composer import (
    build_provider_messages,
    compose_user_content,
)
from chatrelay.boundary.db.CRUD.base_crud import commit_or_raise
from chatrelay.boundary.db.CRUD.message_crud import message_crud
from chatrelay.boundary.db.CRUD.session_crud import session_crud
from chatrelay.boundary.db.models.session_model import SessionModel
from chatrelay.boundary.llm.provider_client import ProviderClient
from chatrelay.configs.providers import ProviderSettings
from chatrelay.configs.relay import RelaySettings
from chatrelay.core.exceptions import (
    ChatRelayException,
    ProviderError,
    SessionNotFoundError,
)
from chatrelay.core.providers import (
    ProviderTarget,
    flatten_text,
    resolve_target,
    supports_reasoning,
)
from chatrelay.core.sse import SSEFrame
from chatrelay.models.chat import ChatStreamRequest
from chatrelay.models.message import MessageRole
from chatrelay.models.provider import CompletionRequest
from chatrelay.models.session import SessionResponse
from chatrelay.models.streaming import StreamEvent

logger = logging.getLogger(__name__)


def extract_delta(
    frame: SSEFrame,
    provider: str,
    reasoning_enabled: bool,
) -> tuple[str, str] | None:
    """
    Extract ``(content, reasoning)`` from one provider frame.

    Malformed frames are forwarded as literal content for models without a
    reasoning channel and dropped otherwise.

    Args:
        frame: Decoded provider frame (not the DONE sentinel)
        provider: Provider display name, for error messages
        reasoning_enabled: Whether reasoning_content is read

    Returns:
        tuple of content and reasoning fragments, or None to skip the frame

    Raises:
        ProviderError: If the provider reports an error inside the stream
    """
    if frame.malformed:
        if reasoning_enabled:
            logger.debug("Dropping malformed provider frame", extra={"data_preview": frame.data[:50]})
            return None
        return frame.data, ""

    payload = frame.payload
    if not isinstance(payload, dict):
        return None

    if payload.get("error"):
        error = payload["error"]
        detail = error.get("message") if isinstance(error, dict) else str(error)
        raise ProviderError(provider, None, detail or "stream error")

    choices = payload.get("choices") or []
    first = choices[0] if choices and isinstance(choices[0], dict) else {}
    delta = first.get("delta") or {}

    content = flatten_text(delta.get("content"))
    reasoning = flatten_text(delta.get("reasoning_content")) if reasoning_enabled else ""
    return content, reasoning


class ChatService:
    """
    Chat relay service.

    One instance serves one request. Persistence is committed step by
    step: the session and the user message are durable before the
    provider is called and are not rolled back if the turn fails later.
    """

    def __init__(
        self,
        db: AsyncSession,
        provider_client: ProviderClient,
        provider_settings: ProviderSettings,
        relay_settings: RelaySettings,
    ) -> None:
        """
        Initialize chat service.

        Args:
            db: AsyncSession for database operations
            provider_client: Shared streaming provider client
            provider_settings: Provider credentials and base URLs
            relay_settings: Relay defaults (model, titles)
        """
        self.db = db
        self.provider_client = provider_client
        self.provider_settings = provider_settings
        self.relay_settings = relay_settings

    async def stream_chat(
        self,
        request: ChatStreamRequest,
    ) -> AsyncGenerator[StreamEvent, None]:
        """
        Run one chat turn and stream its events.

        Flow:
        1. Resolve provider and credentials (fails before any write)
        2. Resolve or create the session, emit ``session``
        3. Persist the composed user message
        4. Load history and build the provider request
        5. Relay provider deltas as ``delta`` events
        6. Persist the assistant message if content arrived, touch the session
        7. Emit ``complete``

        Any failure is reported as a single ``error`` event instead.

        Args:
            request: Validated chat request

        Yields:
            StreamEvent: session, delta*, then complete or error
        """
        model = request.model or self.relay_settings.default_model
        logger.info(
            f"{__name__}:stream_chat - START",
            extra={"session_id": str(request.session_id), "model": model},
        )

        try:
            target = resolve_target(model, self.provider_settings)

            session, created = await self._resolve_session(request, model)
            summary = SessionResponse.model_validate(session).model_dump(mode="json") if created else None
            yield StreamEvent.session(session.id, summary)

            await self._store_user_message(session, request)

            history = await message_crud.list_history(self.db, session.id)
            completion = CompletionRequest(
                model=model,
                messages=build_provider_messages(
                    history,
                    request.attachments,
                    multimodal=target.spec.supports_multimodal,
                ),
            )

            content_buffer: list[str] = []
            reasoning_buffer: list[str] = []
            relay = self._relay_provider_stream(target, completion, content_buffer, reasoning_buffer)
            async with aclosing(relay) as events:
                async for event in events:
                    yield event

            content = "".join(content_buffer)
            reasoning = "".join(reasoning_buffer)
            message_id = None

            if content.strip():
                assistant = await message_crud.create(
                    self.db,
                    session_id=session.id,
                    role=MessageRole.ASSISTANT.value,
                    content=content,
                    reasoning=reasoning if reasoning.strip() else None,
                    model=model,
                )
                message_id = assistant.id
            else:
                logger.warning(
                    f"{__name__}:stream_chat - Provider returned no content, no assistant message stored",
                    extra={"session_id": str(session.id)},
                )

            await self._touch_session(session, request, model)
            await commit_or_raise(self.db, "store_assistant_message")

            logger.info(
                f"{__name__}:stream_chat - END",
                extra={
                    "session_id": str(session.id),
                    "content_length": len(content),
                    "reasoning_length": len(reasoning),
                },
            )
            yield StreamEvent.complete(session.id, message_id, reasoning)

        except Exception as e:
            logger.exception(
                f"{__name__}:stream_chat - Turn failed",
                extra={"error_type": type(e).__name__, "error_msg": str(e)},
            )
            await self._rollback()
            yield StreamEvent.error(self._describe(e))

    async def _resolve_session(
        self,
        request: ChatStreamRequest,
        model: str,
    ) -> tuple[SessionModel, bool]:
        """Return the target session and whether it was created now."""
        if request.session_id is not None:
            session = await session_crud.get_by_id(self.db, request.session_id)
            if session is None:
                raise SessionNotFoundError(str(request.session_id))
            return session, False

        session = await session_crud.create(
            self.db,
            title=self._title_for(request.message),
            model=model,
        )
        await commit_or_raise(self.db, "create_session")
        logger.info(f"{__name__}:stream_chat - Session created", extra={"session_id": str(session.id)})
        return session, True

    async def _store_user_message(
        self,
        session: SessionModel,
        request: ChatStreamRequest,
    ) -> None:
        content = compose_user_content(request.message, request.attachments)
        attachments = [
            att.model_dump(by_alias=True, exclude_none=True) for att in request.attachments
        ]
        await message_crud.create(
            self.db,
            session_id=session.id,
            role=MessageRole.USER.value,
            content=content,
            attachments=attachments or None,
        )
        await commit_or_raise(self.db, "store_user_message")

    async def _relay_provider_stream(
        self,
        target: ProviderTarget,
        completion: CompletionRequest,
        content_buffer: list[str],
        reasoning_buffer: list[str],
    ) -> AsyncGenerator[StreamEvent, None]:
        """Translate provider frames into delta events until ``[DONE]``."""
        provider = target.spec.display_name
        reasoning_enabled = supports_reasoning(completion.model)

        frames = self.provider_client.stream_completion(target, completion)
        async with aclosing(frames):
            async for frame in frames:
                if frame.is_done:
                    break

                delta = extract_delta(frame, provider, reasoning_enabled)
                if delta is None:
                    continue

                content, reasoning = delta
                if not content and not reasoning:
                    continue

                content_buffer.append(content)
                reasoning_buffer.append(reasoning)
                yield StreamEvent.delta(content, reasoning)

    async def _touch_session(
        self,
        session: SessionModel,
        request: ChatStreamRequest,
        model: str,
    ) -> None:
        updates: dict[str, Any] = {"model": model}
        if session.title == self.relay_settings.default_title and request.message.strip():
            updates["title"] = self._title_for(request.message)
        await session_crud.touch(self.db, session.id, **updates)

    def _title_for(self, message: str) -> str:
        """First ``title_length`` characters of the raw message, or the default title."""
        return message[: self.relay_settings.title_length] or self.relay_settings.default_title

    async def _rollback(self) -> None:
        try:
            await self.db.rollback()
        except Exception as e:
            logger.error(
                f"{__name__}:stream_chat - Rollback failed",
                extra={"error_type": type(e).__name__, "error_msg": str(e)},
            )

    @staticmethod
    def _describe(error: Exception) -> str:
        if isinstance(error, ChatRelayException):
            return error.message
        return str(error) or type(error).__name__
