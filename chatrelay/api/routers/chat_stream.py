"""
SSE streaming chat endpoint.

Relays one chat turn to the upstream provider and streams the result
back as Server-Sent Events.

Routes: POST /chat, OPTIONS /chat

Server sends:
    event: session   data: {"sessionId": "...", "session": {...}?}
    event: delta     data: {"content": "...", "reasoning": "..."}
    event: complete  data: {"sessionId": "...", "messageId": "..."|null, "reasoning": "..."}
    event: error     data: {"message": "..."}

Dependencies: chatrelay.application.services.chat_service
System role: SSE streaming HTTP API
"""

import asyncio
import logging
from contextlib import aclosing

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import async_sessionmaker

from chatrelay.api.deps import (
    get_provider_client,
    get_session_factory,
    get_settings_dependency,
)
from chatrelay.application.services.chat_service import ChatService
from chatrelay.boundary.llm import ProviderClient
from chatrelay.configs import Settings
from chatrelay.core.exceptions import ValidationError
from chatrelay.models.chat import ChatStreamRequest
from chatrelay.models.common import ErrorResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["streaming"])

EVENT_STREAM_MEDIA_TYPE = "text/event-stream; charset=utf-8"
EVENT_STREAM_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "X-Accel-Buffering": "no",
}


async def _parse_request(request: Request) -> ChatStreamRequest:
    """
    Read and validate the chat body.

    Raises:
        ValidationError: With the first problem found (field set when known)
    """
    try:
        payload = await request.json()
    except ValueError as e:
        raise ValidationError("Invalid JSON payload") from e

    try:
        return ChatStreamRequest.model_validate(payload)
    except PydanticValidationError as e:
        errors = e.errors()
        if not errors:
            raise ValidationError("Invalid request") from e
        first = errors[0]
        message = first.get("msg", "Invalid request").removeprefix("Value error, ")
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        raise ValidationError(message, field=field) from e


def _bad_request(error: ValidationError) -> JSONResponse:
    body = ErrorResponse(error=error.message)
    return JSONResponse(body.model_dump(exclude_none=True), status_code=400)


@router.options("/chat")
async def chat_preflight() -> Response:
    """Answer bare OPTIONS requests (browser preflights are handled by CORSMiddleware)."""
    return Response(status_code=200)


@router.post("/chat")
async def chat_stream(
    request: Request,
    session_factory: async_sessionmaker = Depends(get_session_factory),
    provider_client: ProviderClient = Depends(get_provider_client),
    settings: Settings = Depends(get_settings_dependency),
) -> Response:
    """
    Stream one chat turn as Server-Sent Events.

    Body: ``{"sessionId"?, "message", "model"?, "attachments"?}``.
    Validation failures are answered with 400 before the stream starts;
    every later failure is reported in-band as an ``error`` event.

    Args:
        request: Incoming request (body parsed manually for 400 responses)
        session_factory: Async session factory for the stream's DB session
        provider_client: Shared provider client
        settings: Application settings

    Returns:
        StreamingResponse with ``text/event-stream`` body, or 400 JSON error
    """
    try:
        chat_request = await _parse_request(request)
    except ValidationError as e:
        logger.warning("Rejected chat request", extra={"error_msg": e.message, **e.details})
        return _bad_request(e)

    logger.info(
        "Chat stream requested",
        extra={
            "session_id": str(chat_request.session_id),
            "model": chat_request.model,
            "attachment_count": len(chat_request.attachments),
        },
    )

    async def event_stream():
        event_count = 0
        async with session_factory() as db:
            chat_service = ChatService(
                db=db,
                provider_client=provider_client,
                provider_settings=settings.providers,
                relay_settings=settings.relay,
            )
            try:
                async with aclosing(chat_service.stream_chat(chat_request)) as events:
                    async for event in events:
                        event_count += 1
                        yield event.encode()
            except asyncio.CancelledError:
                # Downstream write failed: stop reading from the provider
                logger.info(
                    "Client disconnected, chat stream abandoned",
                    extra={"session_id": str(chat_request.session_id), "events_sent": event_count},
                )
                raise

        logger.info("Chat stream completed", extra={"total_events": event_count})

    return StreamingResponse(
        event_stream(),
        media_type=EVENT_STREAM_MEDIA_TYPE,
        headers=EVENT_STREAM_HEADERS,
    )
