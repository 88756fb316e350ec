"""
Streaming event schemas for the SSE chat relay.

Defines event types and payloads for the relay's session stream.

Dependencies: pydantic, chatrelay.core.sse
System role: Streaming protocol schemas
"""

from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from chatrelay.core.sse import encode_event


class StreamEventType(str, Enum):
    """Server-to-client event types for streaming chat."""

    SESSION = "session"
    DELTA = "delta"
    COMPLETE = "complete"
    ERROR = "error"


class StreamEvent(BaseModel):
    """
    Base streaming event model.

    Attributes:
        event: Event type identifier
        data: Event-specific payload
    """

    event: StreamEventType
    data: dict[str, Any]

    def encode(self) -> bytes:
        """Render as one SSE frame."""
        return encode_event(self.event.value, self.data)

    @classmethod
    def session(cls, session_id: UUID, session: dict[str, Any] | None = None) -> "StreamEvent":
        data: dict[str, Any] = {"type": "session", "sessionId": session_id}
        if session is not None:
            data["session"] = session
        return cls(event=StreamEventType.SESSION, data=data)

    @classmethod
    def delta(cls, content: str, reasoning: str = "") -> "StreamEvent":
        return cls(
            event=StreamEventType.DELTA,
            data={"type": "delta", "content": content, "reasoning": reasoning},
        )

    @classmethod
    def complete(
        cls,
        session_id: UUID,
        message_id: UUID | None,
        reasoning: str,
    ) -> "StreamEvent":
        return cls(
            event=StreamEventType.COMPLETE,
            data={
                "type": "complete",
                "sessionId": session_id,
                "messageId": message_id,
                "reasoning": reasoning,
            },
        )

    @classmethod
    def error(cls, message: str) -> "StreamEvent":
        return cls(event=StreamEventType.ERROR, data={"type": "error", "message": message})
