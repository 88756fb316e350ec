"""
Client-side conversation state.

Dependencies: pydantic
System role: Conversation view model
"""

from dataclasses import dataclass, field
from datetime import datetime

from pydantic import BaseModel, Field

from chatrelay.models.attachment import Attachment
from chatrelay.models.message import MessageResponse, MessageRole
from chatrelay.models.session import SessionResponse

DEFAULT_MODEL = "deepseek-chat"

# User-facing error messages
NO_SESSION_SELECTED = "Select or create a session first"
SESSION_LOAD_FAILED = "Failed to load sessions"
MESSAGE_LOAD_FAILED = "Failed to load messages"
SESSION_CREATE_FAILED = "Failed to create session"
SESSION_DELETE_FAILED = "Failed to delete session"
GENERATION_FAILED = "Generation failed"


class ChatMessage(BaseModel):
    """
    Message as shown in the conversation.

    ``temp`` marks optimistic entries created before the relay confirmed
    the turn; they are replaced wholesale by the next authoritative load.
    """

    id: str
    role: MessageRole
    content: str = ""
    reasoning: str | None = None
    tokens: int | None = None
    model: str | None = None
    attachments: list[dict] | None = None
    created_at: datetime
    temp: bool = Field(default=False)

    @classmethod
    def from_response(cls, message: MessageResponse) -> "ChatMessage":
        return cls(
            id=str(message.id),
            role=message.role,
            content=message.content,
            reasoning=message.reasoning,
            tokens=message.tokens,
            model=message.model,
            attachments=message.attachments,
            created_at=message.created_at,
        )


@dataclass
class ConversationState:
    """Everything the chat view renders."""

    # Sessions
    sessions: list[SessionResponse] = field(default_factory=list)
    active_session_id: str | None = None
    loading_sessions: bool = False

    # Messages
    messages: list[ChatMessage] = field(default_factory=list)
    loading_messages: bool = False

    # Composer
    composer_value: str = ""
    last_submitted_input: str = ""
    attachments: list[Attachment] = field(default_factory=list)

    # Streaming
    is_streaming: bool = False
    streaming_message_id: str | None = None
    is_settling: bool = False

    model: str = DEFAULT_MODEL
    error: str | None = None
    has_initialized: bool = False

    @property
    def temp_messages(self) -> list[ChatMessage]:
        return [message for message in self.messages if message.temp]
