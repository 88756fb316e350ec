"""
Message domain models and schemas.

Dependencies: pydantic
System role: Message API contracts
"""

import enum
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(str, enum.Enum):
    """Author of a conversation message."""

    USER = "user"
    ASSISTANT = "assistant"


class MessageResponse(BaseModel):
    """Single persisted message."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    session_id: uuid.UUID
    role: MessageRole
    content: str
    reasoning: str | None = None
    tokens: int | None = None
    model: str | None = None
    attachments: list[dict] | None = Field(default=None, description="Attachment metadata as submitted")
    created_at: datetime
