"""
Chat relay request schema.

Dependencies: pydantic
System role: Chat relay API contract
"""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from chatrelay.models.attachment import Attachment


class ChatStreamRequest(BaseModel):
    """
    Body of ``POST /chat``.

    ``sessionId`` is omitted for the first message of a new conversation;
    the relay then creates the session and announces it in the first event.
    """

    model_config = ConfigDict(populate_by_name=True)

    session_id: UUID | None = Field(default=None, alias="sessionId")
    message: str = Field(default="", description="User message text")
    model: str | None = Field(default=None, description="Requested model name")
    attachments: list[Attachment] = Field(default_factory=list)

    @model_validator(mode="after")
    def _require_content(self) -> "ChatStreamRequest":
        if not self.message.strip() and not self.attachments:
            raise ValueError("Missing message text")
        return self
