"""
Message ORM model.

Dependencies: sqlalchemy, chatrelay.boundary.db.base
System role: Conversation message persistence
"""

import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chatrelay.boundary.db.base import Base, UUIDMixin, utc_now


class MessageModel(Base, UUIDMixin):
    """
    Message ORM model.

    Messages are strictly ordered by ``created_at`` within a session.
    ``content`` holds the canonical text (attachment markers inlined for
    user messages); ``reasoning`` is only filled for reasoning models.

    Attributes:
        id: UUID primary key (auto-generated)
        session_id: Owning session
        role: "user" or "assistant"
        content: Message text
        reasoning: Optional reasoning channel text
        tokens: Optional token count
        model: Model that produced an assistant message
        attachments: Attachment metadata as submitted (JSON list)
        created_at: Insert timestamp (UTC)
    """

    __tablename__ = "messages"

    session_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(String(16), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    reasoning: Mapped[str | None] = mapped_column(Text, nullable=True)
    tokens: Mapped[int | None] = mapped_column(Integer, nullable=True)
    model: Mapped[str | None] = mapped_column(String(64), nullable=True)
    attachments: Mapped[list | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )

    session = relationship("SessionModel", back_populates="messages")
