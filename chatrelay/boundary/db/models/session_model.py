"""
Session ORM model.

Represents one conversation with its ordered messages.

Dependencies: sqlalchemy, chatrelay.boundary.db.base
System role: Session persistence for chat context management
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chatrelay.boundary.db.base import Base, UUIDMixin, TimestampMixin


class SessionModel(Base, UUIDMixin, TimestampMixin):
    """
    Session ORM model.

    The relay creates a session on the first message of a new
    conversation and touches ``updated_at`` (and ``model``) after every
    exchange. Cascade delete removes the session's messages.

    Attributes:
        id: UUID primary key (auto-generated)
        title: Display title, derived from the first message
        model: Last model used in the session
        messages: MessageModel rows ordered by creation time
        created_at: Session creation timestamp (UTC)
        updated_at: Last exchange timestamp (UTC)
    """

    __tablename__ = "sessions"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    model: Mapped[str] = mapped_column(String(64), nullable=False)

    messages = relationship(
        "MessageModel",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="MessageModel.created_at",
    )
