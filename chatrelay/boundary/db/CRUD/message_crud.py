"""
Message CRUD operations.

Dependencies: sqlalchemy, chatrelay.boundary.db.models
System role: Message persistence operations
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chatrelay.boundary.db.models.message_model import MessageModel
from chatrelay.boundary.db.CRUD.base_crud import BaseCRUD


class MessageCRUD(BaseCRUD[MessageModel]):
    """CRUD operations for MessageModel, always scoped to one session."""

    def __init__(self) -> None:
        """Initialize MessageCRUD with MessageModel."""
        super().__init__(MessageModel)

    async def list_for_session(
        self,
        session: AsyncSession,
        session_id: UUID,
        limit: int | None = None,
    ) -> Sequence[MessageModel]:
        """
        Retrieve a session's messages in conversation order.

        Args:
            session: Async database session
            session_id: Owning session UUID
            limit: Maximum number of messages (oldest first)

        Returns:
            Sequence of MessageModels ordered by created_at ascending
        """
        stmt = (
            select(MessageModel)
            .where(MessageModel.session_id == session_id)
            .order_by(MessageModel.created_at.asc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._guard("list_messages", session.execute(stmt))
        return result.scalars().all()

    async def list_history(
        self,
        session: AsyncSession,
        session_id: UUID,
    ) -> list[tuple[str, str]]:
        """
        Retrieve ``(role, content)`` pairs for use as provider context.

        Args:
            session: Async database session
            session_id: Owning session UUID

        Returns:
            list of (role, content) tuples ordered by created_at
        """
        stmt = (
            select(MessageModel.role, MessageModel.content)
            .where(MessageModel.session_id == session_id)
            .order_by(MessageModel.created_at.asc())
        )
        result = await self._guard("load_history", session.execute(stmt))
        return [(row.role, row.content) for row in result.all()]


message_crud = MessageCRUD()
