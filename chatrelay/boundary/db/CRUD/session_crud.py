"""
Session CRUD operations.

Provides Create, Read, Update, Delete operations for SessionModel
with session-specific query methods.

Dependencies: sqlalchemy, chatrelay.boundary.db.models
System role: Session persistence operations
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chatrelay.boundary.db.base import utc_now
from chatrelay.boundary.db.models.session_model import SessionModel
from chatrelay.boundary.db.CRUD.base_crud import BaseCRUD


class SessionCRUD(BaseCRUD[SessionModel]):
    """
    CRUD operations for SessionModel.

    Extends BaseCRUD with recency ordering and the post-exchange touch.
    """

    def __init__(self) -> None:
        """Initialize SessionCRUD with SessionModel."""
        super().__init__(SessionModel)

    async def list_recent(
        self,
        session: AsyncSession,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[SessionModel]:
        """
        Retrieve sessions, most recently updated first.

        Args:
            session: Async database session
            limit: Maximum number of sessions to return
            offset: Number of sessions to skip

        Returns:
            Sequence of SessionModels
        """
        stmt = (
            select(SessionModel)
            .order_by(SessionModel.updated_at.desc())
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._guard("list_sessions", session.execute(stmt))
        return result.scalars().all()

    async def touch(
        self,
        session: AsyncSession,
        id: UUID,
        **kwargs,
    ) -> SessionModel | None:
        """
        Set ``updated_at`` to now, together with any other given fields.

        Args:
            session: Async database session
            id: Session UUID
            **kwargs: Additional fields to update (model, title)

        Returns:
            Updated SessionModel if found, None otherwise
        """
        return await self.update_by_id(session, id, updated_at=utc_now(), **kwargs)


session_crud = SessionCRUD()
