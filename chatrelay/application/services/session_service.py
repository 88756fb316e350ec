"""
Session service orchestrator.

Coordinates session lifecycle operations and message listing for the
collaborator REST surface.

Dependencies: chatrelay.boundary.db.CRUD
System role: Session use case orchestration
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from chatrelay.boundary.db.CRUD.base_crud import commit_or_raise
from chatrelay.boundary.db.CRUD.message_crud import message_crud
from chatrelay.boundary.db.CRUD.session_crud import session_crud
from chatrelay.configs.relay import RelaySettings
from chatrelay.core.exceptions import SessionNotFoundError
from chatrelay.models.message import MessageResponse
from chatrelay.models.session import SessionResponse


class SessionService:
    """Session service orchestrator."""

    def __init__(self, db: AsyncSession, relay_settings: RelaySettings) -> None:
        """
        Initialize session service with async database session.

        Args:
            db: Async SQLAlchemy session
            relay_settings: Defaults for new sessions
        """
        self.db = db
        self.relay_settings = relay_settings

    async def create_session(
        self,
        title: str | None = None,
        model: str | None = None,
    ) -> SessionResponse:
        """
        Create a new, empty session.

        Args:
            title: Optional title (defaults to the placeholder title)
            model: Optional model (defaults to the relay default model)

        Returns:
            SessionResponse: Created session
        """
        session = await session_crud.create(
            self.db,
            title=title or self.relay_settings.default_title,
            model=model or self.relay_settings.default_model,
        )
        await commit_or_raise(self.db, "create_session")
        return SessionResponse.model_validate(session)

    async def get_session(self, session_id: UUID) -> SessionResponse:
        """
        Get session by ID.

        Args:
            session_id: Session UUID

        Returns:
            SessionResponse: Session data

        Raises:
            SessionNotFoundError: If session not found
        """
        session = await session_crud.get_by_id(self.db, session_id)

        if not session:
            raise SessionNotFoundError(str(session_id))

        return SessionResponse.model_validate(session)

    async def list_sessions(
        self,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[SessionResponse]:
        """
        List sessions, most recently updated first.

        Args:
            limit: Maximum number of sessions to return
            offset: Number of sessions to skip

        Returns:
            list[SessionResponse]: Sessions
        """
        sessions = await session_crud.list_recent(self.db, limit=limit, offset=offset)
        return [SessionResponse.model_validate(s) for s in sessions]

    async def delete_session(self, session_id: UUID) -> None:
        """
        Delete session and its messages.

        Args:
            session_id: Session UUID

        Raises:
            SessionNotFoundError: If session not found
        """
        deleted = await session_crud.delete_by_id(self.db, session_id)

        if not deleted:
            raise SessionNotFoundError(str(session_id))

        await commit_or_raise(self.db, "delete_session")

    async def list_messages(
        self,
        session_id: UUID,
        limit: int | None = None,
    ) -> list[MessageResponse]:
        """
        List a session's messages in conversation order.

        Args:
            session_id: Session UUID
            limit: Maximum number of messages

        Returns:
            list[MessageResponse]: Messages ordered by created_at

        Raises:
            SessionNotFoundError: If session not found
        """
        if not await session_crud.exists(self.db, session_id):
            raise SessionNotFoundError(str(session_id))

        messages = await message_crud.list_for_session(self.db, session_id, limit=limit)
        return [MessageResponse.model_validate(m) for m in messages]
