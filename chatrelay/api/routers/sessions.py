"""
Session API endpoints.

Routes:
- POST /sessions - Create new session
- GET /sessions - List sessions, most recently updated first
- DELETE /sessions/{id} - Delete session and its messages
- GET /sessions/{id}/messages - List a session's messages

Dependencies: chatrelay.application.services.session_service, chatrelay.models
System role: Session management HTTP API
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from chatrelay.application.services.session_service import SessionService
from chatrelay.api.deps import get_session_service
from chatrelay.core.exceptions import PersistenceError, SessionNotFoundError
from chatrelay.models.message import MessageResponse
from chatrelay.models.session import CreateSessionRequest, SessionResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("", response_model=SessionResponse)
async def create_session(
    request: CreateSessionRequest,
    session_service: SessionService = Depends(get_session_service),
) -> SessionResponse:
    """
    Create new session with optional title and model.

    Args:
        request: CreateSessionRequest
        session_service: Injected SessionService

    Returns:
        SessionResponse: Created session

    Raises:
        HTTPException(500): Session could not be stored
    """
    try:
        return await session_service.create_session(title=request.title, model=request.model)
    except PersistenceError as e:
        logger.exception("Session creation failed", extra={"error_msg": str(e)})
        raise HTTPException(
            status_code=500,
            detail=f"Session creation failed: {e.message}"
        )


@router.get("", response_model=list[SessionResponse])
async def list_sessions(
    limit: int = 100,
    offset: int = 0,
    session_service: SessionService = Depends(get_session_service),
) -> list[SessionResponse]:
    """
    List sessions with pagination.

    Args:
        limit: Maximum number of sessions (default 100)
        offset: Number to skip (default 0)
        session_service: Injected SessionService

    Returns:
        list[SessionResponse]: Sessions ordered by updated_at descending

    Raises:
        HTTPException(500): Database read failed
    """
    try:
        return await session_service.list_sessions(limit=limit, offset=offset)
    except PersistenceError as e:
        logger.exception("Session listing failed", extra={"error_msg": str(e)})
        raise HTTPException(
            status_code=500,
            detail=f"Failed to retrieve sessions: {e.message}"
        )


@router.delete("/{session_id}", status_code=204)
async def delete_session(
    session_id: UUID,
    session_service: SessionService = Depends(get_session_service),
) -> None:
    """
    Delete session by ID.

    Args:
        session_id: Session UUID
        session_service: Injected SessionService

    Returns:
        204 No Content on success

    Raises:
        HTTPException(404): Session not found
        HTTPException(500): Database write failed
    """
    try:
        await session_service.delete_session(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except PersistenceError as e:
        logger.exception("Session deletion failed", extra={"session_id": str(session_id)})
        raise HTTPException(
            status_code=500,
            detail=f"Session deletion failed: {e.message}"
        )


@router.get("/{session_id}/messages", response_model=list[MessageResponse])
async def list_messages(
    session_id: UUID,
    limit: int | None = None,
    session_service: SessionService = Depends(get_session_service),
) -> list[MessageResponse]:
    """
    Get the ordered message list of a session.

    Args:
        session_id: Session UUID
        limit: Maximum number of messages to return (default all)
        session_service: Injected SessionService

    Returns:
        list[MessageResponse]: Messages ordered by created_at

    Raises:
        HTTPException(404): Session not found
        HTTPException(500): Database read failed
    """
    try:
        return await session_service.list_messages(session_id, limit=limit)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except PersistenceError as e:
        logger.exception("Message listing failed", extra={"session_id": str(session_id)})
        raise HTTPException(
            status_code=500,
            detail=f"Failed to retrieve messages: {e.message}",
        )
