"""Service orchestrators."""

from .chat_service import ChatService
from .session_service import SessionService

__all__ = [
    "ChatService",
    "SessionService",
]
