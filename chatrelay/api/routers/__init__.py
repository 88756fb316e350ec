"""API routers."""

from .chat_stream import router as chat_stream_router
from .health import router as health_router
from .sessions import router as sessions_router

__all__ = [
    "chat_stream_router",
    "health_router",
    "sessions_router",
]
