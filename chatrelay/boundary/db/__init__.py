"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(), get_async_db(): Async connection management
  - create_all_tables(): Schema creation
  - SessionModel, MessageModel: Core domain entities
  - session_crud, message_crud: CRUD operation singletons

Dependencies: sqlalchemy, chatrelay.configs
System role: Database adapter providing persistent storage for sessions
and messages.
"""

from chatrelay.boundary.db.base import Base, TimestampMixin, UUIDMixin
from chatrelay.boundary.db.connection import (
    create_all_tables,
    get_async_db,
    get_async_engine,
    get_async_session_factory,
)
from chatrelay.boundary.db.models.session_model import SessionModel
from chatrelay.boundary.db.models.message_model import MessageModel
from chatrelay.boundary.db.CRUD import (
    BaseCRUD,
    MessageCRUD,
    SessionCRUD,
    message_crud,
    session_crud,
)

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    # Connection
    "create_all_tables",
    "get_async_db",
    "get_async_engine",
    "get_async_session_factory",
    # Models
    "SessionModel",
    "MessageModel",
    # CRUD classes
    "BaseCRUD",
    "SessionCRUD",
    "MessageCRUD",
    # CRUD singletons
    "session_crud",
    "message_crud",
]
