"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from chatrelay.boundary.db.CRUD import session_crud, message_crud

    # Use singleton instances
    session = await session_crud.get_by_id(db, session_id)

    # Or instantiate classes directly for custom behavior
    from chatrelay.boundary.db.CRUD import SessionCRUD
    custom_crud = SessionCRUD()
"""

from chatrelay.boundary.db.CRUD.base_crud import BaseCRUD, commit_or_raise
from chatrelay.boundary.db.CRUD.session_crud import SessionCRUD, session_crud
from chatrelay.boundary.db.CRUD.message_crud import MessageCRUD, message_crud

__all__ = [
    "BaseCRUD",
    "commit_or_raise",
    "SessionCRUD",
    "session_crud",
    "MessageCRUD",
    "message_crud",
]
