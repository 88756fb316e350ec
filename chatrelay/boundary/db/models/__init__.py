"""
Database models package.

Exports:
  - SessionModel: Conversation ORM model
  - MessageModel: Message ORM model

Dependencies: sqlalchemy, chatrelay.boundary.db.base
System role: Database model definitions for domain entities
"""

from chatrelay.boundary.db.models.session_model import SessionModel
from chatrelay.boundary.db.models.message_model import MessageModel

__all__ = [
    "SessionModel",
    "MessageModel",
]
