"""
Base CRUD operations for the relay's UUID-keyed tables.

Sessions and messages share these primitives. Driver failures are
re-raised as PersistenceError naming the table and operation, so the
chat stream can report them as a single ``error`` event.

Dependencies: sqlalchemy, chatrelay.core.exceptions
System role: Foundation for session and message persistence
"""

import logging
from collections.abc import Awaitable
from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from chatrelay.boundary.db.base import Base
from chatrelay.core.exceptions import PersistenceError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)
ResultT = TypeVar("ResultT")


class BaseCRUD(Generic[ModelT]):
    """
    Primary-key operations for one table.

    Nothing here commits; callers decide the transaction boundary.

    Attributes:
        model: Mapped class (SessionModel or MessageModel)
        entity: Singular row name used in PersistenceError operations
    """

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model
        self.entity = model.__tablename__.removesuffix("s")

    async def _guard(self, operation: str, statement: Awaitable[ResultT]) -> ResultT:
        """Await a database call, converting driver errors to PersistenceError."""
        try:
            return await statement
        except SQLAlchemyError as e:
            logger.error(
                f"{__name__}:{operation} - Database error",
                extra={"entity": self.entity, "error_type": type(e).__name__, "error_msg": str(e)},
            )
            raise PersistenceError(
                f"Failed to {operation.replace('_', ' ')}",
                operation=operation,
                details={"entity": self.entity},
            ) from e

    async def create(self, session: AsyncSession, **kwargs) -> ModelT:
        """
        Insert a row and return it with generated id and timestamps.

        Raises:
            PersistenceError: If the insert fails (e.g. unknown session_id)
        """
        instance = self.model(**kwargs)
        session.add(instance)
        await self._guard(f"create_{self.entity}", session.flush())
        await self._guard(f"create_{self.entity}", session.refresh(instance))
        return instance

    async def get_by_id(self, session: AsyncSession, id: UUID) -> ModelT | None:
        stmt = select(self.model).where(self.model.id == id)
        result = await self._guard(f"read_{self.entity}", session.execute(stmt))
        return result.scalar_one_or_none()

    async def update_by_id(self, session: AsyncSession, id: UUID, **kwargs) -> ModelT | None:
        """
        Update columns of one row.

        Returns:
            Updated instance, or None when no row has this id
        """
        stmt = (
            update(self.model)
            .where(self.model.id == id)
            .values(**kwargs)
            .returning(self.model)
        )
        result = await self._guard(f"update_{self.entity}", session.execute(stmt))
        return result.scalar_one_or_none()

    async def delete_by_id(self, session: AsyncSession, id: UUID) -> bool:
        """Delete one row; dependent messages go with it via ON DELETE CASCADE."""
        stmt = delete(self.model).where(self.model.id == id)
        result = await self._guard(f"delete_{self.entity}", session.execute(stmt))
        return result.rowcount > 0

    async def exists(self, session: AsyncSession, id: UUID) -> bool:
        stmt = select(self.model.id).where(self.model.id == id)
        result = await self._guard(f"read_{self.entity}", session.execute(stmt))
        return result.scalar_one_or_none() is not None


async def commit_or_raise(session: AsyncSession, operation: str) -> None:
    """
    Commit the current transaction.

    Raises:
        PersistenceError: If the commit fails; the session is rolled back
    """
    try:
        await session.commit()
    except SQLAlchemyError as e:
        logger.error(
            f"{__name__}:{operation} - Commit failed",
            extra={"error_type": type(e).__name__, "error_msg": str(e)},
        )
        await session.rollback()
        raise PersistenceError(f"Failed to {operation.replace('_', ' ')}", operation=operation) from e
