"""
Generic async CRUD for the knowledge base tables.

BaseCRUD wraps the primary-key operations every table needs plus the shared
list/count/delete helpers used by the document, chunk, conversation, message
and settings CRUD singletons. Methods flush but never commit: the calling
service owns the transaction.

Dependencies: sqlalchemy
System role: Foundation for all database CRUD operations
"""

from typing import Any, Generic, Sequence, TypeVar
from uuid import UUID

from sqlalchemy import ColumnElement, Select, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from buddy.boundary.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


def paginate(stmt: Select, limit: int | None, offset: int = 0) -> Select:
    """Apply offset and an optional limit (None returns every row)."""
    stmt = stmt.offset(offset)
    if limit is not None:
        stmt = stmt.limit(limit)
    return stmt


class BaseCRUD(Generic[ModelT]):
    """
    Shared operations for one mapped model.

    Attributes:
        model: Mapped class whose table the instance reads and writes
    """

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model

    async def create(self, session: AsyncSession, **values: Any) -> ModelT:
        """
        Insert a row and load its generated id and timestamps.

        Args:
            session: Async database session
            **values: Column values

        Returns:
            The flushed and refreshed instance
        """
        instance = self.model(**values)
        session.add(instance)
        await session.flush()
        await session.refresh(instance)
        return instance

    async def get_by_id(self, session: AsyncSession, id: UUID) -> ModelT | None:
        stmt = select(self.model).where(self.model.id == id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_all(
        self,
        session: AsyncSession,
        limit: int | None = None,
        offset: int = 0,
        order_by: ColumnElement | None = None,
    ) -> Sequence[ModelT]:
        """
        List rows, optionally ordered and paged.

        Args:
            session: Async database session
            limit: Page size (None for all rows)
            offset: Rows to skip
            order_by: Ordering clause, e.g. Model.created_at.desc()

        Returns:
            Sequence of instances
        """
        stmt = select(self.model)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        result = await session.execute(paginate(stmt, limit, offset))
        return result.scalars().all()

    async def count(self, session: AsyncSession, *criteria: ColumnElement[bool]) -> int:
        """Count rows matching every criterion (all rows when none given)."""
        stmt = select(func.count()).select_from(self.model).where(*criteria)
        result = await session.execute(stmt)
        return int(result.scalar_one())

    async def update_by_id(self, session: AsyncSession, id: UUID, **values: Any) -> ModelT | None:
        """
        Update one row in place.

        Returns:
            The updated instance, None when the id is unknown
        """
        stmt = (
            update(self.model)
            .where(self.model.id == id)
            .values(**values)
            .returning(self.model)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def delete_by_id(self, session: AsyncSession, id: UUID) -> bool:
        """Delete one row; False when it did not exist."""
        return await self.delete_where(session, self.model.id == id) > 0

    async def delete_many(self, session: AsyncSession, ids: Sequence[UUID]) -> int:
        """Delete rows by id, ignoring unknown ids; returns the number removed."""
        if not ids:
            return 0
        return await self.delete_where(session, self.model.id.in_(ids))

    async def delete_where(self, session: AsyncSession, *criteria: ColumnElement[bool]) -> int:
        result = await session.execute(delete(self.model).where(*criteria))
        return result.rowcount

    async def exists(self, session: AsyncSession, id: UUID) -> bool:
        stmt = select(self.model.id).where(self.model.id == id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None
