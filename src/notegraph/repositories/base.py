"""
Base Repository

Generic repository pattern implementation for async SQLAlchemy CRUD operations.

Methods only ``flush``: the caller owns the transaction (``session.begin()``)
so that several repository calls can commit or roll back together.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from notegraph.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository providing common CRUD operations.

    All methods expect an externally managed session.

    Usage:
        class NoteRepository(BaseRepository[NoteRecord]):
            def __init__(self):
                super().__init__(NoteRecord)
    """

    def __init__(self, model: type[ModelType]):
        self.model = model

    async def create(self, session: AsyncSession, **values: Any) -> ModelType:
        """
        Create a new record.

        Returns:
            The created entity with generated fields (id, timestamps) loaded.
        """
        db_obj = self.model(**values)
        session.add(db_obj)
        await session.flush()
        await session.refresh(db_obj)
        return db_obj

    async def get_by_id(
        self,
        session: AsyncSession,
        id: int,
        for_update: bool = False,
    ) -> ModelType | None:
        """
        Get a record by primary key. Returns None if not found.

        ``for_update`` takes a row lock (SELECT ... FOR UPDATE) where the
        dialect supports it.
        """
        stmt = select(self.model).where(self.model.id == id)  # type: ignore[attr-defined]
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        return result.scalars().first()

    async def update(
        self,
        session: AsyncSession,
        db_obj: ModelType,
        **values: Any,
    ) -> ModelType:
        """Set the given fields on an existing record."""
        for field, value in values.items():
            setattr(db_obj, field, value)
        await session.flush()
        await session.refresh(db_obj)
        return db_obj

    async def delete(self, session: AsyncSession, db_obj: ModelType) -> None:
        """Hard delete."""
        await session.delete(db_obj)
        await session.flush()
