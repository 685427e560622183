"""
Note Repository

Data access layer for notes backed by SQLAlchemy, plus ``SqlNoteStore``,
the ``NoteStore`` implementation used with the postgres backend.

Stored embeddings go through ``parse_embedding`` on the way out. A row
whose embedding is missing or malformed is returned with
``embedding=None``, which keeps it out of search and graph results
without failing the listing.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from notegraph.core.errors import EmbeddingFormatError, NotFoundError, StorageError
from notegraph.models import NoteRecord
from notegraph.repositories.base import BaseRepository
from notegraph.schemas.notes import Note
from notegraph.services.embedding_codec import parse_embedding
from notegraph.services.note_store import NoteStore

logger = logging.getLogger(__name__)


class NoteRepository(BaseRepository[NoteRecord]):
    """
    Repository for note rows.

    Inherits standard CRUD from BaseRepository and adds:
        - list_newest_first: full listing in display order
    """

    def __init__(self) -> None:
        super().__init__(NoteRecord)

    async def list_newest_first(self, session: AsyncSession) -> Sequence[NoteRecord]:
        """All notes, newest-created first (higher id first on equal timestamps)."""
        stmt = select(NoteRecord).order_by(
            NoteRecord.created_at.desc(), NoteRecord.id.desc()
        )
        result = await session.execute(stmt)
        return result.scalars().all()


# Module-level instance for function-based use
note_repository = NoteRepository()


class SqlNoteStore(NoteStore):
    """
    NoteStore over an async SQLAlchemy session factory.

    Each mutation runs in its own transaction (atomic replace-on-write);
    ``list()`` is a single SELECT, hence a consistent snapshot.

    Args:
        session_factory: ``async_sessionmaker`` bound to the target engine.
        dimension: Expected embedding dimension. Rows with another length
            are returned without an embedding.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        dimension: int | None = None,
        repository: NoteRepository | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._dimension = dimension
        self._repo = repository or note_repository

    async def insert(self, content: str, embedding: Sequence[float]) -> Note:
        try:
            async with self._session_factory() as session, session.begin():
                record = await self._repo.create(
                    session, content=content, embedding=list(embedding)
                )
                note = self._to_domain(record)
        except SQLAlchemyError as e:
            raise StorageError(f"Could not insert note: {e}") from e
        logger.info("Note %d stored", note.id)
        return note

    async def update(
        self, note_id: int, content: str, embedding: Sequence[float]
    ) -> Note:
        try:
            async with self._session_factory() as session, session.begin():
                record = await self._repo.get_by_id(session, note_id, for_update=True)
                if record is None:
                    raise NotFoundError(note_id)
                record = await self._repo.update(
                    session, record, content=content, embedding=list(embedding)
                )
                note = self._to_domain(record)
        except SQLAlchemyError as e:
            raise StorageError(f"Could not update note {note_id}: {e}") from e
        logger.info("Note %d updated", note_id)
        return note

    async def delete(self, note_id: int) -> None:
        try:
            async with self._session_factory() as session, session.begin():
                record = await self._repo.get_by_id(session, note_id, for_update=True)
                if record is None:
                    raise NotFoundError(note_id)
                await self._repo.delete(session, record)
        except SQLAlchemyError as e:
            raise StorageError(f"Could not delete note {note_id}: {e}") from e
        logger.info("Note %d deleted", note_id)

    async def get(self, note_id: int) -> Note:
        try:
            async with self._session_factory() as session:
                record = await self._repo.get_by_id(session, note_id)
                if record is None:
                    raise NotFoundError(note_id)
                return self._to_domain(record)
        except SQLAlchemyError as e:
            raise StorageError(f"Could not read note {note_id}: {e}") from e

    async def list(self) -> list[Note]:
        try:
            async with self._session_factory() as session:
                records = await self._repo.list_newest_first(session)
                return [self._to_domain(record) for record in records]
        except SQLAlchemyError as e:
            raise StorageError(f"Could not list notes: {e}") from e

    def _to_domain(self, record: NoteRecord) -> Note:
        embedding = None
        if record.embedding is not None:
            try:
                embedding = parse_embedding(record.embedding, self._dimension)
            except EmbeddingFormatError as e:
                logger.warning("Note %d has an unusable embedding: %s", record.id, e)
        return Note(
            id=record.id,
            content=record.content,
            created_at=record.created_at,
            updated_at=record.updated_at,
            embedding=embedding,
        )
