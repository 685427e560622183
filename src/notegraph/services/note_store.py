"""
Note Store

Authoritative collection of notes. Two implementations share the
``NoteStore`` interface:

    - InMemoryNoteStore (this module): development, tests, single-process use.
    - SqlNoteStore (``notegraph.repositories.notes``): PostgreSQL/pgvector.

Contract for every implementation:
    - Mutations are serialized; a reader never sees a half-written note.
    - ``list()`` returns a consistent snapshot, newest-created first.
    - Unknown ids raise ``NotFoundError``; persistence failures raise
      ``StorageError``.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from datetime import UTC, datetime

from notegraph.core.errors import NotFoundError
from notegraph.schemas.notes import Note

logger = logging.getLogger(__name__)


def newest_first(notes: Sequence[Note]) -> list[Note]:
    """Sort by creation time descending, higher id first on equal timestamps."""
    return sorted(notes, key=lambda n: (n.created_at, n.id), reverse=True)


class NoteStore(ABC):
    """Async interface over the note collection."""

    @abstractmethod
    async def insert(self, content: str, embedding: Sequence[float]) -> Note:
        """Assign an id, stamp creation time and store the note."""

    @abstractmethod
    async def update(
        self, note_id: int, content: str, embedding: Sequence[float]
    ) -> Note:
        """Replace content and embedding together."""

    @abstractmethod
    async def delete(self, note_id: int) -> None:
        """Remove a note."""

    @abstractmethod
    async def get(self, note_id: int) -> Note:
        """Fetch a single note."""

    @abstractmethod
    async def list(self) -> list[Note]:
        """Snapshot of all notes, newest-created first."""

    async def close(self) -> None:  # noqa: B027
        """Release resources held by the store."""


class InMemoryNoteStore(NoteStore):
    """
    Process-local note store.

    Writers build a new dict and swap the reference under a lock
    (copy-on-write); readers take the current reference once, which is an
    immutable snapshot since ``Note`` is frozen.

    Usage::

        store = InMemoryNoteStore()
        note = await store.insert("hello", [0.1, 0.2])
        assert (await store.list())[0].id == note.id
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._notes: dict[int, Note] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()
        self._clock = clock or (lambda: datetime.now(UTC))

    async def insert(self, content: str, embedding: Sequence[float]) -> Note:
        async with self._lock:
            note = Note(
                id=next(self._ids),
                content=content,
                created_at=self._clock(),
                embedding=tuple(embedding),
            )
            self._notes = {**self._notes, note.id: note}
        logger.debug("Inserted note %d", note.id)
        return note

    async def update(
        self, note_id: int, content: str, embedding: Sequence[float]
    ) -> Note:
        async with self._lock:
            current = self._notes.get(note_id)
            if current is None:
                raise NotFoundError(note_id)
            note = current.model_copy(
                update={
                    "content": content,
                    "embedding": tuple(embedding),
                    "updated_at": self._clock(),
                }
            )
            self._notes = {**self._notes, note_id: note}
        logger.debug("Updated note %d", note_id)
        return note

    async def delete(self, note_id: int) -> None:
        async with self._lock:
            if note_id not in self._notes:
                raise NotFoundError(note_id)
            notes = dict(self._notes)
            del notes[note_id]
            self._notes = notes
        logger.debug("Deleted note %d", note_id)

    async def get(self, note_id: int) -> Note:
        note = self._notes.get(note_id)
        if note is None:
            raise NotFoundError(note_id)
        return note

    async def list(self) -> list[Note]:
        snapshot = self._notes
        return newest_first(list(snapshot.values()))
