"""
Note Service

Public operations over the note collection: capture, edit, delete,
semantic search, related notes, relationship graph and embedding backfill.

Every operation returns an ``OperationResult`` and never raises (task
cancellation excepted). Embeddings are computed before the store is
touched, so a failed, timed-out or cancelled embedding leaves no trace.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Sequence
from typing import TypeVar

from notegraph.core.config import Settings
from notegraph.core.errors import (
    EmbeddingError,
    NotegraphError,
    NotFoundError,
    ValidationError,
)
from notegraph.schemas.graph import GraphSnapshot
from notegraph.schemas.notes import MAX_CONTENT_LENGTH, Note, SimilarityResult
from notegraph.schemas.results import OperationResult
from notegraph.services.embedding_codec import Vector
from notegraph.services.embeddings import EmbeddingProvider
from notegraph.services.graph import DEFAULT_NEIGHBORS, GraphBuilder
from notegraph.services.note_store import NoteStore
from notegraph.services.similarity import SimilarityIndex

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_RETRIES = 3
RETRY_DELAY_SECONDS = 2  # Base delay, multiplied by attempt number (linear backoff)


class NoteService:
    """
    Facade wiring a NoteStore to an EmbeddingProvider.

    Usage::

        service = NoteService(InMemoryNoteStore(), HashEmbeddingProvider(64))
        created = await service.create_note("I love hiking in the mountains")
        assert created.success
        hits = await service.search_notes("mountains", limit=5)
    """

    def __init__(
        self,
        store: NoteStore,
        embedder: EmbeddingProvider,
        *,
        neighbors: int = DEFAULT_NEIGHBORS,
        embedding_timeout: float = 30.0,
        search_min_similarity: float = 0.5,
        related_min_similarity: float = 0.3,
        retry_delay: float = RETRY_DELAY_SECONDS,
    ) -> None:
        self.store = store
        self.embedder = embedder
        self.embedding_timeout = embedding_timeout
        self.search_min_similarity = search_min_similarity
        self.related_min_similarity = related_min_similarity
        self.retry_delay = retry_delay
        self.similarity_index = SimilarityIndex(dimension=embedder.dimension)
        self.graph_builder = GraphBuilder(neighbors=neighbors, dimension=embedder.dimension)

    @classmethod
    def from_settings(
        cls, store: NoteStore, embedder: EmbeddingProvider, config: Settings
    ) -> NoteService:
        return cls(
            store,
            embedder,
            neighbors=config.GRAPH_NEIGHBORS,
            embedding_timeout=config.EMBEDDING_TIMEOUT,
            search_min_similarity=config.SEARCH_MIN_SIMILARITY,
            related_min_similarity=config.RELATED_MIN_SIMILARITY,
        )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def create_note(self, content: str) -> OperationResult[Note]:
        """Embed ``content`` and store it as a new note."""
        return await self._guard("create_note", self._create(content))

    async def get_note(self, note_id: int) -> OperationResult[Note]:
        return await self._guard("get_note", self.store.get(note_id))

    async def get_notes(self) -> OperationResult[list[Note]]:
        """All notes, newest first."""
        return await self._guard("get_notes", self.store.list())

    async def search_notes(
        self,
        query: str,
        limit: int = 5,
        min_similarity: float | None = None,
    ) -> OperationResult[list[SimilarityResult]]:
        """
        Semantic search: embed ``query`` and rank notes by cosine similarity.

        Args:
            query: Free text.
            limit: Maximum number of results.
            min_similarity: Score floor; the configured default when None.
        """
        return await self._guard("search_notes", self._search(query, limit, min_similarity))

    async def update_note(self, note_id: int, content: str) -> OperationResult[Note]:
        """Replace a note's content and embedding together."""
        return await self._guard("update_note", self._update(note_id, content))

    async def delete_note(self, note_id: int) -> OperationResult[int]:
        """Delete a note; ``data`` is the deleted id."""
        return await self._guard("delete_note", self._delete(note_id))

    async def get_graph_data(
        self, neighbors: int | None = None
    ) -> OperationResult[GraphSnapshot]:
        """Relationship graph of the current collection."""
        return await self._guard("get_graph_data", self._graph(neighbors))

    async def get_related_notes(
        self, note_id: int, limit: int = 5
    ) -> OperationResult[list[SimilarityResult]]:
        """Notes most similar to ``note_id``, excluding the note itself."""
        return await self._guard("get_related_notes", self._related(note_id, limit))

    async def backfill_embeddings(
        self, batch_size: int = 16, max_retries: int = MAX_RETRIES
    ) -> OperationResult[int]:
        """
        Embed stored notes that have no usable embedding.

        Notes are embedded in batches of ``batch_size``; a failing batch is
        retried with linear backoff before the operation gives up. Notes
        already embedded by the time the batch finishes are left alone.

        Returns:
            Result whose ``data`` is the number of notes updated.
        """
        return await self._guard(
            "backfill_embeddings", self._backfill(batch_size, max_retries)
        )

    # ------------------------------------------------------------------
    # Implementation
    # ------------------------------------------------------------------

    async def _guard(self, operation: str, action: Awaitable[T]) -> OperationResult[T]:
        try:
            return OperationResult.ok(await action)
        except NotegraphError as e:
            logger.warning("%s failed (%s): %s", operation, e.code, e.message)
            return OperationResult.fail(e)
        except Exception:
            logger.exception("%s failed unexpectedly", operation)
            return OperationResult.fail(
                NotegraphError(f"Unexpected error during {operation}")
            )

    async def _create(self, content: str) -> Note:
        text = _clean_content(content)
        embedding = await self._embed(text)
        note = await self.store.insert(text, embedding)
        logger.info("Note %d created", note.id)
        return note

    async def _search(
        self, query: str, limit: int, min_similarity: float | None
    ) -> list[SimilarityResult]:
        text = query.strip() if isinstance(query, str) else ""
        if not text:
            raise ValidationError("Search query must not be empty")

        threshold = self.search_min_similarity if min_similarity is None else min_similarity
        query_embedding = await self._embed(text)
        notes = await self.store.list()
        results = self.similarity_index.query(notes, query_embedding, limit, threshold)
        logger.info(
            "Search returned %d/%d notes (threshold=%.2f)", len(results), len(notes), threshold
        )
        return results

    async def _update(self, note_id: int, content: str) -> Note:
        text = _clean_content(content)
        await self.store.get(note_id)  # NotFound before paying for an embedding
        embedding = await self._embed(text)
        note = await self.store.update(note_id, text, embedding)
        logger.info("Note %d updated and re-embedded", note_id)
        return note

    async def _delete(self, note_id: int) -> int:
        await self.store.delete(note_id)
        logger.info("Note %d deleted", note_id)
        return note_id

    async def _graph(self, neighbors: int | None) -> GraphSnapshot:
        if neighbors is not None and neighbors < 1:
            raise ValidationError("neighbors must be at least 1")
        notes = await self.store.list()
        return self.graph_builder.build(notes, neighbors)

    async def _related(self, note_id: int, limit: int) -> list[SimilarityResult]:
        anchor = await self.store.get(note_id)
        if anchor.embedding is None:
            logger.info("Note %d has no embedding, no related notes", note_id)
            return []
        notes = await self.store.list()
        return self.similarity_index.query(
            notes,
            anchor.embedding,
            limit,
            self.related_min_similarity,
            exclude_ids={note_id},
        )

    async def _backfill(self, batch_size: int, max_retries: int) -> int:
        if batch_size < 1:
            raise ValidationError("batch_size must be at least 1")

        pending = [note for note in await self.store.list() if note.embedding is None]
        if not pending:
            logger.info("Backfill: every note already has an embedding")
            return 0

        updated = 0
        for start in range(0, len(pending), batch_size):
            batch = pending[start : start + batch_size]
            vectors = await self._embed_batch_with_retry(
                [note.content for note in batch], max_retries
            )
            for note, vector in zip(batch, vectors):
                if await self._store_backfilled(note, vector):
                    updated += 1

        logger.info("Backfill: %d/%d notes embedded", updated, len(pending))
        return updated

    async def _store_backfilled(self, note: Note, vector: Vector) -> bool:
        try:
            current = await self.store.get(note.id)
            if current.embedding is not None or current.content != note.content:
                return False  # Edited or re-embedded meanwhile
            await self.store.update(note.id, note.content, vector)
        except NotFoundError:
            return False  # Deleted meanwhile
        return True

    async def _embed(self, text: str) -> Vector:
        try:
            return await asyncio.wait_for(
                self.embedder.embed(text), timeout=self.embedding_timeout
            )
        except TimeoutError as e:
            raise EmbeddingError(
                f"Embedding timed out after {self.embedding_timeout:g}s"
            ) from e

    async def _embed_batch_with_retry(
        self, texts: Sequence[str], max_retries: int
    ) -> list[Vector]:
        for attempt in range(max_retries):
            try:
                return await asyncio.wait_for(
                    self.embedder.embed_batch(texts), timeout=self.embedding_timeout
                )
            except (EmbeddingError, TimeoutError) as e:
                logger.error(
                    "Batch embedding failed (attempt %d/%d): %s",
                    attempt + 1,
                    max_retries,
                    e,
                )
                if attempt < max_retries - 1:
                    await asyncio.sleep(self.retry_delay * (attempt + 1))
        raise EmbeddingError(f"Batch embedding failed after {max_retries} attempts")


def _clean_content(content: str) -> str:
    text = content.strip() if isinstance(content, str) else ""
    if not text:
        raise ValidationError("Note content must not be empty")
    if len(text) > MAX_CONTENT_LENGTH:
        raise ValidationError(
            f"Note content exceeds {MAX_CONTENT_LENGTH} characters"
        )
    return text
