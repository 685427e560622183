"""
Similarity Index

Exact (brute-force) cosine ranking of notes against a query vector.
Stateless: every query runs over the snapshot it is given.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Sequence

from notegraph.schemas.notes import Note, SimilarityResult
from notegraph.services.vector_math import cosine_similarity

logger = logging.getLogger(__name__)


def embedded_notes(notes: Sequence[Note], dimension: int | None = None) -> list[Note]:
    """
    Notes that can take part in similarity computations.

    Drops notes without an embedding and, when ``dimension`` is given,
    notes whose embedding has a different length.
    """
    usable = [
        note
        for note in notes
        if note.embedding
        and (dimension is None or len(note.embedding) == dimension)
    ]
    skipped = len(notes) - len(usable)
    if skipped:
        logger.debug("Skipped %d note(s) without a usable embedding", skipped)
    return usable


class SimilarityIndex:
    """
    Ranks notes by cosine similarity to a query embedding.

    Ordering: score descending, then the newer note first (``created_at``,
    then id) so equal scores come back in a deterministic order.
    """

    def __init__(self, dimension: int | None = None) -> None:
        self.dimension = dimension

    def query(
        self,
        notes: Sequence[Note],
        query_embedding: Sequence[float],
        k: int,
        min_threshold: float = -1.0,
        exclude_ids: Collection[int] = (),
    ) -> list[SimilarityResult]:
        """
        Return at most ``k`` notes scoring at least ``min_threshold``.

        Args:
            notes: Snapshot to search.
            query_embedding: Query vector.
            k: Maximum number of results; ``k <= 0`` returns nothing.
            min_threshold: Minimum cosine similarity to keep a note.
            exclude_ids: Note ids never returned (e.g. the anchor note of a
                related-notes query).

        Returns:
            Ranked results, best first. Empty when nothing clears the
            threshold.
        """
        if k <= 0:
            return []

        scored: list[tuple[float, Note]] = []
        for note in embedded_notes(notes, self.dimension):
            if note.id in exclude_ids:
                continue
            score = cosine_similarity(query_embedding, note.embedding or ())
            if score >= min_threshold:
                scored.append((score, note))

        scored.sort(key=lambda item: (item[0], item[1].created_at, item[1].id), reverse=True)

        return [
            SimilarityResult(note_id=note.id, score=score, rank=rank, note=note)
            for rank, (score, note) in enumerate(scored[:k], start=1)
        ]
