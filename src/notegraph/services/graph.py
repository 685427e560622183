"""
Graph Builder

Relationship graph over the note collection using symmetric top-K union
sparsification:

    1. Keep notes with a usable embedding (V). Fewer than two: no edges.
    2. Compute all pairwise cosine similarities.
    3. For every note, pick its K most similar other notes (ties broken by
       ascending note id). No absolute threshold is applied, so every note
       gets at least one edge even in a weakly related collection.
    4. Union those (note, neighbour) pairs as undirected edges keyed by the
       canonical ``(min_id, max_id)`` tuple; the first weight seen wins.

The edge count is bounded by K·|V| and every node has degree >= 1 once
|V| >= 2. The graph is rebuilt from scratch on every call.
"""

from __future__ import annotations

import heapq
import logging
from collections import Counter
from collections.abc import Sequence

from notegraph.schemas.graph import GraphEdge, GraphNode, GraphSnapshot
from notegraph.schemas.notes import Note
from notegraph.services.similarity import embedded_notes
from notegraph.services.vector_math import similarity_matrix

logger = logging.getLogger(__name__)

DEFAULT_NEIGHBORS: int = 2
PREVIEW_LENGTH: int = 50

PairKey = tuple[int, int]


def canonical_pair(a: int, b: int) -> PairKey:
    """Order-independent key for the unordered pair {a, b}."""
    return (a, b) if a < b else (b, a)


def content_preview(content: str, length: int = PREVIEW_LENGTH) -> str:
    """Single-line preview of at most ``length`` characters, ellipsis-truncated."""
    text = " ".join(content.split())
    if len(text) <= length:
        return text
    return text[: length - 3].rstrip() + "..."


class GraphBuilder:
    """
    Builds a ``GraphSnapshot`` from a note snapshot.

    Args:
        neighbors: K, the number of preferred neighbours per note.
        dimension: Expected embedding dimension; notes with another length
            are left out of the graph. None accepts any length.
        preview_length: Maximum node label length.
    """

    def __init__(
        self,
        neighbors: int = DEFAULT_NEIGHBORS,
        dimension: int | None = None,
        preview_length: int = PREVIEW_LENGTH,
    ) -> None:
        if neighbors < 1:
            raise ValueError("neighbors must be >= 1")
        self.neighbors = neighbors
        self.dimension = dimension
        self.preview_length = preview_length

    def build(self, notes: Sequence[Note], neighbors: int | None = None) -> GraphSnapshot:
        """
        Compute the graph for ``notes``.

        Args:
            notes: Snapshot of the collection (any order).
            neighbors: Per-call override of K.
        """
        k = self.neighbors if neighbors is None else neighbors
        if k < 1:
            raise ValueError("neighbors must be >= 1")

        vertices = embedded_notes(notes, self.dimension)
        if len(vertices) < 2:
            return GraphSnapshot(nodes=[self._node(note, 0) for note in vertices])

        edges = self._select_edges(sorted(vertices, key=lambda note: note.id), k)

        degree: Counter[int] = Counter()
        for source, target in edges:
            degree[source] += 1
            degree[target] += 1

        logger.debug(
            "Graph built: %d nodes, %d edges (k=%d)", len(vertices), len(edges), k
        )
        return GraphSnapshot(
            nodes=[self._node(note, degree[note.id]) for note in vertices],
            edges=[
                GraphEdge(source=source, target=target, weight=weight)
                for (source, target), weight in edges.items()
            ],
        )

    def _select_edges(self, ordered: list[Note], k: int) -> dict[PairKey, float]:
        """Union of every node's top-k neighbours, deduplicated by pair key."""
        sims = similarity_matrix([note.embedding or () for note in ordered])
        ids = [note.id for note in ordered]

        edges: dict[PairKey, float] = {}
        for i, note_id in enumerate(ids):
            row = sims[i]
            # nsmallest on (-score, id): highest score first, lower id on ties
            top = heapq.nsmallest(
                k,
                (j for j in range(len(ids)) if j != i),
                key=lambda j: (-row[j], ids[j]),
            )
            for j in top:
                key = canonical_pair(note_id, ids[j])
                if key not in edges:
                    edges[key] = float(row[j])
        return edges

    def _node(self, note: Note, degree: int) -> GraphNode:
        return GraphNode(
            id=note.id,
            content=content_preview(note.content, self.preview_length),
            val=1 + degree,
        )
