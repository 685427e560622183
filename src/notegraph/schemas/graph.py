"""
Graph Schemas

Output of the graph builder, shaped for force-directed renderers
(``nodes`` with a size hint ``val``, ``edges`` with a ``weight``).
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_serializer


class GraphNode(BaseModel):
    """One note in the relationship graph."""

    id: int
    content: str = Field(description="Content preview, at most 50 characters")
    val: int = Field(default=1, description="Node size hint: 1 + degree")


class GraphEdge(BaseModel):
    """Undirected edge. ``source < target`` always holds."""

    source: int
    target: int
    weight: float = Field(description="Cosine similarity of the pair")

    @field_serializer("weight", when_used="json")
    def _round_weight(self, weight: float) -> float:
        return round(weight, 4)


class GraphSnapshot(BaseModel):
    """Full graph, rebuilt on every request."""

    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)
