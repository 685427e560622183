"""
Graph API Router

Relationship graph of all notes, recomputed on every request.
"""

from fastapi import APIRouter, Depends, Query

from notegraph.api.deps import get_note_service, unwrap
from notegraph.schemas.graph import GraphSnapshot
from notegraph.services.notes import NoteService

router = APIRouter()


@router.get("/", response_model=GraphSnapshot)
async def read_graph(
    neighbors: int | None = Query(
        default=None,
        ge=1,
        le=20,
        description="Preferred neighbours per note (server default when omitted)",
    ),
    service: NoteService = Depends(get_note_service),
):
    """
    Nodes (one per embedded note) and deduplicated similarity edges.

    Every note is linked to its ``neighbors`` most similar notes, so no
    node is isolated once two notes exist.
    """
    return unwrap(await service.get_graph_data(neighbors))
