"""
Notes API Router

REST endpoints for note CRUD operations, semantic search and related notes.
Each handler calls one NoteService operation and converts a failed result
into an HTTP error via ``unwrap``.
"""

from fastapi import APIRouter, Depends, Query, Response, status

from notegraph.api.deps import get_note_service, unwrap
from notegraph.schemas.notes import (
    NoteCreate,
    NoteResponse,
    NoteSearchHit,
    NoteSearchRequest,
    NoteUpdate,
)
from notegraph.services.notes import NoteService

router = APIRouter()


@router.post("/", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
async def create_note(
    note: NoteCreate,
    service: NoteService = Depends(get_note_service),
):
    """
    Create a new note.

    The embedding is generated before the note is stored, so the note is
    searchable as soon as this returns.

    Raises:
        HTTPException 502: If the embedding service is unavailable.
    """
    return unwrap(await service.create_note(note.content))


@router.get("/", response_model=list[NoteResponse])
async def read_notes(service: NoteService = Depends(get_note_service)):
    """List all notes, newest first."""
    return unwrap(await service.get_notes())


@router.post("/search", response_model=list[NoteSearchHit])
async def search_notes(
    search_req: NoteSearchRequest,
    service: NoteService = Depends(get_note_service),
):
    """
    Semantic search using vector similarity.

    Converts the query text to an embedding, then ranks every note by
    cosine similarity and keeps the top k above the similarity floor.

    Raises:
        HTTPException 502: If the embedding service is unavailable.
    """
    results = unwrap(
        await service.search_notes(
            search_req.query,
            limit=search_req.k,
            min_similarity=search_req.min_similarity,
        )
    )
    return [NoteSearchHit.from_result(result) for result in results]


@router.get("/{note_id}", response_model=NoteResponse)
async def read_note(note_id: int, service: NoteService = Depends(get_note_service)):
    """Retrieve a single note by ID."""
    return unwrap(await service.get_note(note_id))


@router.patch("/{note_id}", response_model=NoteResponse)
async def update_note(
    note_id: int,
    note: NoteUpdate,
    service: NoteService = Depends(get_note_service),
):
    """Replace a note's content; the embedding is regenerated with it."""
    return unwrap(await service.update_note(note_id, note.content))


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(note_id: int, service: NoteService = Depends(get_note_service)):
    """Delete a note. It disappears from search and graph results immediately."""
    unwrap(await service.delete_note(note_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{note_id}/related", response_model=list[NoteSearchHit])
async def related_notes(
    note_id: int,
    limit: int = Query(default=5, ge=1, le=50),
    service: NoteService = Depends(get_note_service),
):
    """Notes most similar to the given one (the note itself excluded)."""
    results = unwrap(await service.get_related_notes(note_id, limit=limit))
    return [NoteSearchHit.from_result(result) for result in results]
