"""
Note Schemas

Pydantic models for notes: the immutable domain record shared by stores
and services, and the API request/response shapes.
Separates concerns: NoteCreate / NoteUpdate (input), NoteResponse (output).
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field

MAX_CONTENT_LENGTH = 10_000


class Note(BaseModel):
    """
    Domain note as returned by every NoteStore.

    Frozen, with the embedding held as a tuple: a snapshot handed to a
    reader can never be modified by a concurrent writer.

    Attributes:
        id: Store-assigned identifier, immutable.
        content: Note text.
        created_at: Set once at insertion.
        updated_at: Set on every update, None until the first one.
        embedding: Vector of the configured dimension, or None when the
            stored value is missing or malformed.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    content: str
    created_at: datetime
    updated_at: datetime | None = None
    embedding: tuple[float, ...] | None = None

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, content='{self.content[:20]}...')>"


class SimilarityResult(BaseModel):
    """One ranked match of a similarity query. Not persisted."""

    model_config = ConfigDict(frozen=True)

    note_id: int
    score: float = Field(ge=-1.0, le=1.0)
    rank: int = Field(ge=1)
    note: Note


class NoteCreate(BaseModel):
    """Request schema for POST /notes."""

    content: str = Field(
        ...,
        min_length=1,
        max_length=MAX_CONTENT_LENGTH,
        description="Note content",
    )


class NoteUpdate(BaseModel):
    """
    Request schema for PATCH /notes/{id}.

    Content is the only mutable field, and changing it always re-embeds.
    """

    content: str = Field(..., min_length=1, max_length=MAX_CONTENT_LENGTH)


class NoteResponse(BaseModel):
    """Note representation returned by the API (embedding omitted)."""

    id: int
    content: str
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)  # Built straight from Note

    embedding: tuple[float, ...] | None = Field(default=None, exclude=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None


class NoteSearchRequest(BaseModel):
    """Request schema for semantic search endpoint."""

    query: str = Field(
        ...,
        min_length=1,
        description="Search query text",
    )
    k: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Number of results to return",
    )
    min_similarity: float | None = Field(
        default=None,
        ge=-1.0,
        le=1.0,
        description="Minimum cosine similarity (server default when omitted)",
    )


class NoteSearchHit(BaseModel):
    """Single search or related-notes result."""

    note: NoteResponse
    score: float = Field(description="Cosine similarity (higher = more related)")
    rank: int = Field(description="1-based position in the result list")

    @classmethod
    def from_result(cls, result: SimilarityResult) -> NoteSearchHit:
        return cls(
            note=NoteResponse.model_validate(result.note),
            score=round(result.score, 4),
            rank=result.rank,
        )
