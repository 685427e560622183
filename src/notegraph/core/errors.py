"""
Error Taxonomy

Exceptions raised by stores and embedding providers. The service layer
catches them and turns them into failed ``OperationResult`` values, so they
never cross the public API boundary.

Each class carries a stable ``code`` that ends up in the result payload
and drives the HTTP status mapping in the API layer.
"""

from __future__ import annotations


class NotegraphError(Exception):
    """Base class for all expected, reportable failures."""

    code: str = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class EmbeddingError(NotegraphError):
    """Embedding provider unreachable, timed out or returned a malformed response."""

    code = "embedding_error"


class NotFoundError(NotegraphError):
    """An operation referenced a note id that does not exist."""

    code = "not_found"

    def __init__(self, note_id: int) -> None:
        super().__init__(f"Note {note_id} not found")
        self.note_id = note_id


class StorageError(NotegraphError):
    """The persistence layer rejected a read or write."""

    code = "storage_error"


class ValidationError(NotegraphError):
    """Invalid input: empty content, bad vector, dimension mismatch."""

    code = "validation_error"


class EmbeddingFormatError(ValidationError):
    """A stored or returned embedding could not be parsed into a vector."""
