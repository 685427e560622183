"""
API Dependencies

FastAPI dependencies shared by the v1 routers, and the mapping from failed
``OperationResult`` values to HTTP errors.
"""

from typing import TypeVar

from fastapi import HTTPException, Request, status

from notegraph.schemas.results import OperationResult
from notegraph.services.notes import NoteService

T = TypeVar("T")

# error code -> HTTP status
ERROR_STATUS: dict[str, int] = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "validation_error": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "embedding_error": status.HTTP_502_BAD_GATEWAY,  # upstream AI service failure
    "storage_error": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def get_note_service(request: Request) -> NoteService:
    """Service built by the application lifespan (see ``notegraph.main``)."""
    return request.app.state.note_service


def unwrap(result: OperationResult[T]) -> T:
    """Return ``result.data`` or raise the matching HTTPException."""
    if result.success:
        return result.data  # type: ignore[return-value]

    error = result.error
    code = error.type if error else "internal_error"
    raise HTTPException(
        status_code=ERROR_STATUS.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail={"type": code, "message": error.message if error else "Unknown error"},
    )
