"""
Operation Results

Tagged success/failure envelope returned by every public NoteService
operation, so callers branch on ``success`` instead of catching exceptions.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel

from notegraph.core.errors import NotegraphError

T = TypeVar("T")


class ErrorInfo(BaseModel):
    """Failure details: stable ``type`` code plus a human-readable message."""

    type: str
    message: str


class OperationResult(BaseModel, Generic[T]):
    """
    Outcome of a service operation.

    Exactly one of ``data`` (on success) or ``error`` (on failure) is
    meaningful. ``data`` may legitimately be an empty list.
    """

    success: bool
    data: T | None = None
    error: ErrorInfo | None = None

    @classmethod
    def ok(cls, data: T) -> OperationResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: NotegraphError) -> OperationResult[T]:
        return cls(success=False, error=ErrorInfo(type=error.code, message=error.message))
