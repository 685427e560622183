"""Models package - re-exports all models for convenient imports."""

from notegraph.models.base import Base, TimestampMixin
from notegraph.models.note import NoteRecord

__all__ = [
    "Base",
    "TimestampMixin",
    "NoteRecord",
]
