"""Repositories package."""

from notegraph.repositories.base import BaseRepository
from notegraph.repositories.notes import NoteRepository, SqlNoteStore, note_repository

__all__ = [
    "BaseRepository",
    "NoteRepository",
    "SqlNoteStore",
    "note_repository",
]
