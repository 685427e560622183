"""
Note Model

Core entity for storing notes with vector embeddings for semantic search.
"""

from sqlalchemy import BigInteger, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from notegraph.core.config import settings
from notegraph.models.base import Base, TimestampMixin
from notegraph.models.types import EmbeddingVector

# SQLite only autoincrements INTEGER PRIMARY KEY columns
NoteId = BigInteger().with_variant(Integer(), "sqlite")


class NoteRecord(Base, TimestampMixin):
    """
    Persistent note row.

    Attributes:
        id: Primary key (bigint identity).
        content: Full note content, no length limit.
        embedding: EMBEDDING_DIMENSION-dim vector. Nullable only for rows
            written before embedding was mandatory; see backfill.
    """

    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(NoteId, primary_key=True, autoincrement=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    embedding: Mapped[list[float] | None] = mapped_column(
        EmbeddingVector(settings.EMBEDDING_DIMENSION), nullable=True
    )

    def __repr__(self) -> str:
        return f"<NoteRecord(id={self.id}, content='{self.content[:20]}...')>"
