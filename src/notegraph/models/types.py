"""
Custom Column Types

``EmbeddingVector`` stores embeddings as pgvector ``vector(D)`` on
PostgreSQL and as the bracketed text encoding on every other dialect
(SQLite in tests and local runs).

Reads are deliberately not converted here: raw values (numpy arrays from
pgvector, strings elsewhere) are parsed by the store through
``parse_embedding`` so that one malformed row degrades to a note without
an embedding instead of failing the whole SELECT.
"""

from typing import Any

from pgvector.sqlalchemy import Vector
from sqlalchemy import Text
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator, TypeEngine

from notegraph.services.embedding_codec import format_embedding


class EmbeddingVector(TypeDecorator):
    """Dialect-aware embedding column."""

    impl = Text
    cache_ok = True

    def __init__(self, dimension: int) -> None:
        super().__init__()
        self.dimension = dimension

    def load_dialect_impl(self, dialect: Dialect) -> TypeEngine[Any]:
        if dialect.name == "postgresql":
            return dialect.type_descriptor(Vector(self.dimension))
        return dialect.type_descriptor(Text())

    def process_bind_param(self, value: Any, dialect: Dialect) -> Any:
        if value is None:
            return None
        if dialect.name == "postgresql":
            # pgvector's own bind processor handles lists and arrays
            return list(value)
        return format_embedding(value)
