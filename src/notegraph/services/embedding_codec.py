"""
Embedding Codec

Single parsing boundary for embedding values coming out of storage or an
embedding provider. Accepted representations:

    - native sequences of numbers (list, tuple)
    - array-likes exposing ``tolist()`` (numpy arrays returned by pgvector)
    - the textual encoding ``"[0.1,0.2,...]"`` (bracketed, comma-separated)

Everything downstream of ``parse_embedding`` works on a plain tuple of
finite floats, so format variance never reaches the similarity math.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

from notegraph.core.errors import EmbeddingFormatError

Vector = tuple[float, ...]


def parse_embedding(raw: Any, dimension: int | None = None) -> Vector:
    """
    Parse a raw embedding value into a tuple of floats.

    Args:
        raw: Stored or returned embedding in any accepted representation.
        dimension: Expected vector length. Not checked when None.

    Returns:
        Tuple of finite floats.

    Raises:
        EmbeddingFormatError: Missing, empty, non-numeric, non-finite or
            wrong-dimension vector.
    """
    if raw is None:
        raise EmbeddingFormatError("Embedding is missing")

    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EmbeddingFormatError(f"Embedding bytes are not UTF-8: {e}") from e

    if isinstance(raw, str):
        components = _split_text(raw)
    else:
        if hasattr(raw, "tolist"):
            raw = raw.tolist()
        if not isinstance(raw, Sequence):
            raise EmbeddingFormatError(
                f"Unsupported embedding type: {type(raw).__name__}"
            )
        components = list(raw)

    if not components:
        raise EmbeddingFormatError("Embedding is empty")

    vector = tuple(_to_float(value, index) for index, value in enumerate(components))

    if dimension is not None and len(vector) != dimension:
        raise EmbeddingFormatError(
            f"Embedding has {len(vector)} dimensions, expected {dimension}"
        )
    return vector


def format_embedding(vector: Sequence[float]) -> str:
    """Encode a vector as ``"[x1,x2,...]"``. ``repr`` keeps floats lossless."""
    return "[" + ",".join(repr(float(value)) for value in vector) + "]"


def _split_text(raw: str) -> list[str]:
    text = raw.strip()
    if len(text) < 2 or text[0] != "[" or text[-1] != "]":
        raise EmbeddingFormatError("Textual embedding must be bracketed: [x1,x2,...]")
    body = text[1:-1].strip()
    if not body:
        return []
    return [part.strip() for part in body.split(",")]


def _to_float(value: Any, index: int) -> float:
    # bool is an int subclass; a vector of booleans is a caller bug
    if isinstance(value, bool):
        raise EmbeddingFormatError(f"Component {index} is a boolean")
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise EmbeddingFormatError(
            f"Component {index} is not a number: {value!r}"
        ) from e
    if not math.isfinite(number):
        raise EmbeddingFormatError(f"Component {index} is not finite: {value!r}")
    return number
