"""
Vector Math

Plain-Python vector operations used by search and graph building.

These helpers never raise on bad input: a malformed vector inside a batch
of hundreds of notes must degrade to "not similar" instead of aborting the
whole computation.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

# Norms at or below this are treated as zero vectors
NORM_EPSILON: float = 1e-12


def dot(a: Sequence[float], b: Sequence[float]) -> float:
    """Dot product. Returns 0.0 on length mismatch."""
    if len(a) != len(b):
        return 0.0
    return math.fsum(x * y for x, y in zip(a, b))


def norm(a: Sequence[float]) -> float:
    """Euclidean (L2) norm."""
    return math.sqrt(math.fsum(x * x for x in a))


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity between two vectors.

    Computed in a single pass accumulating the dot product and both
    squared norms.

    Returns:
        A value in [-1, 1]. 0.0 when the lengths differ, either vector is
        empty or (near) zero, or the arithmetic produced NaN/Infinity.
    """
    if len(a) != len(b) or not a:
        return 0.0

    dot_ab = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot_ab += x * y
        norm_a += x * x
        norm_b += y * y

    denominator = math.sqrt(norm_a) * math.sqrt(norm_b)
    if not denominator > NORM_EPSILON:  # also catches NaN
        return 0.0

    similarity = dot_ab / denominator
    if not math.isfinite(similarity):
        return 0.0
    # Rounding can push identical vectors slightly past 1.0
    return max(-1.0, min(1.0, similarity))


def similarity_matrix(vectors: Sequence[Sequence[float]]) -> np.ndarray:
    """
    Pairwise cosine similarity of ``vectors`` as an (N, N) array.

    Same semantics as ``cosine_similarity`` applied to every pair: a pair
    whose norm product is at most NORM_EPSILON scores 0, results are
    clipped to [-1, 1] and never NaN. Ragged input (mixed dimensions)
    falls back to the pairwise loop, where mismatched pairs score 0.
    """
    size = len(vectors)
    try:
        matrix = np.asarray(vectors, dtype=np.float64)
    except ValueError:
        matrix = None

    if matrix is None or matrix.ndim != 2 or matrix.shape[0] != size:
        sims = np.zeros((size, size), dtype=np.float64)
        for i in range(size):
            for j in range(i, size):
                sims[i, j] = sims[j, i] = cosine_similarity(vectors[i], vectors[j])
        return sims

    with np.errstate(invalid="ignore", over="ignore", divide="ignore"):
        norms = np.linalg.norm(matrix, axis=1)
        denominator = np.outer(norms, norms)
        sims = np.zeros((size, size), dtype=np.float64)
        np.divide(
            matrix @ matrix.T, denominator, out=sims, where=denominator > NORM_EPSILON
        )
    sims = np.nan_to_num(sims, nan=0.0, posinf=0.0, neginf=0.0)
    return np.clip(sims, -1.0, 1.0)
