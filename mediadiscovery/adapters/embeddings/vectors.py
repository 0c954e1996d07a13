"""
Vector math helpers for embeddings.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

__all__ = ["l2_normalize", "cosine_similarity"]


def l2_normalize(vector: Sequence[float]) -> list[float]:
    """
    Scale a vector to unit Euclidean length.

    A zero vector is returned unchanged.

    Example:
        >>> l2_normalize([3.0, 4.0])
        [0.6, 0.8]
    """
    arr = np.asarray(vector, dtype=np.float64)
    norm = float(np.linalg.norm(arr))
    if norm == 0.0:
        return [float(v) for v in arr]
    return (arr / norm).tolist()


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two equal-length vectors (0.0 if either is zero)."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(f"Dimension mismatch: {va.shape[0]} != {vb.shape[0]}")

    denom = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denom == 0.0:
        return 0.0
    return float(np.dot(va, vb) / denom)
