"""Vector similarity helpers for the retrieval engine.

Embeddings are plain ``list[float]`` on the models; numpy does the maths.
Every function here is total: mismatched dimensions, empty vectors and zero
norms all score ``0.0`` instead of raising or producing ``NaN``.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


def cosine_similarity(a: Sequence[float] | None, b: Sequence[float] | None) -> float:
    """Return ``dot(a, b) / (|a| * |b|)``, or ``0.0`` when undefined.

    Parameters
    ----------
    a, b:
        Vectors to compare.  ``None`` or empty vectors score ``0.0``.

    Returns
    -------
    float
        Similarity in ``[-1.0, 1.0]``.
    """
    if a is None or b is None or len(a) == 0 or len(a) != len(b):
        return 0.0

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)

    norm_a = float(np.linalg.norm(va))
    norm_b = float(np.linalg.norm(vb))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    score = float(np.dot(va, vb) / (norm_a * norm_b))
    if not np.isfinite(score):
        return 0.0
    # Float error can push identical vectors just past 1.0.
    return max(-1.0, min(1.0, score))


def has_dimension(vector: Sequence[float] | None, dimension: int) -> bool:
    """True when *vector* is present and has exactly *dimension* entries."""
    return vector is not None and len(vector) == dimension
