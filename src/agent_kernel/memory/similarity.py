"""Vector similarity used by memory retrieval."""

from collections.abc import Sequence

import numpy as np


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Compute cosine similarity between two vectors.

    Returns 0.0 when either vector is empty or zero-magnitude, or when the
    lengths differ. The result is clipped to [-1, 1] to absorb rounding.
    """
    if len(a) == 0 or len(b) == 0 or len(a) != len(b):
        return 0.0

    v1 = np.asarray(a, dtype=np.float64)
    v2 = np.asarray(b, dtype=np.float64)
    norm = float(np.linalg.norm(v1) * np.linalg.norm(v2))
    if norm == 0.0 or not np.isfinite(norm):
        return 0.0

    return float(np.clip(np.dot(v1, v2) / norm, -1.0, 1.0))
