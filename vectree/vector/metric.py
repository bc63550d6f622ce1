"""
Cosine similarity between embedding vectors.
"""

import math

import numpy as np


def cosine_similarity(points_a, points_b) -> float:
    """Dot product of a and b divided by the product of their norms.

    Returns NaN when either vector has zero norm. Callers must not rank
    a NaN score; use is_comparable() before comparing.

    Raises:
        ValueError: if the vectors have different lengths
    """
    a = np.asarray(points_a, dtype=np.float64)
    b = np.asarray(points_b, dtype=np.float64)
    if a.shape != b.shape:
        raise ValueError(f"Vector dimension {a.shape} does not match {b.shape}")

    dot_prod = np.dot(a, b)
    norm = np.linalg.norm(a) * np.linalg.norm(b)
    if norm == 0:
        return math.nan

    return float(dot_prod / norm)


def is_comparable(score: float) -> bool:
    """True unless the score is NaN."""
    return not math.isnan(score)
