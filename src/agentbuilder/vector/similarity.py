"""Exact cosine-similarity ranking."""

from __future__ import annotations

from typing import Sequence, TypeVar

import numpy as np

T = TypeVar("T")


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """dot(a, b) / (|a| * |b|).

    Raises:
        ValueError: Vectors differ in length

    A zero-norm vector scores 0.0.
    """
    if len(a) != len(b):
        raise ValueError("Vectors must have the same length")

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    denom = np.linalg.norm(va) * np.linalg.norm(vb)
    if denom == 0:
        return 0.0
    return float(np.dot(va, vb) / denom)


def rank_by_cosine(
    query: Sequence[float],
    candidates: list[tuple[T, Sequence[float]]],
    top_k: int,
) -> list[tuple[T, float]]:
    """Score every candidate and return the top_k, best first.

    The sort is stable, so equal scores keep their storage order.
    """
    scored = [(item, cosine_similarity(query, vector)) for item, vector in candidates]
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored[:max(top_k, 0)]
