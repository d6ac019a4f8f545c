"""
Deterministic offline embeddings.

Used whenever no API key is configured or a vendor call fails. The same
text always maps to the same unit vector, so retrieval keeps working (and
stays testable) without network access.
"""

from __future__ import annotations

import math

import numpy as np

from ..domain.entities import EmbeddingResult

MOCK_DIMENSIONS = 1536


def text_hash(text: str) -> int:
    """Rolling 31x string hash over UTF-16 code units, wrapped to int32, absolute value."""
    value = 0
    encoded = text.encode("utf-16-le")
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        value = (value * 31 + code_unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return abs(value)


def mock_embedding(text: str, dimensions: int = MOCK_DIMENSIONS) -> EmbeddingResult:
    """Build the deterministic mock embedding for text."""
    seed = text_hash(text)
    raw = np.array(
        [math.fmod(math.sin(seed + i) * 10000, 1) for i in range(dimensions)],
        dtype=np.float64,
    )
    norm = np.linalg.norm(raw)
    if norm > 0:
        raw = raw / norm
    return EmbeddingResult(
        vector=raw.tolist(),
        dimensions=dimensions,
        model=None,
        is_mock=True,
    )
