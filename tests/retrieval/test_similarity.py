"""
Tests for cosine similarity and exact ranking.
"""

import math

import pytest

from src.agentbuilder.vector.similarity import cosine_similarity, rank_by_cosine


class TestCosineSimilarity:
    def test_identical(self):
        assert math.isclose(cosine_similarity([1, 2, 3], [1, 2, 3]), 1.0)

    def test_orthogonal(self):
        assert cosine_similarity([1, 0], [0, 1]) == 0.0

    def test_opposite(self):
        assert math.isclose(cosine_similarity([1, 0], [-1, 0]), -1.0)

    def test_scale_invariant(self):
        assert math.isclose(cosine_similarity([1, 2], [10, 20]), 1.0)

    def test_zero_vector(self):
        assert cosine_similarity([0, 0], [1, 1]) == 0.0

    def test_length_mismatch(self):
        with pytest.raises(ValueError, match="Vectors must have the same length"):
            cosine_similarity([1, 2], [1, 2, 3])


class TestRankByCosine:
    def test_best_first_and_truncated(self):
        candidates = [("far", [0, 1]), ("close", [1, 0.1]), ("exact", [1, 0])]

        ranked = rank_by_cosine([1, 0], candidates, top_k=2)

        assert [item for item, _ in ranked] == ["exact", "close"]
        assert math.isclose(ranked[0][1], 1.0)

    def test_ties_keep_storage_order(self):
        candidates = [("first", [1, 0]), ("second", [2, 0]), ("third", [3, 0])]

        ranked = rank_by_cosine([1, 0], candidates, top_k=3)

        assert [item for item, _ in ranked] == ["first", "second", "third"]

    def test_top_k_larger_than_candidates(self):
        assert len(rank_by_cosine([1, 0], [("a", [1, 0])], top_k=10)) == 1

    def test_non_positive_top_k(self):
        assert rank_by_cosine([1, 0], [("a", [1, 0])], top_k=0) == []
