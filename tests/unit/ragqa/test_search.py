"""
Unit tests for relatedness ranking.

Tests for:
- cosine_similarity
- rank_passages ordering, permutation and ties
- RelatednessRanker query embedding
"""

import math

import pytest

from conftest import FakeEmbedder
from ragqa.core.exceptions import (
    DegenerateSimilarityError,
    EmbeddingDimensionError,
    EmbeddingServiceError,
    ProviderError,
)
from ragqa.retrieval.search import RelatednessRanker, cosine_similarity, rank_passages
from ragqa.retrieval.store import EmbeddingStore


def make_store(items):
    store = EmbeddingStore()
    for text, vector in items:
        store.append(text, vector)
    return store


class TestCosineSimilarity:
    """Tests for cosine_similarity function."""

    def test_identical_vectors(self):
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_opposite_vectors(self):
        assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)

    def test_magnitude_invariant(self):
        assert cosine_similarity([1.0, 1.0], [5.0, 5.0]) == pytest.approx(1.0)

    def test_range(self):
        score = cosine_similarity([0.3, -0.7, 0.2], [0.9, 0.1, -0.4])

        assert -1.0 <= score <= 1.0

    def test_zero_vector_is_degenerate(self):
        with pytest.raises(DegenerateSimilarityError):
            cosine_similarity([0.0, 0.0], [1.0, 0.0])

    def test_nan_is_degenerate(self):
        with pytest.raises(DegenerateSimilarityError):
            cosine_similarity([math.nan, 1.0], [1.0, 0.0])

    def test_empty_vector(self):
        with pytest.raises(DegenerateSimilarityError):
            cosine_similarity([], [])

    def test_dimension_mismatch(self):
        with pytest.raises(EmbeddingDimensionError):
            cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])


class TestRankPassages:
    """Tests for rank_passages function."""

    def test_descending_order(self):
        store = make_store([
            ("far", [0.0, 1.0]),
            ("near", [1.0, 0.1]),
            ("middle", [1.0, 1.0]),
        ])
        ranked = rank_passages([1.0, 0.0], store)

        assert [r.text for r in ranked] == ["near", "middle", "far"]
        assert [r.rank for r in ranked] == [1, 2, 3]

    def test_scores_non_increasing(self):
        store = make_store([(f"p{i}", [float(i), float(10 - i), 1.0]) for i in range(10)])
        ranked = rank_passages([3.0, 1.0, 0.5], store)

        scores = [r.score for r in ranked]
        assert scores == sorted(scores, reverse=True)

    def test_result_is_permutation(self):
        items = [(f"p{i}", [float(i % 3) + 1.0, float(i % 5), 1.0]) for i in range(12)]
        store = make_store(items)
        ranked = rank_passages([1.0, 2.0, 3.0], store)

        assert sorted(r.text for r in ranked) == sorted(text for text, _ in items)
        assert len(ranked) == len(store)

    def test_ties_keep_store_order(self):
        store = make_store([
            ("first", [1.0, 0.0]),
            ("best", [0.0, 1.0]),
            ("second", [2.0, 0.0]),
            ("third", [4.0, 0.0]),
        ])
        ranked = rank_passages([0.5, 1.0], store)
        tied = [r.text for r in ranked if r.text != "best"]

        assert ranked[0].text == "best"
        assert tied == ["first", "second", "third"]

    def test_duplicate_texts_both_returned(self):
        store = make_store([("same", [1.0, 0.0]), ("same", [0.0, 1.0])])

        assert [r.text for r in rank_passages([1.0, 0.0], store)] == ["same", "same"]

    def test_empty_store(self):
        assert rank_passages([1.0, 0.0], EmbeddingStore()) == []

    def test_zero_vector_in_store(self):
        store = make_store([("ok", [1.0, 0.0]), ("zero", [0.0, 0.0])])

        with pytest.raises(DegenerateSimilarityError) as exc_info:
            rank_passages([1.0, 0.0], store)

        assert "Passage 1" in str(exc_info.value)

    def test_zero_query_vector(self):
        store = make_store([("ok", [1.0, 0.0])])

        with pytest.raises(DegenerateSimilarityError):
            rank_passages([0.0, 0.0], store)


class TestRelatednessRanker:
    """Tests for RelatednessRanker."""

    def test_rank_uses_query_embedding(self, fast_config):
        store = make_store([("alpha", [1.0, 0.0]), ("beta", [0.0, 1.0])])
        embedder = FakeEmbedder(vectors={"which one?": [0.1, 0.9]})

        result = RelatednessRanker(embedder, fast_config).rank("which one?", store)

        assert result == ["beta", "alpha"]
        assert embedder.calls == [["which one?"]]

    def test_rank_with_scores(self, fast_config):
        store = make_store([("alpha", [1.0, 0.0])])
        embedder = FakeEmbedder(vectors={"q": [1.0, 0.0]})

        ranked = RelatednessRanker(embedder, fast_config).rank_with_scores("q", store)

        assert ranked[0].score == pytest.approx(1.0)

    def test_query_dimension_mismatch(self, fast_config):
        store = make_store([("alpha", [1.0, 0.0])])
        embedder = FakeEmbedder(vectors={"q": [1.0, 0.0, 0.0]})

        with pytest.raises(EmbeddingDimensionError):
            RelatednessRanker(embedder, fast_config).rank("q", store)

    def test_query_embedding_failure(self, fast_config):
        store = make_store([("alpha", [1.0, 0.0])])
        embedder = FakeEmbedder(errors=[ProviderError("unauthorized", status_code=401)])

        with pytest.raises(EmbeddingServiceError):
            RelatednessRanker(embedder, fast_config).rank("q", store)

        assert len(embedder.calls) == 1

    def test_wrong_vector_count(self, fast_config):
        class EmptyEmbedder:
            def embed(self, texts, model=None):
                return []

        store = make_store([("alpha", [1.0, 0.0])])

        with pytest.raises(EmbeddingServiceError):
            RelatednessRanker(EmptyEmbedder(), fast_config).rank("q", store)
