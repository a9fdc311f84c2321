"""Tests for the in-memory vector index."""

from __future__ import annotations

import numpy as np
import pytest

from ragpdf.errors import (
    ConfigurationError,
    EmbeddingDimensionMismatch,
    IndexBuildError,
    RagError,
)
from ragpdf.index.vector_index import VectorIndex
from ragpdf.models import Chunk, Embedding


def _index(vectors: list[list[float]]) -> VectorIndex:
    chunks = [Chunk(index=i, text=f"chunk {i}", source_offset=i) for i in range(len(vectors))]
    embeddings = [
        Embedding(chunk_index=i, vector=np.asarray(v, dtype=np.float32))
        for i, v in enumerate(vectors)
    ]
    return VectorIndex.build(chunks, embeddings)


class TestVectorIndexQuery:
    """Test similarity queries."""

    def test_cosine_ranking(self) -> None:
        """Should rank by cosine similarity, best first."""
        index = _index([[1.0, 0.0], [0.0, 1.0], [0.9, 0.1]])

        hits = index.query(np.array([1.0, 0.0]), k=2)

        assert [hit.chunk.index for hit in hits] == [0, 2]
        assert hits[0].score == pytest.approx(1.0)
        assert hits[1].score == pytest.approx(0.9938, abs=1e-3)

    def test_scores_ignore_magnitude(self) -> None:
        """Should compare directions, not lengths."""
        index = _index([[10.0, 0.0], [0.0, 0.5]])

        hits = index.query(np.array([0.0, 3.0]), k=1)

        assert hits[0].chunk.index == 1
        assert hits[0].score == pytest.approx(1.0)

    def test_ties_rank_by_chunk_index(self) -> None:
        """Should break equal scores by ascending chunk index."""
        index = _index([[0.0, 1.0], [1.0, 0.0], [2.0, 0.0], [1.0, 0.0]])

        hits = index.query(np.array([1.0, 0.0]), k=4)

        assert [hit.chunk.index for hit in hits] == [1, 2, 3, 0]

    def test_query_is_deterministic(self) -> None:
        """Should return identical results for repeated queries."""
        rng = np.random.default_rng(7)
        vectors = rng.normal(size=(30, 6)).round(1).tolist()
        index = _index(vectors)
        query = np.asarray(vectors[4])

        first = index.query(query, k=10)
        second = index.query(query, k=10)

        assert first == second

    def test_k_larger_than_index(self) -> None:
        """Should return every entry ranked when k exceeds the size."""
        index = _index([[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])

        hits = index.query(np.array([0.0, 1.0]), k=10)

        assert [hit.chunk.index for hit in hits] == [1, 2, 0]

    def test_scores_descend(self) -> None:
        index = _index([[1.0, 0.0], [0.5, 0.5], [0.0, 1.0], [-1.0, 0.0]])

        scores = [hit.score for hit in index.query(np.array([1.0, 0.2]), k=4)]

        assert scores == sorted(scores, reverse=True)

    def test_zero_vectors_score_zero(self) -> None:
        """Should not divide by zero for zero-norm vectors."""
        index = _index([[0.0, 0.0], [1.0, 0.0]])

        hits = index.query(np.array([1.0, 0.0]), k=2)
        assert [hit.score for hit in hits] == [pytest.approx(1.0), 0.0]

        zero_query = index.query(np.array([0.0, 0.0]), k=2)
        assert [hit.score for hit in zero_query] == [0.0, 0.0]

    def test_empty_index(self) -> None:
        """Should return no hits instead of failing."""
        index = VectorIndex.build([], [])

        assert len(index) == 0
        assert index.dimension == 0
        assert index.query(np.array([1.0, 0.0]), k=3) == []

    @pytest.mark.parametrize("k", [0, -1])
    def test_non_positive_k(self, k: int) -> None:
        index = _index([[1.0, 0.0]])

        with pytest.raises(ConfigurationError):
            index.query(np.array([1.0, 0.0]), k=k)

    def test_query_dimension_mismatch(self) -> None:
        index = _index([[1.0, 0.0]])

        with pytest.raises(EmbeddingDimensionMismatch):
            index.query(np.array([1.0, 0.0, 0.0]), k=1)


class TestVectorIndexBuild:
    """Test index construction."""

    def test_dimension_and_size(self) -> None:
        index = _index([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])

        assert len(index) == 2
        assert index.dimension == 3
        assert [chunk.index for chunk in index.chunks] == [0, 1]

    def test_rejects_mixed_dimensions(self) -> None:
        """Should refuse embeddings of different dimensions."""
        with pytest.raises(EmbeddingDimensionMismatch) as excinfo:
            _index([[1.0, 0.0], [1.0, 0.0, 0.0]])

        assert excinfo.value.expected == 2
        assert excinfo.value.actual == 3
        assert excinfo.value.position == 1

    def test_rejects_misaligned_embeddings(self) -> None:
        chunks = [Chunk(0, "a", 0), Chunk(1, "b", 1)]
        embeddings = [
            Embedding(chunk_index=1, vector=np.ones(2, dtype=np.float32)),
            Embedding(chunk_index=0, vector=np.ones(2, dtype=np.float32)),
        ]

        with pytest.raises(IndexBuildError, match="belongs to chunk"):
            VectorIndex.build(chunks, embeddings)

    def test_rejects_count_mismatch(self) -> None:
        """Should raise a library error the CLI reports instead of a bare ValueError."""
        with pytest.raises(IndexBuildError, match="0 embeddings for 1 chunks") as excinfo:
            VectorIndex.build([Chunk(0, "a", 0)], [])

        assert isinstance(excinfo.value, RagError)
        assert not isinstance(excinfo.value, ValueError)

    def test_index_is_read_only(self) -> None:
        """Should not expose a writable matrix."""
        index = _index([[1.0, 0.0]])

        with pytest.raises(ValueError):
            index._matrix[0, 0] = 5.0
