"""In-memory cosine-similarity index."""

from __future__ import annotations

import logging
from typing import List, Sequence

import numpy as np

from ragpdf.errors import ConfigurationError, EmbeddingDimensionMismatch, IndexBuildError
from ragpdf.models import Chunk, Embedding, SearchHit

LOGGER = logging.getLogger(__name__)


class VectorIndex:
    """Brute-force nearest-neighbour search over chunk embeddings.

    The index is built once and never mutated afterwards, so it can be shared
    between threads without locking. Scores are cosine similarities; equal
    scores rank by ascending chunk index.
    """

    def __init__(self, chunks: Sequence[Chunk], matrix: np.ndarray) -> None:
        self._chunks = tuple(chunks)
        self._matrix = matrix
        self._matrix.setflags(write=False)
        self._norms = np.linalg.norm(matrix, axis=1) if len(self._chunks) else np.zeros(0)
        self._norms.setflags(write=False)
        self._chunk_ids = np.array([chunk.index for chunk in self._chunks], dtype=np.int64)

    @classmethod
    def build(cls, chunks: Sequence[Chunk], embeddings: Sequence[Embedding]) -> "VectorIndex":
        if len(chunks) != len(embeddings):
            raise IndexBuildError(
                f"Got {len(embeddings)} embeddings for {len(chunks)} chunks"
            )
        if not embeddings:
            return cls((), np.zeros((0, 0), dtype=np.float32))

        dimension = embeddings[0].dimension
        for position, (chunk, embedding) in enumerate(zip(chunks, embeddings)):
            if embedding.chunk_index != chunk.index:
                raise IndexBuildError(
                    f"Embedding {position} belongs to chunk {embedding.chunk_index}, "
                    f"expected chunk {chunk.index}"
                )
            if embedding.dimension != dimension:
                raise EmbeddingDimensionMismatch(dimension, embedding.dimension, position=position)

        matrix = np.vstack([np.asarray(e.vector, dtype=np.float32) for e in embeddings])
        LOGGER.debug("Built vector index: %d vectors of dimension %d", len(chunks), dimension)
        return cls(chunks, matrix)

    def __len__(self) -> int:
        return len(self._chunks)

    @property
    def dimension(self) -> int:
        return int(self._matrix.shape[1]) if len(self._chunks) else 0

    @property
    def chunks(self) -> tuple[Chunk, ...]:
        return self._chunks

    def similarities(self, query: np.ndarray) -> np.ndarray:
        """Cosine similarity between ``query`` and every stored vector."""
        query = np.asarray(query, dtype=np.float32).reshape(-1)
        if query.shape[0] != self.dimension:
            raise EmbeddingDimensionMismatch(self.dimension, int(query.shape[0]))
        query_norm = float(np.linalg.norm(query))
        denominators = self._norms * query_norm
        dots = self._matrix @ query
        scores = np.zeros(len(self._chunks), dtype=np.float64)
        np.divide(dots, denominators, out=scores, where=denominators > 0)
        return scores

    def query(self, vector: np.ndarray, k: int) -> List[SearchHit]:
        """Return up to ``k`` hits sorted by descending similarity."""
        if k <= 0:
            raise ConfigurationError(f"k must be positive, got {k}")
        if not self._chunks:
            return []

        scores = self.similarities(vector)
        # lexsort sorts by the last key first: score descending, then chunk index
        order = np.lexsort((self._chunk_ids, -scores))[:k]
        return [SearchHit(chunk=self._chunks[i], score=float(scores[i])) for i in order]
