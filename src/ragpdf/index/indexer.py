"""Embedding construction and index building."""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Dict, List, Sequence

import numpy as np

from ragpdf.errors import EmbeddingDimensionMismatch, ProviderError
from ragpdf.index.vector_index import VectorIndex
from ragpdf.models import Chunk, Embedding
from ragpdf.providers.base import EmbeddingProvider

LOGGER = logging.getLogger(__name__)


def _embed_batch(provider: EmbeddingProvider, batch: Sequence[Chunk]) -> List[np.ndarray]:
    vectors = list(provider.embed_batch([chunk.text for chunk in batch]))
    if len(vectors) != len(batch):
        raise ProviderError(
            f"Provider returned {len(vectors)} vectors for a batch of {len(batch)} chunks "
            f"starting at chunk {batch[0].index}"
        )
    return vectors


def build_embeddings(
    chunks: Sequence[Chunk],
    provider: EmbeddingProvider,
    *,
    batch_size: int = 32,
    workers: int = 4,
) -> List[Embedding]:
    """Embed every chunk and return the embeddings in chunk order.

    Batches may be embedded concurrently; results are slotted back by batch
    position, so ``result[i].chunk_index == chunks[i].index`` always holds.
    Any failed batch aborts the whole build.
    """
    if not chunks:
        return []

    batches = [list(chunks[i : i + batch_size]) for i in range(0, len(chunks), batch_size)]
    results: List[List[np.ndarray] | None] = [None] * len(batches)
    started = time.perf_counter()

    if workers <= 1 or len(batches) == 1:
        for position, batch in enumerate(batches):
            results[position] = _embed_batch(provider, batch)
    else:
        pool = ThreadPoolExecutor(max_workers=min(workers, len(batches)))
        try:
            futures: Dict[Future, int] = {
                pool.submit(_embed_batch, provider, batch): position
                for position, batch in enumerate(batches)
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()
        except BaseException:
            pool.shutdown(wait=False, cancel_futures=True)
            raise
        pool.shutdown()

    embeddings: List[Embedding] = []
    dimension: int | None = None
    for batch, vectors in zip(batches, results):
        for chunk, vector in zip(batch, vectors or []):
            vector = np.asarray(vector, dtype=np.float32).reshape(-1)
            if dimension is None:
                dimension = int(vector.shape[0])
            elif vector.shape[0] != dimension:
                raise EmbeddingDimensionMismatch(
                    dimension, int(vector.shape[0]), position=len(embeddings)
                )
            embeddings.append(Embedding(chunk_index=chunk.index, vector=vector))

    LOGGER.debug(
        "Embedded %d chunks in %d batches (%.2fs)",
        len(embeddings),
        len(batches),
        time.perf_counter() - started,
    )
    return embeddings


def build_index(
    chunks: Sequence[Chunk],
    provider: EmbeddingProvider,
    *,
    batch_size: int = 32,
    workers: int = 4,
) -> VectorIndex:
    """Embed ``chunks`` and load them into a fresh :class:`VectorIndex`."""
    embeddings = build_embeddings(chunks, provider, batch_size=batch_size, workers=workers)
    return VectorIndex.build(chunks, embeddings)
