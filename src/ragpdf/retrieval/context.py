"""Query-time context assembly."""

from __future__ import annotations

import logging
from typing import List

from ragpdf.errors import (
    ConfigurationError,
    EmbeddingDimensionMismatch,
    ProviderError,
    RetrievalError,
)
from ragpdf.index.vector_index import VectorIndex
from ragpdf.models import SearchHit
from ragpdf.providers.base import EmbeddingProvider
from ragpdf.utils.text import count_words

LOGGER = logging.getLogger(__name__)

CHUNK_SEPARATOR = "\n\n"


def join_within_budget(hits: List[SearchHit], token_budget: int) -> str:
    """Join hit texts in rank order within ``token_budget`` words.

    The first chunk that overflows keeps only its leading words that still
    fit; every lower-ranked chunk is dropped.
    """
    parts: List[str] = []
    used = 0
    for hit in hits:
        words = hit.chunk.text.split()
        remaining = token_budget - used
        if len(words) > remaining:
            if remaining > 0:
                parts.append(" ".join(words[:remaining]))
            LOGGER.debug(
                "Context budget of %d words reached at chunk #%d", token_budget, hit.chunk.index
            )
            break
        parts.append(hit.chunk.text)
        used += len(words)
    return CHUNK_SEPARATOR.join(parts)


class ContextBuilder:
    """Turns a user query into a ranked, size-bounded context string."""

    def __init__(
        self,
        embedder: EmbeddingProvider,
        index: VectorIndex,
        *,
        top_k: int = 2,
        token_budget: int = 1500,
        strict_grounding: bool = False,
    ) -> None:
        if top_k <= 0:
            raise ConfigurationError(f"top_k must be positive, got {top_k}")
        if token_budget <= 0:
            raise ConfigurationError(f"token_budget must be positive, got {token_budget}")
        self.embedder = embedder
        self.index = index
        self.top_k = top_k
        self.token_budget = token_budget
        self.strict_grounding = strict_grounding

    def retrieve(self, query_text: str) -> List[SearchHit]:
        if len(self.index) == 0:
            return []
        vector = self.embedder.embed(query_text)
        return self.index.query(vector, self.top_k)

    def build_context(self, query_text: str) -> str:
        """Return the context for ``query_text``, or ``""`` when nothing can be retrieved.

        Raises:
            RetrievalError: the query could not be embedded and strict
                grounding is enabled.
        """
        try:
            hits = self.retrieve(query_text)
        except (ProviderError, EmbeddingDimensionMismatch) as exc:
            if self.strict_grounding:
                raise RetrievalError(f"Could not retrieve context: {exc}") from exc
            LOGGER.warning("Retrieval failed, answering without context: %s", exc)
            return ""

        context = join_within_budget(hits, self.token_budget)
        LOGGER.debug(
            "Retrieved %d chunks (%s), context has %d words",
            len(hits),
            ", ".join(f"#{hit.chunk.index}:{hit.score:.3f}" for hit in hits),
            count_words(context),
        )
        return context
