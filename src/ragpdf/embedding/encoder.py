"""Local embedding backend built on sentence-transformers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Literal, Sequence

import numpy as np
from sentence_transformers import SentenceTransformer

from ragpdf.config import DEFAULT_LOCAL_EMBEDDING_MODEL
from ragpdf.errors import ProviderError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EmbeddingConfig:
    model_name: str = DEFAULT_LOCAL_EMBEDDING_MODEL
    batch_size: int = 16
    normalize: bool = True
    backend: Literal["torch", "onnx", "openvino"] = "torch"
    device: str | None = None


class EmbeddingModel:
    """`SentenceTransformer` wrapper usable wherever an embedding provider is expected.

    Runs in-process, so only the completion calls need network access.
    """

    def __init__(self, config: EmbeddingConfig | None = None) -> None:
        self.config = config or EmbeddingConfig()
        try:
            self._model = SentenceTransformer(
                self.config.model_name,
                backend=self.config.backend,
                device=self.config.device,
            )
        except Exception as exc:
            raise ProviderError(
                f"Failed to load embedding model {self.config.model_name}: {exc}"
            ) from exc
        self.dimension = int(self._model.get_sentence_embedding_dimension())
        logger.info(
            "Loaded local embedding model %s (backend: %s, dimension: %d)",
            self.config.model_name,
            self.config.backend,
            self.dimension,
        )

    def embed_batch(self, texts: Sequence[str]) -> List[np.ndarray]:
        """Return one float32 vector per input text."""
        sentences = list(texts)
        if not sentences:
            return []
        try:
            embeddings = self._model.encode(
                sentences,
                batch_size=self.config.batch_size,
                show_progress_bar=False,
                convert_to_numpy=True,
                normalize_embeddings=self.config.normalize,
            )
        except Exception as exc:
            raise ProviderError(f"Local embedding failed: {exc}") from exc
        return list(np.asarray(embeddings, dtype=np.float32))

    def embed(self, text: str) -> np.ndarray:
        """Convenience wrapper for single-query embedding."""
        return self.embed_batch([text])[0]

    def close(self) -> None:
        """Nothing to release; present for parity with the HTTP client."""
