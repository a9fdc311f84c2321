"""Interfaces for the remote capabilities the pipeline consumes."""

from __future__ import annotations

from typing import List, Protocol, Sequence, runtime_checkable

import numpy as np

from ragpdf.models import Turn


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Maps text to fixed-dimension vectors."""

    def embed(self, text: str) -> np.ndarray:
        ...

    def embed_batch(self, texts: Sequence[str]) -> List[np.ndarray]:
        """Embed ``texts``; the i-th vector belongs to the i-th text."""
        ...


@runtime_checkable
class CompletionProvider(Protocol):
    """Produces the assistant reply for one turn."""

    def complete(
        self,
        preamble: str,
        context: str,
        history: Sequence[Turn],
        new_turn: str,
    ) -> str:
        ...
