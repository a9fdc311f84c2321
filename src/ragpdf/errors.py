"""Exception hierarchy shared by the pipeline."""

from __future__ import annotations


class RagError(Exception):
    """Base class for every error raised by ragpdf."""


class ConfigurationError(RagError):
    """Invalid settings, e.g. a chunk overlap that is not smaller than the chunk size."""


class ExtractionError(RagError):
    """The source document could not be read or converted to text."""


class EmbeddingDimensionMismatch(RagError):
    """A vector does not have the dimension of the vectors accepted before it."""

    def __init__(self, expected: int, actual: int, *, position: int | None = None) -> None:
        where = f" at position {position}" if position is not None else ""
        super().__init__(
            f"Embedding dimension mismatch{where}: expected {expected}, got {actual}"
        )
        self.expected = expected
        self.actual = actual
        self.position = position


class IndexBuildError(RagError):
    """Embeddings do not line up one-to-one with the chunks they were built from."""


class RetrievalError(RagError):
    """Context retrieval failed while strict grounding is required."""


class ProviderError(RagError):
    """A remote embedding or completion call failed.

    ``transient`` errors (timeouts, rate limits, 5xx) are worth retrying;
    fatal ones are not.
    """

    def __init__(self, message: str, *, transient: bool = False) -> None:
        super().__init__(message)
        self.transient = transient

    @property
    def kind(self) -> str:
        return "transient" if self.transient else "fatal"
