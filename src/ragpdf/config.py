"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Mapping, Tuple

from ragpdf.errors import ConfigurationError
from ragpdf.utils.text import validate_window

DEFAULT_CHAT_MODEL = "gpt-3.5-turbo"
DEFAULT_EMBEDDING_MODEL = "text-embedding-ada-002"
DEFAULT_LOCAL_EMBEDDING_MODEL = "sentence-transformers/all-mpnet-base-v2"
DEFAULT_PREAMBLE = (
    "You are a helpful assistant that answers questions based on the given context "
    "from the provided PDF document."
)
DEFAULT_DOCUMENT_TEXT = "The answer to life is 42 by the way"
API_KEY_ENV = "OPENAI_API_KEY"
BASE_URL_ENV = "OPENAI_BASE_URL"

EMBEDDING_BACKENDS = ("openai", "local")


@dataclass(slots=True)
class AppConfig:
    document_path: Path | None = None
    model_name: str = DEFAULT_CHAT_MODEL
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    embedding_backend: Literal["openai", "local"] = "openai"
    chunk_size: int = 500
    chunk_overlap: int = 50
    top_k: int = 2
    token_budget: int = 1500
    embed_batch_size: int = 32
    workers: int = 4
    request_timeout: float = 30.0
    max_attempts: int = 3
    strict_grounding: bool = False
    exit_tokens: Tuple[str, ...] = ("exit", "quit")
    preamble: str = DEFAULT_PREAMBLE
    verbose: bool = False

    def validate(self) -> "AppConfig":
        """Reject settings the pipeline cannot run with.

        Called before any document is loaded, so a bad chunk size/overlap
        pair never reaches the chunker.
        """
        validate_window(self.chunk_size, self.chunk_overlap)
        for name in ("top_k", "token_budget", "embed_batch_size", "workers", "max_attempts"):
            value = getattr(self, name)
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value}")
        if self.request_timeout <= 0:
            raise ConfigurationError(
                f"request_timeout must be positive, got {self.request_timeout}"
            )
        if self.embedding_backend not in EMBEDDING_BACKENDS:
            raise ConfigurationError(
                f"unknown embedding backend {self.embedding_backend!r}; "
                f"expected one of {', '.join(EMBEDDING_BACKENDS)}"
            )
        if not any(token.strip() for token in self.exit_tokens):
            raise ConfigurationError("at least one exit token is required")
        return self

    def is_exit_token(self, text: str) -> bool:
        candidate = text.strip().lower()
        return any(candidate == token.strip().lower() for token in self.exit_tokens)


def read_api_key(env: Mapping[str, str] | None = None) -> str:
    """Return the OpenAI credential or fail at startup."""
    env = os.environ if env is None else env
    value = (env.get(API_KEY_ENV) or "").strip()
    if not value:
        raise ConfigurationError(f"Missing {API_KEY_ENV}. Export it before starting.")
    return value


def read_base_url(env: Mapping[str, str] | None = None) -> str | None:
    env = os.environ if env is None else env
    value = (env.get(BASE_URL_ENV) or "").strip()
    return value or None
