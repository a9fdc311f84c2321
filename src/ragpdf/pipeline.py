"""Startup pipeline: document -> chunks -> embeddings -> index."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Mapping, Tuple

from ragpdf.config import (
    DEFAULT_DOCUMENT_TEXT,
    DEFAULT_EMBEDDING_MODEL,
    DEFAULT_LOCAL_EMBEDDING_MODEL,
    AppConfig,
    read_api_key,
    read_base_url,
)
from ragpdf.index.indexer import build_index
from ragpdf.index.vector_index import VectorIndex
from ragpdf.ingestion.pdf_loader import load_document
from ragpdf.models import Chunk, Document
from ragpdf.providers.base import CompletionProvider, EmbeddingProvider
from ragpdf.providers.openai_client import OpenAIClient
from ragpdf.retrieval.context import ContextBuilder
from ragpdf.utils.text import chunk_words, preview

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class Pipeline:
    """Everything one conversation needs, passed around explicitly."""

    config: AppConfig
    document: Document
    chunks: List[Chunk]
    index: VectorIndex
    embedder: EmbeddingProvider
    completer: CompletionProvider
    context_builder: ContextBuilder

    def close(self) -> None:
        """Release provider connections."""
        close_providers(self.embedder, self.completer)

    def __enter__(self) -> "Pipeline":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def close_providers(*providers: object) -> None:
    seen: set[int] = set()
    for provider in providers:
        if id(provider) in seen:
            continue
        seen.add(id(provider))
        close = getattr(provider, "close", None)
        if callable(close):
            close()


def load_source(config: AppConfig) -> Document:
    if config.document_path is None:
        LOGGER.warning("No PDF provided, using default document")
        return Document(identifier="<default>", text=DEFAULT_DOCUMENT_TEXT)
    LOGGER.info("Loading PDF from: %s", config.document_path)
    return load_document(config.document_path)


def create_providers(
    config: AppConfig, env: Mapping[str, str] | None = None
) -> Tuple[EmbeddingProvider, CompletionProvider]:
    """Create the embedding and completion providers for ``config``.

    Raises:
        ConfigurationError: the API credential is missing.
    """
    api_key = read_api_key(env)
    LOGGER.info("Initializing OpenAI client")
    client = OpenAIClient(
        api_key,
        chat_model=config.model_name,
        embedding_model=config.embedding_model,
        base_url=read_base_url(env),
        timeout=config.request_timeout,
        max_attempts=config.max_attempts,
    )
    if config.embedding_backend != "local":
        return client, client

    from ragpdf.embedding.encoder import EmbeddingConfig, EmbeddingModel

    model_name = config.embedding_model
    if model_name == DEFAULT_EMBEDDING_MODEL:
        model_name = DEFAULT_LOCAL_EMBEDDING_MODEL
    try:
        embedder = EmbeddingModel(EmbeddingConfig(model_name=model_name))
    except Exception:
        client.close()
        raise
    return embedder, client


def build_pipeline(
    config: AppConfig,
    *,
    embedder: EmbeddingProvider,
    completer: CompletionProvider,
    document: Document | None = None,
) -> Pipeline:
    """Load, chunk, embed and index the document described by ``config``.

    An empty document is accepted: the index stays empty and every turn is
    answered without retrieved context.
    """
    config.validate()
    if document is None:
        document = load_source(config)

    LOGGER.info(
        "Chunking text (size: %d, overlap: %d)", config.chunk_size, config.chunk_overlap
    )
    chunks = chunk_words(document.text, size=config.chunk_size, overlap=config.chunk_overlap)
    LOGGER.info("Created %d chunks from document", len(chunks))
    if chunks:
        LOGGER.debug("First chunk preview: %s...", preview(chunks[0].text))
    else:
        LOGGER.warning("Document %s has no text; answers will not be grounded", document.identifier)

    LOGGER.info("Building embeddings from %d chunks", len(chunks))
    index = build_index(
        chunks, embedder, batch_size=config.embed_batch_size, workers=config.workers
    )
    LOGGER.info("Vector index ready (%d vectors, dimension %d)", len(index), index.dimension)

    context_builder = ContextBuilder(
        embedder,
        index,
        top_k=config.top_k,
        token_budget=config.token_budget,
        strict_grounding=config.strict_grounding,
    )
    return Pipeline(
        config=config,
        document=document,
        chunks=chunks,
        index=index,
        embedder=embedder,
        completer=completer,
        context_builder=context_builder,
    )
