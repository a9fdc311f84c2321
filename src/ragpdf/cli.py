"""Command line interface for rag-my-pdf."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ragpdf.chat.loop import ConversationLoop
from ragpdf.config import AppConfig
from ragpdf.errors import RagError
from ragpdf.pipeline import (
    Pipeline,
    build_pipeline,
    close_providers,
    create_providers,
    load_source,
)
from ragpdf.utils.text import chunk_stats, chunk_words

LOGGER = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)
app = typer.Typer(help="rag-my-pdf - chat with a PDF using retrieval-augmented generation")

_DEFAULTS = AppConfig()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)


def _fail(exc: BaseException) -> NoReturn:
    err_console.print(f"[red]Error:[/red] {escape(str(exc))}", soft_wrap=True)
    raise typer.Exit(code=1)


def _start_pipeline(config: AppConfig) -> Pipeline:
    try:
        config.validate()
        embedder, completer = create_providers(config)
    except RagError as exc:
        _fail(exc)

    try:
        return build_pipeline(config, embedder=embedder, completer=completer)
    except RagError as exc:
        close_providers(embedder, completer)
        _fail(exc)
    except KeyboardInterrupt:
        close_providers(embedder, completer)
        raise typer.Exit(code=130)


def _print_welcome(pipeline: Pipeline) -> None:
    config = pipeline.config
    console.print("           [bold]Welcome to RAG PDF Chatbot![/bold]")
    console.print()
    console.print(f"Loaded {len(pipeline.chunks)} chunks from your document")
    console.print(f"Using model: {config.model_name}")
    if config.document_path is not None:
        console.print(
            f"Ask me anything about the document {escape(str(config.document_path))}",
            soft_wrap=True,
        )
    exit_hint = " or ".join(f"'{token}'" for token in config.exit_tokens)
    console.print(f"Type {exit_hint} or press Ctrl+C to quit\n")


@app.command()
def chat(
    pdf: Optional[Path] = typer.Option(None, "--pdf", "-p", help="Path to the PDF file to load"),
    model: str = typer.Option(_DEFAULTS.model_name, "--model", "-m", help="OpenAI chat model"),
    chunk_size: int = typer.Option(_DEFAULTS.chunk_size, help="Chunk size in words"),
    chunk_overlap: int = typer.Option(
        _DEFAULTS.chunk_overlap, help="Overlap between chunks in words"
    ),
    top_k: int = typer.Option(_DEFAULTS.top_k, help="Chunks retrieved per question"),
    token_budget: int = typer.Option(
        _DEFAULTS.token_budget, help="Maximum words of retrieved context per question"
    ),
    embedding_backend: str = typer.Option(
        _DEFAULTS.embedding_backend, help="Embedding backend: openai or local"
    ),
    embedding_model: str = typer.Option(_DEFAULTS.embedding_model, help="Embedding model name"),
    timeout: float = typer.Option(_DEFAULTS.request_timeout, help="Request timeout in seconds"),
    strict: bool = typer.Option(
        False, "--strict", help="Fail a turn instead of answering without context"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Chat with a document."""
    _setup_logging(verbose)
    LOGGER.info("Starting RAG PDF Chatbot")
    config = AppConfig(
        document_path=pdf,
        model_name=model,
        embedding_model=embedding_model,
        embedding_backend=embedding_backend,
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        top_k=top_k,
        token_budget=token_budget,
        request_timeout=timeout,
        strict_grounding=strict,
        verbose=verbose,
    )
    LOGGER.debug("Using model: %s", config.model_name)

    pipeline = _start_pipeline(config)
    with pipeline:
        _print_welcome(pipeline)
        state = ConversationLoop(pipeline, console=console).run()
    LOGGER.info("Chatbot session ended after %d exchanges", len(state.history) // 2)


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    pdf: Optional[Path] = typer.Option(None, "--pdf", "-p", help="Path to the PDF file to load"),
    chunk_size: int = typer.Option(_DEFAULTS.chunk_size, help="Chunk size in words"),
    chunk_overlap: int = typer.Option(
        _DEFAULTS.chunk_overlap, help="Overlap between chunks in words"
    ),
    top_k: int = typer.Option(5, help="Number of results to display"),
    embedding_backend: str = typer.Option(
        _DEFAULTS.embedding_backend, help="Embedding backend: openai or local"
    ),
    embedding_model: str = typer.Option(_DEFAULTS.embedding_model, help="Embedding model name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Show which chunks would be retrieved for a query."""
    _setup_logging(verbose)
    config = AppConfig(
        document_path=pdf,
        embedding_model=embedding_model,
        embedding_backend=embedding_backend,
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        top_k=top_k,
        verbose=verbose,
    )

    pipeline = _start_pipeline(config)
    with pipeline:
        try:
            hits = pipeline.context_builder.retrieve(query)
        except RagError as exc:
            _fail(exc)

    if not hits:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("Chunk")
    table.add_column("Snippet")
    for hit in hits:
        snippet = hit.chunk.text.replace("\n", " ")
        table.add_row(f"{hit.score:.4f}", str(hit.chunk.index), escape(snippet[:180]))
    console.print(table)


@app.command()
def chunks(
    pdf: Optional[Path] = typer.Option(None, "--pdf", "-p", help="Path to the PDF file to load"),
    chunk_size: int = typer.Option(_DEFAULTS.chunk_size, help="Chunk size in words"),
    chunk_overlap: int = typer.Option(
        _DEFAULTS.chunk_overlap, help="Overlap between chunks in words"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Print chunking statistics without calling any model."""
    _setup_logging(verbose)
    config = AppConfig(document_path=pdf, chunk_size=chunk_size, chunk_overlap=chunk_overlap)
    try:
        config.validate()
        document = load_source(config)
        pieces = chunk_words(document.text, size=config.chunk_size, overlap=config.chunk_overlap)
    except RagError as exc:
        _fail(exc)

    stats = chunk_stats(pieces)
    console.print(
        f"Chunks: {stats['chunk_count']}, words: {stats['total_words']}, "
        f"min/avg/max words per chunk: "
        f"{stats['min_words']}/{stats['avg_words']}/{stats['max_words']}"
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
