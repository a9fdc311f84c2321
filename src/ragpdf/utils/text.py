"""Text helpers including word-window chunking."""

from __future__ import annotations

from typing import Iterable, List

from ragpdf.errors import ConfigurationError
from ragpdf.models import Chunk


def validate_window(size: int, overlap: int) -> int:
    """Return the window step, rejecting pairs that would never advance."""
    if size <= 0:
        raise ConfigurationError(f"chunk size must be positive, got {size}")
    if overlap < 0:
        raise ConfigurationError(f"chunk overlap must not be negative, got {overlap}")
    if overlap >= size:
        raise ConfigurationError(
            f"chunk overlap ({overlap}) must be less than chunk size ({size})"
        )
    return size - overlap


def chunk_words(text: str, *, size: int = 500, overlap: int = 50) -> List[Chunk]:
    """Split text into overlapping windows of ``size`` whitespace-separated words.

    Consecutive windows start ``size - overlap`` words apart; the last one may
    be shorter than ``size``. Text without any word yields no chunks.
    """
    step = validate_window(size, overlap)
    words = text.split()
    chunks: List[Chunk] = []
    start = 0
    while start < len(words):
        end = min(start + size, len(words))
        chunks.append(
            Chunk(index=len(chunks), text=" ".join(words[start:end]), source_offset=start)
        )
        if end >= len(words):
            break
        start += step
    return chunks


def count_words(text: str) -> int:
    return len(text.split())


def chunk_stats(chunks: List[Chunk]) -> dict:
    """Summarise chunk sizes in words."""
    if not chunks:
        return {"chunk_count": 0, "total_words": 0, "min_words": 0, "avg_words": 0, "max_words": 0}
    sizes = [chunk.word_count for chunk in chunks]
    return {
        "chunk_count": len(chunks),
        "total_words": sum(sizes),
        "min_words": min(sizes),
        "avg_words": sum(sizes) // len(sizes),
        "max_words": max(sizes),
    }


def normalize_whitespace(lines: Iterable[str]) -> str:
    """Collapse whitespace and join lines."""
    return "\n".join(line.strip() for line in lines if line.strip())


def preview(text: str, limit: int = 100) -> str:
    return text[:limit]
