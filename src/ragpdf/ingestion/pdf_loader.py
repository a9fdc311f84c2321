"""Document loading.

Uses PyMuPDF (fitz) for PDF text extraction; plain text and markdown files
are read as UTF-8.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import fitz  # PyMuPDF

from ragpdf.errors import ExtractionError
from ragpdf.models import Document
from ragpdf.utils.text import normalize_whitespace

LOGGER = logging.getLogger(__name__)

TEXT_SUFFIXES = {".txt", ".md"}


def iter_text_parts(path: Path) -> Iterator[str]:
    """Yield normalized text content from a PDF file page by page."""
    try:
        doc = fitz.open(path)
    except Exception as exc:
        raise ExtractionError(f"Failed to open PDF {path}: {exc}") from exc

    try:
        for index in range(len(doc)):
            try:
                text = doc[index].get_text() or ""
            except Exception as exc:
                raise ExtractionError(
                    f"Failed to extract text from page {index} of {path}: {exc}"
                ) from exc
            normalized = normalize_whitespace(text.splitlines())
            if normalized:
                yield normalized
    finally:
        doc.close()


def load_pdf_content(path: Path) -> str:
    return "\n".join(iter_text_parts(path))


def load_document(path: Path) -> Document:
    """Load ``path`` into a :class:`Document`.

    Raises:
        ExtractionError: the file is missing, has an unsupported type or
            cannot be parsed.
    """
    path = Path(path)
    if not path.is_file():
        raise ExtractionError(f"Document not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".pdf":
        text = load_pdf_content(path)
    elif suffix in TEXT_SUFFIXES:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ExtractionError(f"Failed to read {path}: {exc}") from exc
    else:
        raise ExtractionError(f"Unsupported document type '{suffix or path.name}': {path}")

    LOGGER.debug("Extracted %d characters from %s", len(text), path)
    return Document(identifier=str(path), text=text)
