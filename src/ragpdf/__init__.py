"""rag-my-pdf - chat with a PDF using retrieval-augmented generation."""

__version__ = "0.1.0"
