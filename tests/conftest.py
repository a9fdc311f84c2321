"""Shared fixtures."""

from __future__ import annotations

from typing import Callable

import pytest

from fakes import FakeCompleter, FakeEmbedder
from ragpdf.config import AppConfig
from ragpdf.models import Document
from ragpdf.pipeline import Pipeline, build_pipeline


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def fake_completer() -> FakeCompleter:
    return FakeCompleter()


@pytest.fixture
def make_pipeline(
    fake_embedder: FakeEmbedder, fake_completer: FakeCompleter
) -> Callable[..., Pipeline]:
    """Build a pipeline over ``text`` with the fake providers."""

    def _make(text: str = "alpha beta gamma delta", **overrides) -> Pipeline:
        overrides.setdefault("chunk_size", 2)
        overrides.setdefault("chunk_overlap", 0)
        config = AppConfig(**overrides)
        document = Document(identifier="test", text=text)
        return build_pipeline(
            config, embedder=fake_embedder, completer=fake_completer, document=document
        )

    return _make
