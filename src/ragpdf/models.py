"""Core ragpdf data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List

import numpy as np


@dataclass(frozen=True, slots=True)
class Document:
    """Raw document text plus an identifier (usually the source path)."""

    identifier: str
    text: str


@dataclass(frozen=True, slots=True)
class Chunk:
    """Ordered fragment of a document.

    ``source_offset`` is the position of the chunk's first word in the
    document's word sequence.
    """

    index: int
    text: str
    source_offset: int

    @property
    def word_count(self) -> int:
        return len(self.text.split())


@dataclass(slots=True)
class Embedding:
    """Vector for the chunk with the same index."""

    chunk_index: int
    vector: np.ndarray

    @property
    def dimension(self) -> int:
        return int(self.vector.shape[0])


@dataclass(frozen=True, slots=True)
class SearchHit:
    chunk: Chunk
    score: float


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True, slots=True)
class Turn:
    role: Role
    text: str


class ConversationStatus(str, Enum):
    ACTIVE = "active"
    TERMINATED = "terminated"


@dataclass(slots=True)
class ConversationState:
    """Dialogue history; only the conversation loop mutates it."""

    history: List[Turn] = field(default_factory=list)
    status: ConversationStatus = ConversationStatus.ACTIVE

    def record_exchange(self, user_text: str, reply: str) -> None:
        self.history.append(Turn(Role.USER, user_text))
        self.history.append(Turn(Role.ASSISTANT, reply))
