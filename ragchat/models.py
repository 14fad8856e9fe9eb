"""Data models for the RAG application."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np


class Role(str, Enum):
    """Author of a conversation turn."""

    USER = "user"
    MODEL = "model"


@dataclass(frozen=True)
class ConversationTurn:
    """Represents a single turn in the conversation."""

    role: Role
    text: str


@dataclass(frozen=True)
class DocumentChunk:
    """Represents a chunk of text from a document."""

    text: str
    source_offset: int
    length: int
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass
class VectorRecord:
    """One embedded chunk as stored in the vector index."""

    id: str
    embedding: np.ndarray
    metadata: dict[str, Any]


@dataclass(frozen=True)
class RetrievalMatch:
    """A similarity query hit."""

    score: float
    text: str
    id: str = ""
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class ContextBlock:
    """Retrieved passages joined into the text handed to the prompt."""

    text: str
    matches: tuple[RetrievalMatch, ...] = ()

    @property
    def is_empty(self) -> bool:
        """Whether no passage made it into the block."""
        return not self.text

    def __str__(self) -> str:
        return self.text
