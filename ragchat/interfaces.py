"""Capability interfaces the pipeline depends on.

The rewriter, assembler and synthesizer only talk to these protocols, so the
OpenAI and FAISS adapters can be swapped for deterministic fixtures.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    import numpy as np

    from .models import ConversationTurn, RetrievalMatch, VectorRecord


@runtime_checkable
class Embedder(Protocol):
    """Anything that can turn text into fixed-dimensionality vectors."""

    def embed(self, text: str) -> np.ndarray: ...

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]: ...


@runtime_checkable
class VectorIndex(Protocol):
    """Similarity index supporting idempotent upsert and top-K query."""

    def upsert(
        self, record_id: str, embedding: np.ndarray, metadata: dict[str, Any]
    ) -> None: ...

    def upsert_many(self, records: Sequence[VectorRecord]) -> None: ...

    def query(self, embedding: np.ndarray, top_k: int) -> list[RetrievalMatch]: ...

    def save(self) -> None: ...


@runtime_checkable
class ChatModel(Protocol):
    """Chat completion with a rolling conversation history."""

    def complete(
        self,
        history: Sequence[ConversationTurn],
        message: str,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str: ...
