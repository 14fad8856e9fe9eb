"""In-process vector storage with numpy cosine similarity."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np

from ragchat.config import config
from ragchat.models import RetrievalMatch, VectorRecord

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = config.get_logger(__name__)


class InMemoryVectorStore:
    """Vector storage kept in process memory; nothing is persisted."""

    backend = "memory"

    def __init__(self) -> None:
        self._records: dict[str, VectorRecord] = {}
        self.dimension: int | None = None

    def upsert(
        self, record_id: str, embedding: np.ndarray, metadata: dict[str, Any]
    ) -> None:
        """Insert or replace a single record."""
        self.upsert_many([
            VectorRecord(id=record_id, embedding=embedding, metadata=metadata)
        ])

    def upsert_many(self, records: Sequence[VectorRecord]) -> None:
        """Insert or replace records, keyed by record id.

        Raises:
            ValueError: If an embedding dimension mismatches the store.
        """
        for record in records:
            vector = np.asarray(record.embedding, dtype=np.float32).ravel()
            if self.dimension is None:
                self.dimension = vector.shape[0]
            elif vector.shape[0] != self.dimension:
                msg = (
                    f"Embedding dimension {vector.shape[0]} does not match "
                    f"store dimension {self.dimension}"
                )
                raise ValueError(msg)
            self._records[record.id] = VectorRecord(
                id=record.id, embedding=vector, metadata=dict(record.metadata)
            )
        logger.info("Upserted %d records into memory store", len(records))

    @staticmethod
    def cosine_similarity(
        query_embedding: np.ndarray,
        embeddings: np.ndarray,
    ) -> np.ndarray:
        """Calculate cosine similarity between query and stored embeddings.

        Returns:
            np.ndarray: One score per stored embedding.
        """
        query_norm = np.linalg.norm(query_embedding)
        doc_norms = np.linalg.norm(embeddings, axis=1)
        denominator = np.where(doc_norms * query_norm == 0, 1.0, doc_norms * query_norm)
        return np.dot(embeddings, query_embedding) / denominator

    def query(self, embedding: np.ndarray, top_k: int = 10) -> list[RetrievalMatch]:
        """Search records by cosine similarity.

        Returns:
            Matches ordered by descending score.

        Raises:
            ValueError: If the query dimension mismatches the store.
        """
        if not self._records or top_k <= 0:
            return []

        query_vector = np.asarray(embedding, dtype=np.float32).ravel()
        if query_vector.shape[0] != self.dimension:
            msg = (
                f"Query dimension {query_vector.shape[0]} does not match "
                f"store dimension {self.dimension}"
            )
            raise ValueError(msg)

        records = list(self._records.values())
        matrix = np.vstack([record.embedding for record in records])
        similarities = self.cosine_similarity(query_vector, matrix)
        top_indices = np.argsort(-similarities, kind="stable")[:top_k]

        return [
            RetrievalMatch(
                score=float(similarities[idx]),
                text=str(records[idx].metadata.get("text", "")),
                id=records[idx].id,
                metadata=records[idx].metadata,
            )
            for idx in top_indices
        ]

    def count(self) -> int:
        return len(self._records)

    def save(self) -> None:  # noqa: PLR6301
        """No-op; records live only as long as the process."""
        logger.info("Memory vector store has nothing to persist")

    def load(self) -> None:  # noqa: PLR6301
        """No-op counterpart of ``save``."""
