"""FAISS-backed vector storage with SQLite metadata."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING, Any

import faiss
import numpy as np

from ragchat.config import config
from ragchat.errors import IndexUnavailableError
from ragchat.models import RetrievalMatch, VectorRecord
from ragchat.vector_store.base import SQLiteMetadataStore

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = config.get_logger(__name__)


class FaissVectorStore:
    """Vector storage using FAISS for embeddings and SQLite for metadata.

    Vectors are L2-normalised and searched by inner product, so scores are
    cosine similarities. Upserts are idempotent by record id.
    """

    backend = "faiss"

    def __init__(
        self,
        db_path: Path = Path("data/vector_store.db"),
        index_path: Path = Path("data/faiss/index.faiss"),
    ) -> None:
        """Configure FAISS-backed vector store.

        Raises:
            IndexUnavailableError: If the metadata database cannot be opened.
        """
        self.index_path = Path(index_path)
        self.index: faiss.IndexIDMap | None = None
        try:
            self.index_path.parent.mkdir(exist_ok=True, parents=True)
            self.metadata = SQLiteMetadataStore(db_path)
        except (OSError, sqlite3.Error) as exc:
            logger.exception("Unable to open vector store metadata at %s", db_path)
            msg = f"Vector store metadata unavailable: {exc}"
            raise IndexUnavailableError(msg) from exc

    @property
    def db_path(self) -> Path:
        return self.metadata.db_path

    @staticmethod
    def _normalize_embedding(embedding: np.ndarray) -> np.ndarray:
        """Normalize embedding for cosine similarity using inner product search.

        Returns:
            Normalized float32 row vector of shape ``(1, d)``.
        """
        # Copy: normalize_L2 works in place
        vector = np.array(embedding, dtype="float32").reshape(1, -1)
        if np.linalg.norm(vector) == 0:
            return vector
        faiss.normalize_L2(vector)
        return vector

    def _init_index(self, dimension: int) -> None:
        """Initialize an empty FAISS index."""
        self.index = faiss.IndexIDMap(faiss.IndexFlatIP(dimension))
        logger.info("Initialized FAISS IndexIDMap with dimension %d", dimension)

    def _check_dimension(self, dimension: int) -> None:
        if self.index is not None and dimension != self.index.d:
            msg = (
                f"Embedding dimension {dimension} does not match "
                f"FAISS index dimension {self.index.d}"
            )
            raise ValueError(msg)

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
            ValueError: If an embedding dimension mismatches the index.
            IndexUnavailableError: If metadata or the FAISS index cannot be written.
        """
        # Last write wins for ids repeated within one call
        unique = list({record.id: record for record in records}.values())
        if not unique:
            return

        if self.index is None and self.index_path.exists():
            self.load()

        vectors = [self._normalize_embedding(record.embedding) for record in unique]
        dimensions = {vector.shape[1] for vector in vectors}
        if len(dimensions) > 1:
            msg = f"Cannot mix embedding dimensions in one index: {sorted(dimensions)}"
            raise ValueError(msg)
        dimension = dimensions.pop()
        self._check_dimension(dimension)

        # Vector ids come from the metadata rows, so those are committed first.
        # If FAISS then fails, the rows stay without a vector until the same
        # ids are upserted again.
        try:
            written = self.metadata.write_records(unique)
        except sqlite3.Error as exc:
            logger.exception("Error writing vector metadata")
            msg = f"Vector store metadata unavailable: {exc}"
            raise IndexUnavailableError(msg) from exc

        if self.index is None:
            self._init_index(dimension)
        index = self.index
        vector_ids = np.asarray([vector_id for vector_id, _ in written], dtype="int64")
        replaced_ids = np.asarray(
            [vector_id for vector_id, replaced in written if replaced], dtype="int64"
        )
        try:
            if replaced_ids.size:
                index.remove_ids(replaced_ids)
            index.add_with_ids(np.vstack(vectors), vector_ids)  # pyright: ignore[reportCallIssue]  # FAISS stubs may not reflect add_with_ids signature
        except RuntimeError as exc:
            logger.exception("FAISS index rejected upsert")
            msg = f"FAISS index unavailable: {exc}"
            raise IndexUnavailableError(msg) from exc

        logger.info(
            "Upserted %d vectors (%d replaced)", len(vector_ids), replaced_ids.size
        )

    def query(self, embedding: np.ndarray, top_k: int = 10) -> list[RetrievalMatch]:
        """Search similar records using the FAISS index.

        Returns:
            Matches ordered by descending cosine similarity.

        Raises:
            ValueError: If the query dimension mismatches the index.
            IndexUnavailableError: If the index or metadata cannot be read.
        """
        if self.index is None:
            if not self.index_path.exists():
                logger.warning("FAISS index not initialized; returning no results")
                return []
            self.load()

        index = self.index
        if index is None or index.ntotal == 0 or top_k <= 0:
            return []

        normalized_query = self._normalize_embedding(embedding)
        self._check_dimension(normalized_query.shape[1])

        try:
            scores, vector_ids = index.search(
                normalized_query,
                min(top_k, index.ntotal),
            )  # pyright: ignore[reportCallIssue]
            rows = self.metadata.fetch(
                int(vector_id) for vector_id in vector_ids[0] if vector_id != -1
            )
        except (RuntimeError, sqlite3.Error) as exc:
            logger.exception("Vector query failed")
            msg = f"Vector query failed: {exc}"
            raise IndexUnavailableError(msg) from exc

        results: list[RetrievalMatch] = []
        for score, vector_id in zip(scores[0], vector_ids[0], strict=True):
            row = rows.get(int(vector_id))
            if row is None:  # faiss returns -1 for empty slots
                continue
            record_id, text, metadata = row
            results.append(
                RetrievalMatch(
                    score=float(score), text=text, id=record_id, metadata=metadata
                )
            )
        return results

    def count(self) -> int:
        """Number of vectors in the index."""
        return 0 if self.index is None else int(self.index.ntotal)

    def save(self) -> None:
        """Persist FAISS index to disk.

        Raises:
            IndexUnavailableError: If the index file cannot be written.
        """
        index = self.index
        if index is None:
            logger.warning("No FAISS index to save")
            return

        try:
            self.index_path.parent.mkdir(exist_ok=True, parents=True)
            faiss.write_index(index, str(self.index_path))
        except (OSError, RuntimeError) as exc:
            logger.exception("Error saving FAISS index to %s", self.index_path)
            msg = f"Unable to persist FAISS index: {exc}"
            raise IndexUnavailableError(msg) from exc
        logger.info("Saved FAISS index to %s", self.index_path)

    def load(self) -> None:
        """Load the FAISS index from disk.

        Raises:
            IndexUnavailableError: If the index file exists but cannot be read.
        """
        if not self.index_path.exists():
            logger.warning(
                "FAISS index not found at %s. Start with an empty index.",
                self.index_path,
            )
            self.index = None
            return

        try:
            loaded_index = faiss.read_index(str(self.index_path))
        except RuntimeError as exc:
            logger.exception("Error reading FAISS index %s", self.index_path)
            msg = f"Unable to read FAISS index: {exc}"
            raise IndexUnavailableError(msg) from exc

        if not isinstance(loaded_index, (faiss.IndexIDMap, faiss.IndexIDMap2)):
            logger.warning(
                "Loaded FAISS index is %s; wrapping with IndexIDMap to enable IDs",
                type(loaded_index).__name__,
            )
            loaded_index = faiss.IndexIDMap(loaded_index)
        self.index = loaded_index
        logger.info(
            "Loaded FAISS index from %s with %d vectors",
            self.index_path,
            loaded_index.ntotal,
        )
