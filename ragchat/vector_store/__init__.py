"""Vector store adapters and factory."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from ragchat.config import config

from .faiss_store import FaissVectorStore
from .memory_store import InMemoryVectorStore

if TYPE_CHECKING:
    from pathlib import Path

VectorBackend = Literal["faiss", "memory"]


def get_vector_store(
    store: VectorBackend | str = "faiss",
    *,
    db_path: Path | None = None,
    index_path: Path | None = None,
) -> FaissVectorStore | InMemoryVectorStore:
    """Return a configured vector store instance.

    Raises:
        ValueError: If an unsupported backend is requested.
    """
    backend = store.lower()

    if backend == "faiss":
        return FaissVectorStore(
            db_path=db_path if db_path is not None else config.VECTOR_STORE_DB_PATH,
            index_path=(
                index_path if index_path is not None else config.FAISS_INDEX_PATH
            ),
        )

    if backend == "memory":
        return InMemoryVectorStore()

    msg = f"Unsupported vector store backend: {store}"
    raise ValueError(msg)


__all__ = [
    "FaissVectorStore",
    "InMemoryVectorStore",
    "VectorBackend",
    "get_vector_store",
]
