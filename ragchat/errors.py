"""Typed failures raised by the RAG core."""


class RAGError(Exception):
    """Base class for failures surfaced to the request boundary."""


class EmbeddingServiceError(RAGError):
    """The embedding service call failed (network, auth or quota)."""


class IndexUnavailableError(RAGError):
    """The vector index is unreachable or the query failed."""


class GenerationError(RAGError):
    """The language model call failed during rewrite or synthesis."""
