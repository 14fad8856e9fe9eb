"""ragchat - grounded question answering over a reference document."""

from .conversation import ChatSession, History, SessionRegistry
from .document_processing import DocumentLoader, TextChunker
from .embeddings import EmbeddingService
from .errors import (
    EmbeddingServiceError,
    GenerationError,
    IndexUnavailableError,
    RAGError,
)
from .llm import OpenAIChatModel
from .models import (
    ContextBlock,
    ConversationTurn,
    DocumentChunk,
    RetrievalMatch,
    Role,
    VectorRecord,
)
from .pipeline import (
    ChatResult,
    ConversationalRAG,
    IngestionPipeline,
    build_default_components,
)
from .retrieval import ContextAssembler
from .rewriter import QueryRewriter
from .service import ChatService
from .synthesizer import AnswerSynthesizer
from .vector_store import FaissVectorStore, InMemoryVectorStore, get_vector_store

__all__ = [
    "AnswerSynthesizer",
    "ChatResult",
    "ChatService",
    "ChatSession",
    "ContextAssembler",
    "ContextBlock",
    "ConversationTurn",
    "ConversationalRAG",
    "DocumentChunk",
    "DocumentLoader",
    "EmbeddingService",
    "EmbeddingServiceError",
    "FaissVectorStore",
    "GenerationError",
    "History",
    "InMemoryVectorStore",
    "IndexUnavailableError",
    "IngestionPipeline",
    "OpenAIChatModel",
    "QueryRewriter",
    "RAGError",
    "RetrievalMatch",
    "Role",
    "SessionRegistry",
    "TextChunker",
    "VectorRecord",
    "build_default_components",
    "get_vector_store",
]
