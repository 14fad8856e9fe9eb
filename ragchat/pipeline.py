"""Ingestion and conversational RAG pipelines."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .config import config
from .document_processing import DocumentLoader, TextChunker
from .embeddings import EmbeddingService
from .llm import OpenAIChatModel
from .models import ContextBlock, DocumentChunk, VectorRecord
from .retrieval import ContextAssembler
from .rewriter import QueryRewriter
from .synthesizer import AnswerSynthesizer
from .vector_store import get_vector_store

if TYPE_CHECKING:
    from .conversation import ChatSession
    from .interfaces import Embedder, VectorIndex

logger = config.get_logger(__name__)


def chunk_record_id(chunk: DocumentChunk) -> str:
    """Deterministic record id for a chunk: source name plus chunk position."""
    return f"{chunk.metadata['source']}:{chunk.metadata['chunk_index']:06d}"


class IngestionPipeline:
    """Offline pipeline: Load -> Split -> Embed -> Upsert."""

    def __init__(
        self,
        embedder: Embedder,
        index: VectorIndex,
        chunker: TextChunker | None = None,
    ) -> None:
        self.embedder = embedder
        self.index = index
        self.chunker = chunker or TextChunker(
            chunk_size=config.CHUNK_SIZE, overlap=config.CHUNK_OVERLAP
        )

    def build_records(
        self, chunks: list[DocumentChunk], embeddings: list
    ) -> list[VectorRecord]:
        """Pair chunks with their embeddings as index records.

        Returns:
            One record per chunk, in chunk order.
        """
        return [
            VectorRecord(
                id=chunk_record_id(chunk),
                embedding=embedding,
                metadata={
                    "text": chunk.text,
                    "source": chunk.metadata["source"],
                    "page": chunk.metadata.get("page"),
                    "chunk_index": chunk.metadata["chunk_index"],
                    "source_offset": chunk.source_offset,
                    "length": chunk.length,
                },
            )
            for chunk, embedding in zip(chunks, embeddings, strict=True)
        ]

    def ingest(self, file_path: Path) -> int:
        """Index a document; re-running it overwrites the same record ids.

        Returns:
            Number of chunks written to the index.
        """
        file_path = Path(file_path)
        logger.info("Starting ingestion for document: %s", file_path)

        pages = DocumentLoader.load_pages(file_path)
        chunks = self.chunker.chunk_pages(pages, source=file_path.name)
        if not chunks:
            logger.warning("Document %s produced no chunks", file_path)
            return 0

        embeddings = self.embedder.embed_batch([chunk.text for chunk in chunks])
        self.index.upsert_many(self.build_records(chunks, embeddings))
        self.index.save()

        logger.info("Ingestion completed. Total chunks: %d", len(chunks))
        return len(chunks)


@dataclass(frozen=True)
class ChatResult:
    """Outcome of one conversational request."""

    answer: str
    standalone_question: str
    context: ContextBlock


class ConversationalRAG:
    """Per-request flow: rewrite -> retrieve -> synthesize -> record."""

    def __init__(
        self,
        rewriter: QueryRewriter,
        assembler: ContextAssembler,
        synthesizer: AnswerSynthesizer,
    ) -> None:
        self.rewriter = rewriter
        self.assembler = assembler
        self.synthesizer = synthesizer

    def ask(self, session: ChatSession, question: str) -> ChatResult:
        """Answer ``question`` within ``session``.

        Requests on the same session are serialised; different sessions run
        independently. Retrieval and generation failures propagate as
        ``RAGError`` subclasses.

        Returns:
            The answer together with the standalone question and its context.
        """
        with session.lock:
            logger.info("Processing question for session %s", session.session_id)
            standalone = self.rewriter.rewrite(question, session.history)
            context = self.assembler.build_context(standalone)
            if context.is_empty:
                logger.info("No context retrieved for: %s", standalone)
            answer = self.synthesizer.answer(standalone, context, session.history)
        return ChatResult(
            answer=answer, standalone_question=standalone, context=context
        )


@dataclass(frozen=True)
class RAGComponents:
    """Pipelines wired against the same embedder and index."""

    ingestion: IngestionPipeline
    chat: ConversationalRAG


def build_default_components(
    openai_api_key: str | None = None,
    vector_backend: str | None = None,
) -> RAGComponents:
    """Wire OpenAI gateways and the configured vector store.

    Returns:
        Ingestion and chat pipelines sharing one index.
    """
    backend = vector_backend or config.VECTOR_BACKEND
    index = get_vector_store(backend)
    index.load()
    logger.info("Using %s vector storage", index.backend)

    embedder = EmbeddingService(api_key=openai_api_key)
    chat_model = OpenAIChatModel(api_key=openai_api_key)

    return RAGComponents(
        ingestion=IngestionPipeline(embedder=embedder, index=index),
        chat=ConversationalRAG(
            rewriter=QueryRewriter(chat_model),
            assembler=ContextAssembler(embedder=embedder, index=index),
            synthesizer=AnswerSynthesizer(chat_model),
        ),
    )
