"""Test configuration and fixtures for ragchat tests.

This module provides reusable test fixtures organized by functionality:
- Constants and test data
- Deterministic stand-ins for the embedding, chat and index collaborators
- OpenAI API mocks
- Vector store fixtures
- Pipeline factories
"""

import hashlib
from collections.abc import Callable, Sequence
from pathlib import Path
from unittest.mock import Mock, patch

import numpy as np
import pytest

from ragchat import (
    AnswerSynthesizer,
    ContextAssembler,
    ConversationalRAG,
    ConversationTurn,
    EmbeddingService,
    FaissVectorStore,
    GenerationError,
    History,
    InMemoryVectorStore,
    OpenAIChatModel,
    QueryRewriter,
    RetrievalMatch,
    Role,
    VectorRecord,
)

PROJECT_ROOT = Path(__file__).resolve().parent.parent
TEST_DATA_DIR = PROJECT_ROOT / "tests" / "data"


class TestConstants:
    """Centralized test constants shared across test files."""

    # API Configuration
    TEST_API_KEY = "test-key"
    TEST_EMBEDDING_MODEL = "text-embedding-3-small"
    TEST_CHAT_MODEL = "gpt-test"
    DEFAULT_EMBEDDING_DIMENSION = 64

    # Text Chunking Configuration
    SMALL_CHUNK_SIZE = 100
    SMALL_CHUNK_OVERLAP = 20
    DEFAULT_CHUNK_SIZE = 1000
    DEFAULT_CHUNK_OVERLAP = 200

    # Scenario text
    BIG_O_QUESTION = "What is Big-O notation?"
    FOLLOW_UP_QUESTION = "Can you give an example?"
    BIG_O_STANDALONE = "Can you give an example of Big-O notation?"
    BIG_O_FIXTURE_TEXTS = (
        "Big-O notation describes an upper bound on the growth rate of an "
        "algorithm's running time.",
        "Scanning an unsorted array for a value is O(n).",
        "Binary search on a sorted array is O(log n).",
    )


class MockEmbeddingService:
    """Mock embedding service for testing without API calls.

    Generates deterministic embeddings based on text content hash,
    ensuring consistent test results across runs.
    """

    def __init__(
        self, dimension: int = TestConstants.DEFAULT_EMBEDDING_DIMENSION
    ) -> None:
        self.dimension = dimension
        self.calls: list[str] = []

    def embed(self, text: str) -> np.ndarray:
        """Generate deterministic mock embedding based on text hash."""
        self.calls.append(text)
        seed = int.from_bytes(
            hashlib.sha256(text.lower().encode("utf-8")).digest()[:8],
            byteorder="big",
            signed=False,
        )
        rng = np.random.default_rng(seed)
        embedding = rng.normal(0, 1, self.dimension)
        return (embedding / np.linalg.norm(embedding)).astype(np.float32)

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Generate batch of mock embeddings."""
        return [self.embed(text) for text in texts]


class FakeChatModel:
    """Scripted chat model recording every call.

    ``replies`` is either a callable ``(history, message) -> str`` or a list of
    strings/exceptions consumed in order.
    """

    def __init__(
        self,
        replies: Callable[[Sequence[ConversationTurn], str], str] | list | None = None,
    ) -> None:
        self.replies = replies if replies is not None else []
        self.calls: list[tuple[tuple[ConversationTurn, ...], str]] = []

    def complete(
        self,
        history: Sequence[ConversationTurn],
        message: str,
        *,
        max_tokens: int | None = None,  # noqa: ARG002
        temperature: float | None = None,  # noqa: ARG002
    ) -> str:
        self.calls.append((tuple(history), message))
        if callable(self.replies):
            return self.replies(history, message)
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


class FailingChatModel(FakeChatModel):
    """Chat model whose every call fails."""

    def __init__(self, error: Exception | None = None) -> None:
        super().__init__()
        self.error = error or GenerationError("model unavailable")

    def complete(self, history, message, **_kwargs):  # noqa: ANN001, ANN201
        self.calls.append((tuple(history), message))
        raise self.error


class FixtureVectorIndex:
    """Vector index returning a fixed list of matches."""

    def __init__(self, matches: list[RetrievalMatch] | None = None) -> None:
        self.matches = matches or []
        self.queries: list[tuple[np.ndarray, int]] = []
        self.records: dict[str, VectorRecord] = {}
        self.saved = 0

    def upsert(self, record_id, embedding, metadata) -> None:  # noqa: ANN001
        self.upsert_many([VectorRecord(record_id, embedding, metadata)])

    def upsert_many(self, records) -> None:  # noqa: ANN001
        for record in records:
            self.records[record.id] = record

    def query(self, embedding: np.ndarray, top_k: int) -> list[RetrievalMatch]:
        self.queries.append((embedding, top_k))
        return self.matches[:top_k]

    def save(self) -> None:
        self.saved += 1


def create_mock_openai_response(embeddings: list[list[float]]) -> Mock:
    """Create a mock OpenAI embeddings API response.

    Args:
        embeddings: List of embedding vectors to return.

    Returns:
        Mock object representing OpenAI embeddings API response.
    """
    mock_response = Mock()
    mock_response.data = [Mock(embedding=emb) for emb in embeddings]
    return mock_response


def create_mock_chat_response(content: str | None) -> Mock:
    """Create a mock OpenAI chat completion response.

    Args:
        content: The content for the chat completion response.

    Returns:
        Mock object representing OpenAI chat completion response.
    """
    mock_response = Mock()
    mock_response.choices = [Mock(message=Mock(content=content))]
    return mock_response


def fixture_matches(texts: Sequence[str]) -> list[RetrievalMatch]:
    """Build matches with descending scores for the given texts."""
    return [
        RetrievalMatch(score=0.9 - i * 0.1, text=text, id=f"fixture:{i:06d}")
        for i, text in enumerate(texts)
    ]


# ---------------------------------------------------------------------------
# OpenAI API mocks
# ---------------------------------------------------------------------------


@pytest.fixture
def openai_embeddings_api_mock():
    """Patch the OpenAI embeddings.create method."""
    with patch("openai.resources.embeddings.Embeddings.create") as mock_create:
        yield mock_create


@pytest.fixture
def openai_chat_api_mock():
    """Patch the OpenAI chat.completions.create method."""
    with patch(
        "openai.resources.chat.completions.Completions.create"
    ) as mock_create:
        yield mock_create


@pytest.fixture
def embedding_service_factory():
    """Factory for creating EmbeddingService instances with a test key."""

    def _create_service(api_key=None, model=None):  # noqa: ANN202
        return EmbeddingService(
            api_key=api_key or TestConstants.TEST_API_KEY, model=model
        )

    return _create_service


@pytest.fixture
def embedding_service(embedding_service_factory):
    """Default EmbeddingService with test API key for most tests."""
    return embedding_service_factory()


@pytest.fixture
def openai_chat_model():
    """OpenAIChatModel with test credentials."""
    return OpenAIChatModel(
        api_key=TestConstants.TEST_API_KEY, model=TestConstants.TEST_CHAT_MODEL
    )


# ---------------------------------------------------------------------------
# Collaborator stand-ins
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_embedding_service():
    """MockEmbeddingService for consistent test embeddings."""
    return MockEmbeddingService()


@pytest.fixture
def empty_history():
    return History()


@pytest.fixture
def seeded_history():
    """History holding one completed Big-O exchange."""
    return History([
        ConversationTurn(role=Role.USER, text=TestConstants.BIG_O_QUESTION),
        ConversationTurn(
            role=Role.MODEL,
            text="Big-O notation describes an upper bound on growth rate.",
        ),
    ])


@pytest.fixture
def big_o_index():
    """Index returning the three Big-O fixture passages."""
    return FixtureVectorIndex(fixture_matches(TestConstants.BIG_O_FIXTURE_TEXTS))


@pytest.fixture
def empty_index():
    """Index that never matches anything."""
    return FixtureVectorIndex([])


# ---------------------------------------------------------------------------
# Vector store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def temp_faiss_store(tmp_path) -> FaissVectorStore:
    """Create a FAISS store persisted under a temporary directory."""
    return FaissVectorStore(
        db_path=tmp_path / "test_store.db",
        index_path=tmp_path / "faiss" / "index.faiss",
    )


@pytest.fixture
def memory_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture
def sample_texts():
    return [
        "A stack is a Last In, First Out data structure.",
        "A queue is a First In, First Out data structure.",
        "Binary search runs in logarithmic time on sorted arrays.",
        "Merge sort runs in O(n log n) time and is stable.",
        "Hash tables offer expected constant-time lookup.",
    ]


@pytest.fixture
def sample_records(sample_texts, mock_embedding_service):
    """Embedded records for the sample texts."""
    return [
        VectorRecord(
            id=f"sample.txt:{i:06d}",
            embedding=mock_embedding_service.embed(text),
            metadata={"text": text, "source": "sample.txt", "chunk_index": i},
        )
        for i, text in enumerate(sample_texts)
    ]


@pytest.fixture(scope="session")
def sample_document_path():
    """Path to the hand-written DSA sample document."""
    return TEST_DATA_DIR / "sample_dsa_document.txt"


# ---------------------------------------------------------------------------
# Pipeline factories
# ---------------------------------------------------------------------------


@pytest.fixture
def conversational_rag_factory(mock_embedding_service):
    """Build a ConversationalRAG from a chat model and an index."""

    def _create(chat_model, index, **assembler_kwargs) -> ConversationalRAG:
        return ConversationalRAG(
            rewriter=QueryRewriter(chat_model),
            assembler=ContextAssembler(
                embedder=mock_embedding_service, index=index, **assembler_kwargs
            ),
            synthesizer=AnswerSynthesizer(chat_model),
        )

    return _create


@pytest.fixture
def chat_model_factory():
    """Factory for scripted FakeChatModel instances."""
    return FakeChatModel


@pytest.fixture
def failing_chat_model():
    """Chat model that always raises GenerationError."""
    return FailingChatModel()


@pytest.fixture
def fixture_index_factory():
    """Factory building a FixtureVectorIndex from match texts."""

    def _create(texts: Sequence[str] = ()) -> FixtureVectorIndex:
        return FixtureVectorIndex(fixture_matches(texts))

    return _create
