"""OpenAI embeddings service."""

import numpy as np
from openai import OpenAI, OpenAIError

from .config import config
from .errors import EmbeddingServiceError

logger = config.get_logger(__name__)


class EmbeddingService:
    """Handles OpenAI embeddings generation.

    Every call is a live request; failures are raised as
    ``EmbeddingServiceError`` and never retried here.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the EmbeddingService with OpenAI API key and model.

        Args:
            api_key: OpenAI API key. If None,
                reads from OPENAI_API_KEY environment variable.
            model: Embedding model name. If None, uses config.EMBEDDING_MODEL.
            timeout: Request timeout in seconds. If None, uses
                config.REQUEST_TIMEOUT.
        """
        api_key = api_key or config.get_openai_api_key()
        default_headers = config.get_api_headers()
        self.client = OpenAI(
            api_key=api_key,
            base_url=config.OPENAI_BASE_URL,
            default_headers=default_headers or None,
            timeout=timeout if timeout is not None else config.REQUEST_TIMEOUT,
            max_retries=0,
        )
        self.model = model or config.EMBEDDING_MODEL

    def _create(self, payload: str | list[str]) -> list[np.ndarray]:
        try:
            response = self.client.embeddings.create(
                model=self.model,
                input=payload,
            )
            vectors = [
                np.asarray(item.embedding, dtype=np.float32) for item in response.data
            ]
        except OpenAIError as exc:
            logger.exception("Error generating embeddings with %s", self.model)
            msg = f"Embedding request failed: {exc}"
            raise EmbeddingServiceError(msg) from exc
        except (AttributeError, TypeError, ValueError) as exc:
            logger.exception("Malformed embeddings response")
            msg = "Embedding service returned a malformed response"
            raise EmbeddingServiceError(msg) from exc

        expected = 1 if isinstance(payload, str) else len(payload)
        if len(vectors) != expected:
            msg = f"Expected {expected} embeddings, received {len(vectors)}"
            raise EmbeddingServiceError(msg)
        return vectors

    def embed(self, text: str) -> np.ndarray:
        """Get embedding for a single text.

        Args:
            text: The input text to generate an embedding for.

        Returns:
            np.ndarray: The embedding vector for the input text.
        """
        return self._create(text)[0]

    def embed_batch(
        self,
        texts: list[str],
        batch_size: int | None = None,
    ) -> list[np.ndarray]:
        """Get embeddings for multiple texts in batches.

        Args:
            texts: List of input texts to generate embeddings for.
            batch_size: Number of texts to process in each request.

        Returns:
            list[np.ndarray]: Embedding vectors in the order of ``texts``.

        Raises:
            EmbeddingServiceError: If a batch fails or dimensions disagree.
        """
        batch_size = batch_size or config.EMBEDDING_BATCH_SIZE
        embeddings: list[np.ndarray] = []

        for i in range(0, len(texts), batch_size):
            batch_embeddings = self._create(texts[i : i + batch_size])
            embeddings.extend(batch_embeddings)
            logger.info("Generated embeddings for batch %d", i // batch_size + 1)

        dimensions = {vector.shape[0] for vector in embeddings}
        if len(dimensions) > 1:
            msg = f"Embedding service returned mixed dimensions: {sorted(dimensions)}"
            raise EmbeddingServiceError(msg)

        return embeddings
