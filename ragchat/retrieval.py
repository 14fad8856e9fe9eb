"""Retrieval and context assembly."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .config import config
from .models import ContextBlock, RetrievalMatch
from .prompts import CONTEXT_SEPARATOR

if TYPE_CHECKING:
    from .interfaces import Embedder, VectorIndex

logger = config.get_logger(__name__)


class ContextAssembler:
    """Embeds a standalone question, queries the index and joins the hits."""

    def __init__(
        self,
        embedder: Embedder,
        index: VectorIndex,
        top_k: int | None = None,
        separator: str = CONTEXT_SEPARATOR,
        max_chars: int | None = None,
    ) -> None:
        """Configure retrieval.

        Args:
            embedder: Embedding gateway used for the query vector.
            index: Vector index to search.
            top_k: Matches requested per query. If None, uses
                config.RETRIEVAL_TOP_K.
            separator: Delimiter placed between match texts.
            max_chars: Upper bound on the context length; 0 disables it. If
                None, uses config.CONTEXT_MAX_CHARS.
        """
        self.embedder = embedder
        self.index = index
        self.top_k = top_k or config.RETRIEVAL_TOP_K
        self.separator = separator
        self.max_chars = (
            max_chars if max_chars is not None else config.CONTEXT_MAX_CHARS
        )

    def retrieve(self, standalone_question: str) -> list[RetrievalMatch]:
        """Return the top matches for the question, best first."""
        query_embedding = self.embedder.embed(standalone_question)
        matches = self.index.query(query_embedding, self.top_k)
        logger.info("Retrieved %d matches", len(matches))
        for i, match in enumerate(matches):
            logger.debug("  Match %d (score: %.4f): %s", i + 1, match.score, match.id)
        return matches

    def build_context(self, standalone_question: str) -> ContextBlock:
        """Assemble the context block for a standalone question.

        Returns:
            Match texts in index order, joined by the separator; an empty
            block when nothing matched.
        """
        selected: list[RetrievalMatch] = []
        total = 0

        for match in self.retrieve(standalone_question):
            text = match.text.strip()
            if not text:
                continue
            added = len(text) + (len(self.separator) if selected else 0)
            if self.max_chars and selected and total + added > self.max_chars:
                logger.info(
                    "Context bound of %d characters reached after %d matches",
                    self.max_chars,
                    len(selected),
                )
                break
            selected.append(match)
            total += added

        text = self.separator.join(match.text.strip() for match in selected)
        return ContextBlock(text=text, matches=tuple(selected))
