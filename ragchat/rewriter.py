"""History-aware rewriting of follow-up questions into standalone queries."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .config import config
from .models import ConversationTurn, Role
from .prompts import REWRITE_INSTRUCTION

if TYPE_CHECKING:
    from .conversation import History
    from .interfaces import ChatModel

logger = config.get_logger(__name__)

_QUOTE_PAIRS = {"\"": "\"", "'": "'", "“": "”"}


def _unwrap_quotes(text: str) -> str:
    """Drop one pair of quotes wrapping the whole reply, if present."""
    if len(text) < 2 or _QUOTE_PAIRS.get(text[0]) != text[-1]:
        return text
    inner = text[1:-1]
    if text[0] in inner or text[-1] in inner:
        return text
    return inner.strip()


class QueryRewriter:
    """Turns a possibly context-dependent question into a standalone one.

    Rewriting is fail-soft: if the model call fails or returns nothing usable,
    the original question is used for retrieval unchanged.
    """

    def __init__(
        self,
        chat_model: ChatModel,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> None:
        self.chat_model = chat_model
        self.max_tokens = max_tokens or config.QUERY_REWRITE_MAX_TOKENS
        self.temperature = (
            temperature if temperature is not None else config.QUERY_REWRITE_TEMPERATURE
        )

    def rewrite(self, question: str, history: History) -> str:
        """Rewrite ``question`` using the conversation so far.

        The question is visible to the model as the newest user turn while the
        call runs; it is never left behind in ``history``.

        Returns:
            The standalone question, or ``question`` itself on any failure.
        """
        with history.temporary_turn(ConversationTurn(role=Role.USER, text=question)):
            try:
                reply = self.chat_model.complete(
                    history.snapshot(),
                    REWRITE_INSTRUCTION.format(question=question),
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                )
            except Exception:  # noqa: BLE001
                logger.warning(
                    "Query rewrite failed; using the original question", exc_info=True
                )
                return question

        standalone = _unwrap_quotes((reply or "").strip())
        if not standalone:
            logger.warning("Query rewrite returned nothing; using original question")
            return question

        logger.info("Generated standalone query: %s", standalone)
        return standalone
