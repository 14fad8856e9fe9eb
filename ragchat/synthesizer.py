"""Grounded answer synthesis."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .config import config
from .errors import GenerationError
from .models import ContextBlock, ConversationTurn, Role
from .prompts import ANSWER_PROMPT_TEMPLATE, REFUSAL_MESSAGE

if TYPE_CHECKING:
    from .conversation import History
    from .interfaces import ChatModel

logger = config.get_logger(__name__)


class AnswerSynthesizer:
    """Answers strictly from retrieved context and records the exchange."""

    def __init__(
        self,
        chat_model: ChatModel,
        persona: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> None:
        self.chat_model = chat_model
        self.persona = persona or config.ASSISTANT_PERSONA
        self.max_tokens = max_tokens or config.CHAT_MAX_TOKENS
        self.temperature = (
            temperature if temperature is not None else config.CHAT_TEMPERATURE
        )

    def build_prompt(self, question: str, context: ContextBlock | str) -> str:
        """Build the grounding prompt.

        The refusal sentence is always included, also for an empty context,
        so the model has a fixed reply when the context lacks the answer.

        Returns:
            The prompt text sent as the newest user message.
        """
        return ANSWER_PROMPT_TEMPLATE.format(
            persona=self.persona,
            refusal=REFUSAL_MESSAGE,
            context=str(context),
            question=question,
        )

    def answer(
        self,
        standalone_question: str,
        context_block: ContextBlock | str,
        history: History,
    ) -> str:
        """Generate the answer and append the exchange to ``history``.

        Returns:
            The model's answer text.

        Raises:
            GenerationError: If the model call fails; ``history`` is unchanged.
        """
        prompt = self.build_prompt(standalone_question, context_block)

        try:
            answer_text = self.chat_model.complete(
                history.snapshot(),
                prompt,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except GenerationError:
            raise
        except Exception as exc:
            logger.exception("Answer generation failed")
            msg = f"Answer generation failed: {exc}"
            raise GenerationError(msg) from exc

        answer_text = (answer_text or "").strip()
        if not answer_text:
            msg = "Language model returned an empty answer"
            raise GenerationError(msg)

        history.append(ConversationTurn(role=Role.USER, text=standalone_question))
        history.append(ConversationTurn(role=Role.MODEL, text=answer_text))
        return answer_text
