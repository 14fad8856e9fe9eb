"""OpenAI chat completion gateway."""

from __future__ import annotations

from typing import TYPE_CHECKING

from openai import OpenAI, OpenAIError

from .config import config
from .errors import GenerationError
from .models import Role

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import ConversationTurn

logger = config.get_logger(__name__)

_ROLE_NAMES = {Role.USER: "user", Role.MODEL: "assistant"}


class OpenAIChatModel:
    """Chat model that replays the conversation history before each message."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the chat client.

        Args:
            api_key: OpenAI API key. If None, reads from the environment.
            model: Chat model name. If None, uses config.CHAT_MODEL.
            timeout: Request timeout in seconds. If None, uses
                config.REQUEST_TIMEOUT.
        """
        default_headers = config.get_api_headers()
        self.client = OpenAI(
            api_key=api_key or config.get_openai_api_key(),
            base_url=config.OPENAI_BASE_URL,
            default_headers=default_headers or None,
            timeout=timeout if timeout is not None else config.REQUEST_TIMEOUT,
            max_retries=0,
        )
        self.model = model or config.CHAT_MODEL

    @staticmethod
    def build_messages(
        history: Sequence[ConversationTurn], message: str
    ) -> list[dict[str, str]]:
        """Translate history plus the new message into chat API messages.

        Returns:
            Messages oldest first, ending with ``message`` as a user turn.
        """
        messages = [
            {"role": _ROLE_NAMES[turn.role], "content": turn.text} for turn in history
        ]
        messages.append({"role": "user", "content": message})
        return messages

    def complete(
        self,
        history: Sequence[ConversationTurn],
        message: str,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        """Send ``message`` after replaying ``history``.

        Returns:
            The stripped reply text.

        Raises:
            GenerationError: If the request fails or the reply is empty.
        """
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=self.build_messages(history, message),
                max_tokens=max_tokens or config.CHAT_MAX_TOKENS,
                temperature=(
                    temperature if temperature is not None else config.CHAT_TEMPERATURE
                ),
            )
        except OpenAIError as exc:
            logger.exception("Chat completion failed with %s", self.model)
            msg = f"Chat completion failed: {exc}"
            raise GenerationError(msg) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            msg = "Chat completion returned an empty reply"
            raise GenerationError(msg)
        return content.strip()
