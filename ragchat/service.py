"""Chat request boundary: validation and error translation."""

from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING, Any

from .config import config
from .conversation import SessionRegistry

if TYPE_CHECKING:
    from .pipeline import ConversationalRAG

logger = config.get_logger(__name__)

QUESTION_REQUIRED = "Question is required."
GENERIC_FAILURE = "An error occurred while processing your request."

Response = tuple[int, dict[str, Any]]


class ChatService:
    """Maps ``{"question": ...}`` payloads onto the conversational pipeline.

    Transport-agnostic: an HTTP layer only forwards the payload and a session
    id and serialises the returned status and body.
    """

    def __init__(
        self,
        pipeline: ConversationalRAG,
        sessions: SessionRegistry | None = None,
    ) -> None:
        self.pipeline = pipeline
        self.sessions = sessions if sessions is not None else SessionRegistry()

    @staticmethod
    def extract_question(payload: object) -> str | None:
        """Return the question if the payload carries a non-blank string."""
        if not isinstance(payload, dict):
            return None
        question = payload.get("question")
        if not isinstance(question, str) or not question.strip():
            return None
        return question.strip()

    def handle(self, payload: object, session_id: str = "default") -> Response:
        """Handle one chat request.

        Returns:
            ``(status, body)``: 400 for a missing question, 500 for pipeline
            failures (details only in logs), 200 with the answer otherwise.
        """
        question = self.extract_question(payload)
        if question is None:
            return HTTPStatus.BAD_REQUEST, {"error": QUESTION_REQUIRED}

        try:
            result = self.pipeline.ask(self.sessions.get(session_id), question)
        except Exception:
            logger.exception("Error in chat request for session %s", session_id)
            return HTTPStatus.INTERNAL_SERVER_ERROR, {"error": GENERIC_FAILURE}

        return HTTPStatus.OK, {"answer": result.answer}
