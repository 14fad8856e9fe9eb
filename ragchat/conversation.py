"""Conversation history and per-session state."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .config import config

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .models import ConversationTurn

logger = config.get_logger(__name__)


class History:
    """Ordered record of conversation turns, oldest first.

    Single writer: one request per session mutates it at a time.
    """

    def __init__(self, turns: list[ConversationTurn] | None = None) -> None:
        self._turns: list[ConversationTurn] = list(turns or [])

    def append(self, turn: ConversationTurn) -> None:
        self._turns.append(turn)

    def pop_last(self) -> ConversationTurn:
        """Remove and return the newest turn.

        Raises:
            IndexError: If the history is empty.
        """
        if not self._turns:
            msg = "pop from empty history"
            raise IndexError(msg)
        return self._turns.pop()

    def snapshot(self) -> tuple[ConversationTurn, ...]:
        """Immutable copy of the turns, oldest first."""
        return tuple(self._turns)

    def clear(self) -> None:
        self._turns.clear()

    @contextmanager
    def temporary_turn(self, turn: ConversationTurn) -> Iterator[History]:
        """Expose ``turn`` for the duration of the block only.

        The turn is appended on entry and removed on every exit path,
        including exceptions raised inside the block.
        """
        self.append(turn)
        try:
            yield self
        finally:
            if self._turns and self._turns[-1] is turn:
                self._turns.pop()
            else:
                logger.warning("History changed while a temporary turn was active")
                # Match by identity; an equal turn may already be recorded
                self._turns = [kept for kept in self._turns if kept is not turn]

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[ConversationTurn]:
        return iter(self.snapshot())


@dataclass
class ChatSession:
    """One conversation: its history and the lock serialising its requests."""

    session_id: str
    history: History = field(default_factory=History)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class SessionRegistry:
    """Caller-keyed sessions; independent sessions share no mutable state."""

    def __init__(self) -> None:
        self._sessions: dict[str, ChatSession] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> ChatSession:
        """Return the session for ``session_id``, creating it on first use."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = ChatSession(session_id=session_id)
                self._sessions[session_id] = session
                logger.info("Created chat session %s", session_id)
            return session

    def drop(self, session_id: str) -> None:
        """Forget a session and its history."""
        with self._lock:
            if self._sessions.pop(session_id, None) is not None:
                logger.info("Dropped chat session %s", session_id)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
