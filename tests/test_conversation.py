"""Tests for History, ChatSession and SessionRegistry."""

import dataclasses
import threading

import pytest

from ragchat import ChatSession, ConversationTurn, History, Role, SessionRegistry


def _turn(text, role=Role.USER):
    return ConversationTurn(role=role, text=text)


def test_append_and_snapshot_preserve_order(empty_history):
    empty_history.append(_turn("first"))
    empty_history.append(_turn("second", Role.MODEL))

    snapshot = empty_history.snapshot()

    assert [turn.text for turn in snapshot] == ["first", "second"]
    assert isinstance(snapshot, tuple)
    assert len(empty_history) == 2


def test_snapshot_is_detached(empty_history):
    empty_history.append(_turn("first"))
    snapshot = empty_history.snapshot()

    empty_history.append(_turn("second"))

    assert len(snapshot) == 1


def test_pop_last_returns_newest(seeded_history):
    newest = seeded_history.pop_last()

    assert newest.role is Role.MODEL
    assert len(seeded_history) == 1


def test_pop_last_on_empty_raises(empty_history):
    with pytest.raises(IndexError):
        empty_history.pop_last()


def test_turns_are_immutable():
    turn = _turn("What is a stack?")

    with pytest.raises(dataclasses.FrozenInstanceError):
        turn.text = "changed"  # type: ignore[misc]


def test_temporary_turn_visible_inside_block(seeded_history):
    temporary = _turn("Can you give an example?")

    with seeded_history.temporary_turn(temporary):
        assert seeded_history.snapshot()[-1] is temporary
        assert len(seeded_history) == 3

    assert len(seeded_history) == 2
    assert temporary not in seeded_history.snapshot()


def test_temporary_turn_removed_on_exception(seeded_history):
    before = seeded_history.snapshot()

    with (
        pytest.raises(RuntimeError),
        seeded_history.temporary_turn(_turn("boom")),
    ):
        raise RuntimeError

    assert seeded_history.snapshot() == before


def test_temporary_turn_keeps_equal_recorded_turn(empty_history):
    recorded = _turn("What is a stack?")
    empty_history.append(recorded)
    temporary = _turn("What is a stack?")

    with empty_history.temporary_turn(temporary):
        empty_history.append(_turn("late writer", Role.MODEL))

    snapshot = empty_history.snapshot()
    assert snapshot[0] is recorded
    assert [turn.text for turn in snapshot] == ["What is a stack?", "late writer"]


def test_clear(seeded_history):
    seeded_history.clear()

    assert len(seeded_history) == 0


def test_registry_returns_same_session_for_id():
    registry = SessionRegistry()

    first = registry.get("alice")
    again = registry.get("alice")

    assert first is again
    assert "alice" in registry
    assert len(registry) == 1


def test_registry_sessions_are_isolated():
    registry = SessionRegistry()
    alice = registry.get("alice")
    bob = registry.get("bob")

    alice.history.append(_turn("What is a heap?"))

    assert len(alice.history) == 1
    assert len(bob.history) == 0
    assert alice.history is not bob.history
    assert alice.lock is not bob.lock


def test_registry_drop_forgets_history():
    registry = SessionRegistry()
    registry.get("alice").history.append(_turn("hello"))

    registry.drop("alice")
    registry.drop("unknown")

    assert "alice" not in registry
    assert len(registry.get("alice").history) == 0


def test_registry_concurrent_get_creates_one_session():
    registry = SessionRegistry()
    results: list[ChatSession] = []
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        results.append(registry.get("shared"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len({id(session) for session in results}) == 1
    assert len(registry) == 1
