import dataclasses

import pytest

from chat_relay.domain.exceptions import AlreadyBoundMismatch, ProtocolViolation
from chat_relay.domain.message_store import MessageStore
from chat_relay.domain.models import CallState
from chat_relay.domain.session import ConversationSession


def test_store_starts_with_greeting():
    store = MessageStore("hello there")
    assert len(store) == 1
    greeting = store.last()
    assert greeting.id == 1
    assert greeting.sender == "assistant"
    assert greeting.text == "hello there"


def test_store_append_assigns_positional_ids():
    store = MessageStore("hi")
    m2 = store.append("user", "question")
    m3 = store.append("assistant", "answer")
    assert [m.id for m in store] == [1, 2, 3]
    assert (m2.sender, m3.sender) == ("user", "assistant")
    assert m2.created_at <= m3.created_at


def test_store_messages_are_immutable_snapshots():
    store = MessageStore("hi")
    msg = store.append("user", "question")
    with pytest.raises(dataclasses.FrozenInstanceError):
        msg.text = "changed"
    snapshot = store.messages
    store.append("assistant", "answer")
    assert len(snapshot) == 2
    assert len(store.messages) == 3


def test_store_reset_reseeds_greeting():
    store = MessageStore("hi")
    store.append("user", "question")
    store.reset()
    assert [(m.id, m.sender, m.text) for m in store] == [(1, "assistant", "hi")]


def test_session_binds_once():
    session = ConversationSession()
    assert session.current_id() is None
    assert not session.is_bound
    session.bind("c1")
    assert session.current_id() == "c1"
    session.bind("c1")
    assert session.current_id() == "c1"


def test_session_rejects_different_id():
    session = ConversationSession()
    session.bind("c1")
    with pytest.raises(AlreadyBoundMismatch) as exc:
        session.bind("c2")
    assert isinstance(exc.value, ProtocolViolation)
    assert exc.value.extra["received_id"] == "c2"
    assert session.current_id() == "c1"


def test_session_rejects_empty_id():
    session = ConversationSession()
    with pytest.raises(ProtocolViolation):
        session.bind("")
    assert not session.is_bound


def test_session_reset_returns_to_unbound():
    session = ConversationSession()
    session.bind("c1")
    session.reset()
    assert session.current_id() is None
    session.bind("c2")
    assert session.current_id() == "c2"


def test_call_state_typing_derived_from_awaiting():
    assert CallState.awaiting().is_typing
    assert not CallState.idle().is_typing
    failed = CallState.failed(ProtocolViolation(code="X", message="bad"))
    assert not failed.is_typing
    assert (failed.status, failed.reason, failed.error_code) == ("failed", "bad", "X")
