from __future__ import annotations

from datetime import timedelta

import pytest

from app.core.crypto import XorCodec
from app.core.errors import DecodeError, IdentityRequiredError, ValidationError
from app.core.message import InMemoryMessageStore
from app.core.security import sender_fingerprint
from app.services.relay_service import RoomRelay


def test_room_scenario(relay, memory_store, clock):
    """Post, read with own/foreign token, expire, sweep."""
    relay.post("abc123", "hello", "tokenA", ttl_minutes=1)

    mine = relay.read("abc123", "tokenA")
    assert [m.content for m in mine] == ["hello"]
    assert relay.read("abc123", "tokenB") == []

    clock.advance(seconds=61)
    assert relay.read("abc123", "tokenA") == []

    memory_store.sweep_expired()
    assert memory_store.count("abc123") == 0


def test_post_returns_metadata_and_fingerprint(relay):
    message = relay.post("room", "hi", "tokenA")

    assert message.room_id == "room"
    assert message.sender_key == sender_fingerprint("tokenA", "room")
    assert message.expires_at - message.created_at == timedelta(minutes=60)
    assert "hi" not in message.stored_content


def test_fingerprint_depends_on_room():
    assert sender_fingerprint("tokenA", "room-1") != sender_fingerprint("tokenA", "room-2")
    assert sender_fingerprint("tokenA", "room-1") == sender_fingerprint("tokenA", "room-1")


def test_writes_are_not_idempotent(relay):
    first = relay.post("room", "same", "tokenA")
    second = relay.post("room", "same", "tokenA")

    assert first.id != second.id
    assert [m.id for m in relay.read("room", "tokenA")] == [first.id, second.id]


def test_read_keeps_store_order_and_skips_foreign(relay):
    relay.post("room", "a1", "tokenA")
    relay.post("room", "b1", "tokenB")
    relay.post("room", "a2", "tokenA")

    assert [m.content for m in relay.read("room", "tokenA")] == ["a1", "a2"]
    assert [m.content for m in relay.read("room", "tokenB")] == ["b1"]


def test_corrupted_message_does_not_break_the_room(relay, memory_store):
    relay.post("room", "before", "tokenA")
    memory_store.append("room", "@@corrupted@@", "someone")
    relay.post("room", "after", "tokenA")

    outcomes = relay.reveal_all("room", "tokenA")

    assert [o.ok for o in outcomes] == [True, False, True]
    assert isinstance(outcomes[1].error, DecodeError)
    assert outcomes[1].decrypted is None
    assert [m.content for m in relay.read("room", "tokenA")] == ["before", "after"]


def test_read_is_idempotent(relay):
    relay.post("room", "x", "tokenA")
    assert relay.read("room", "tokenA") == relay.read("room", "tokenA")


@pytest.mark.parametrize("session_id", [None, "", "   "])
def test_identity_required(relay, memory_store, session_id):
    with pytest.raises(IdentityRequiredError):
        relay.post("room", "hello", session_id)
    with pytest.raises(IdentityRequiredError):
        relay.read("room", session_id)
    assert memory_store.count() == 0


@pytest.mark.parametrize(
    "room_id, content, ttl",
    [
        ("", "hello", None),
        ("  ", "hello", None),
        (None, "hello", None),
        ("room", "", None),
        ("room", None, None),
        ("room", "hello", 0),
        ("room", "hello", -5),
        ("room", "hello", 1e30),
    ],
)
def test_invalid_posts_store_nothing(relay, memory_store, room_id, content, ttl):
    with pytest.raises(ValidationError):
        relay.post(room_id, content, "tokenA", ttl_minutes=ttl)
    assert memory_store.count() == 0


def test_content_length_limit(memory_store):
    relay = RoomRelay(memory_store, XorCodec(), max_content_length=5)

    relay.post("room", "12345", "tokenA")
    with pytest.raises(ValidationError):
        relay.post("room", "123456", "tokenA")
    assert memory_store.count() == 1


def test_legacy_codec_round_trip(clock):
    relay = RoomRelay(InMemoryMessageStore(clock=clock), XorCodec())
    relay.post("room", "hello there", "tokenA")

    assert [m.content for m in relay.read("room", "tokenA")] == ["hello there"]
