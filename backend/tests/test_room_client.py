from __future__ import annotations

import pytest

from app.clients.room_client import RoomClient, RoomClientError

SERVER = "http://testserver"


@pytest.fixture
def alice(client):
    c = RoomClient(SERVER, session=client, poll_interval=0)
    c.start_session()
    return c


def test_send_and_fetch(alice):
    room = alice.create_room()

    sent = alice.send(room, "hello", expires_in_minutes=5)
    fetched = alice.fetch(room)

    assert [m["content"] for m in fetched] == ["hello"]
    assert fetched[0]["id"] == sent["id"]
    assert alice.is_mine(fetched[0], room)


def test_shared_token_reads_peer_messages(client, alice):
    room = alice.create_room()
    bob = RoomClient(SERVER, session_id=alice.session_id, session=client)

    bob.send(room, "hi alice")

    assert [m["content"] for m in alice.fetch(room)] == ["hi alice"]


def test_poll_delivers_each_message_once(alice):
    room = alice.create_room()
    alice.send(room, "one")
    seen = []

    assert alice.poll(room, seen.append, rounds=2) == 1
    alice.send(room, "two")
    assert alice.poll(room, seen.append, rounds=1) == 1

    assert [m["content"] for m in seen] == ["one", "two"]


def test_errors_are_raised(client, alice):
    with pytest.raises(RoomClientError) as exc:
        alice.send("room", "")
    assert exc.value.status_code == 400

    with pytest.raises(RoomClientError):
        RoomClient(SERVER, session=client).fetch("room")


def test_room_id_with_slash_round_trips(alice):
    alice.send("team/alpha", "hello team")
    alice.send("team", "parent room")

    assert [m["content"] for m in alice.fetch("team/alpha")] == ["hello team"]
    assert [m["content"] for m in alice.fetch("team")] == ["parent room"]
