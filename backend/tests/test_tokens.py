from __future__ import annotations

import string

import pytest

from app.core.tokens import (
    ROOM_ID_ALPHABET,
    generate_room_id,
    generate_secure_token,
    generate_session_id,
)


def test_room_id_shape():
    room_id = generate_room_id()
    assert len(room_id) == 16
    assert set(room_id) <= set(ROOM_ID_ALPHABET)


def test_room_ids_do_not_repeat():
    assert len({generate_room_id() for _ in range(500)}) == 500


def test_secure_token_length_and_alphabet():
    token = generate_secure_token(48)
    assert len(token) == 48
    assert set(token) <= set(string.ascii_letters + string.digits)


def test_session_id_is_hex():
    session_id = generate_session_id()
    assert len(session_id) == 64
    int(session_id, 16)


@pytest.mark.parametrize("fn", [generate_room_id, generate_secure_token])
def test_non_positive_length_rejected(fn):
    with pytest.raises(ValueError):
        fn(0)
