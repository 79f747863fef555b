# app/core/tokens.py

import secrets
import string

ROOM_ID_ALPHABET = string.ascii_lowercase + string.digits
TOKEN_ALPHABET = string.ascii_letters + string.digits

ROOM_ID_LENGTH = 16
TOKEN_LENGTH = 32
SESSION_ID_BYTES = 32


def generate_room_id(length: int = ROOM_ID_LENGTH) -> str:
    """Shareable room code; knowing it is the only access control, so use `secrets`"""
    if length <= 0:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(ROOM_ID_ALPHABET) for _ in range(length))


def generate_secure_token(length: int = TOKEN_LENGTH) -> str:
    if length <= 0:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def generate_session_id() -> str:
    """64 hex chars; doubles as the key material for the caller's messages"""
    return secrets.token_hex(SESSION_ID_BYTES)
