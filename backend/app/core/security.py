# app/core/security.py

import hashlib


def hash_string(value: str) -> str:
    """SHA-256 hex digest of a utf-8 string"""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def sender_fingerprint(session_id: str, room_id: str) -> str:
    """
    One-way sender marker for a room. Lets a client tell its own messages
    apart from others'; it is not an access check.
    """
    return hash_string(session_id + room_id)
