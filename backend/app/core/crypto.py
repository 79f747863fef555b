# app/core/crypto.py

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from app.core.errors import DecodeError

ENVELOPE_VERSION = 1
SALT_SIZE = 16
NONCE_SIZE = 12
TAG_SIZE = 16
LEGACY_KEY_SIZE = 32


class MessageCodec:
    """Reversible transform between plaintext and stored content, keyed by a session token"""

    name = "base"

    def protect(self, plaintext: str, key_material: str) -> str:
        raise NotImplementedError

    def reveal(self, stored_content: str, key_material: str) -> str:
        raise NotImplementedError


# ---------- KEY DERIVATION ----------

def derive_message_key(key_material: str, salt: bytes) -> bytes:
    """
    session token + per-message salt -> 32-byte AES-256 key (HKDF-SHA256)
    """
    return HKDF(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        info=b"safeguard-relay-v1"
    ).derive(key_material.encode("utf-8"))


# ---------- AUTHENTICATED CODEC ----------

class AeadCodec(MessageCodec):
    """
    AES-GCM envelope: version (1) + salt (16) + nonce (12) + ciphertext + tag (16),
    urlsafe-base64 encoded. A wrong key fails authentication.
    """

    name = "aead"

    def protect(self, plaintext: str, key_material: str) -> str:
        salt = os.urandom(SALT_SIZE)
        nonce = os.urandom(NONCE_SIZE)
        aesgcm = AESGCM(derive_message_key(key_material, salt))
        ciphertext = aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
        envelope = bytes([ENVELOPE_VERSION]) + salt + nonce + ciphertext
        return base64.urlsafe_b64encode(envelope).decode("ascii")

    def reveal(self, stored_content: str, key_material: str) -> str:
        try:
            envelope = base64.urlsafe_b64decode(stored_content.encode("ascii"))
        except (binascii.Error, ValueError) as e:
            raise DecodeError("content is not a valid envelope") from e

        if len(envelope) < 1 + SALT_SIZE + NONCE_SIZE + TAG_SIZE:
            raise DecodeError("envelope too short")
        if envelope[0] != ENVELOPE_VERSION:
            raise DecodeError(f"unknown envelope version {envelope[0]}")

        salt = envelope[1:1 + SALT_SIZE]
        nonce = envelope[1 + SALT_SIZE:1 + SALT_SIZE + NONCE_SIZE]
        ciphertext = envelope[1 + SALT_SIZE + NONCE_SIZE:]

        aesgcm = AESGCM(derive_message_key(key_material, salt))
        try:
            plaintext = aesgcm.decrypt(nonce, ciphertext, None)
        except InvalidTag as e:
            raise DecodeError("authentication failed") from e

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError("plaintext is not utf-8") from e


# ---------- LEGACY CODEC ----------

class XorCodec(MessageCodec):
    """
    XOR with the token (padded with '0' / cut to 32 bytes), base64 encoded.
    Not authenticated: a different key usually reveals garbage instead of failing.
    """

    name = "legacy"

    @staticmethod
    def _key_bytes(key_material: str) -> bytes:
        return key_material.ljust(LEGACY_KEY_SIZE, "0")[:LEGACY_KEY_SIZE].encode("utf-8")

    @staticmethod
    def _xor(data: bytes, key: bytes) -> bytes:
        return bytes(b ^ key[i % len(key)] for i, b in enumerate(data))

    def protect(self, plaintext: str, key_material: str) -> str:
        scrambled = self._xor(plaintext.encode("utf-8"), self._key_bytes(key_material))
        return base64.b64encode(scrambled).decode("ascii")

    def reveal(self, stored_content: str, key_material: str) -> str:
        try:
            scrambled = base64.b64decode(stored_content.encode("ascii"), validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError("content is not valid base64") from e

        try:
            return self._xor(scrambled, self._key_bytes(key_material)).decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError("content does not decode to text") from e


CODECS = {
    AeadCodec.name: AeadCodec,
    XorCodec.name: XorCodec,
}


def get_codec(name: str) -> MessageCodec:
    try:
        return CODECS[name]()
    except KeyError:
        raise ValueError(f"Unknown message codec: {name!r} (expected one of {sorted(CODECS)})")
