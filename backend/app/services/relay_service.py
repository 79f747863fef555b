# app/services/relay_service.py

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from app.core.config import MAX_CONTENT_LENGTH
from app.core.crypto import MessageCodec
from app.core.errors import DecodeError, IdentityRequiredError, ValidationError
from app.core.message import MessageStore, RoomMessage
from app.core.security import sender_fingerprint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecryptedMessage:
    id: str
    content: str
    sender_key: str
    created_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class RevealOutcome:
    """One stored message and what happened when the reader tried to open it"""

    message: RoomMessage
    decrypted: DecryptedMessage | None = None
    error: DecodeError | None = None

    @property
    def ok(self) -> bool:
        return self.decrypted is not None


class RoomRelay:
    """Post/read contract for rooms, on top of a store and a codec"""

    def __init__(
        self,
        store: MessageStore,
        codec: MessageCodec,
        max_content_length: int | None = MAX_CONTENT_LENGTH,
    ):
        self.store = store
        self.codec = codec
        self.max_content_length = max_content_length

    @staticmethod
    def _require_identity(session_id: str | None) -> str:
        if not session_id or not session_id.strip():
            raise IdentityRequiredError()
        return session_id

    @staticmethod
    def _require_room(room_id: str | None) -> str:
        if not isinstance(room_id, str) or not room_id.strip():
            raise ValidationError("Room ID is required")
        return room_id

    def post(
        self,
        room_id: str,
        plaintext: str,
        session_id: str,
        ttl_minutes: float | None = None,
    ) -> RoomMessage:
        session_id = self._require_identity(session_id)
        room_id = self._require_room(room_id)

        if not isinstance(plaintext, str) or not plaintext:
            raise ValidationError("Message content is required")
        if self.max_content_length is not None and len(plaintext) > self.max_content_length:
            raise ValidationError(
                f"Message content exceeds {self.max_content_length} characters"
            )

        ttl = None
        if ttl_minutes is not None:
            if ttl_minutes <= 0:
                raise ValidationError("expiresInMinutes must be positive")
            try:
                ttl = timedelta(minutes=ttl_minutes)
            except (OverflowError, ValueError) as e:
                raise ValidationError("expiresInMinutes is out of range") from e

        message = self.store.append(
            room_id,
            self.codec.protect(plaintext, session_id),
            sender_fingerprint(session_id, room_id),
            ttl,
        )
        logger.info("Stored message %s in room %s (expires %s)",
                    message.id, room_id, message.expires_at.isoformat())
        return message

    def reveal_all(self, room_id: str, session_id: str) -> list[RevealOutcome]:
        """Try every active message in the room with the reader's key"""
        session_id = self._require_identity(session_id)
        room_id = self._require_room(room_id)

        outcomes = []
        for message in self.store.list_by_room(room_id):
            try:
                content = self.codec.reveal(message.stored_content, session_id)
            except DecodeError as e:
                outcomes.append(RevealOutcome(message=message, error=e))
                continue
            outcomes.append(RevealOutcome(
                message=message,
                decrypted=DecryptedMessage(
                    id=message.id,
                    content=content,
                    sender_key=message.sender_key,
                    created_at=message.created_at,
                    expires_at=message.expires_at,
                ),
            ))
        return outcomes

    def read(self, room_id: str, session_id: str) -> list[DecryptedMessage]:
        """Messages this session can open, oldest first; the rest are left out"""
        outcomes = self.reveal_all(room_id, session_id)

        skipped = [o for o in outcomes if not o.ok]
        if skipped:
            logger.debug("Omitted %d undecodable message(s) in room %s", len(skipped), room_id)

        return [o.decrypted for o in outcomes if o.ok]
