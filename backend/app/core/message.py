# app/core/message.py

import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

from app.core.config import DEFAULT_TTL_MINUTES, MAX_MESSAGES_PER_ROOM, MAX_TTL_MINUTES
from app.core.errors import RoomFullError, ValidationError

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

TIE_BREAK = timedelta(microseconds=1)


def utc_now() -> datetime:
    """Naive UTC, matching what the DateTime columns round-trip"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class RoomMessage:
    id: str
    room_id: str
    stored_content: str
    sender_key: str
    created_at: datetime
    expires_at: datetime

    def is_active(self, now: datetime) -> bool:
        return now < self.expires_at


class MessageStore:
    """
    Holds room messages until they expire.

    Subclasses implement the storage; this base owns the clock, TTL rules and
    created_at stamping so both backends expire and order messages the same way.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        default_ttl: timedelta = timedelta(minutes=DEFAULT_TTL_MINUTES),
        max_ttl: timedelta | None = timedelta(minutes=MAX_TTL_MINUTES),
        max_messages_per_room: int | None = MAX_MESSAGES_PER_ROOM,
    ):
        if default_ttl <= timedelta(0):
            raise ValueError("default_ttl must be positive")
        self._clock = clock or utc_now
        self.default_ttl = default_ttl
        self.max_ttl = max_ttl
        self.max_messages_per_room = max_messages_per_room

        self._stamp_lock = threading.Lock()
        self._high_water: datetime | None = None
        self._last_created: datetime | None = None

    # ---------- TIME ----------

    def now(self) -> datetime:
        """Store time never goes backwards, so an expired message stays expired"""
        with self._stamp_lock:
            return self._advance()

    def _advance(self) -> datetime:
        current = self._clock()
        if self._high_water is None or current > self._high_water:
            self._high_water = current
        return self._high_water

    def _stamp(self, ttl: timedelta) -> tuple[datetime, datetime]:
        """created_at strictly increases so append order is the read order"""
        with self._stamp_lock:
            created_at = self._advance()
            if self._last_created is not None and created_at <= self._last_created:
                created_at = self._last_created + TIE_BREAK
                # A bumped stamp is never ahead of the store clock
                self._high_water = created_at
            self._last_created = created_at
        return created_at, created_at + ttl

    def resolve_ttl(self, ttl: timedelta | None) -> timedelta:
        if ttl is None:
            return self.default_ttl
        if ttl <= timedelta(0):
            raise ValidationError("TTL must be a positive duration")
        if self.max_ttl is not None and ttl > self.max_ttl:
            logger.debug("Clamping TTL %s to %s", ttl, self.max_ttl)
            return self.max_ttl
        return ttl

    def _check_room_capacity(self, room_id: str, active: int):
        if self.max_messages_per_room is not None and active >= self.max_messages_per_room:
            raise RoomFullError(
                f"Room already holds {self.max_messages_per_room} active messages"
            )

    def _new_message(self, room_id, stored_content, sender_key, ttl) -> RoomMessage:
        created_at, expires_at = self._stamp(ttl)
        return RoomMessage(
            id=str(uuid.uuid4()),
            room_id=room_id,
            stored_content=stored_content,
            sender_key=sender_key,
            created_at=created_at,
            expires_at=expires_at,
        )

    # ---------- STORAGE ----------

    def append(
        self,
        room_id: str,
        stored_content: str,
        sender_key: str,
        ttl: timedelta | None = None,
    ) -> RoomMessage:
        raise NotImplementedError

    def list_by_room(self, room_id: str) -> list[RoomMessage]:
        raise NotImplementedError

    def sweep_expired(self) -> int:
        raise NotImplementedError

    def count(self, room_id: str | None = None) -> int:
        raise NotImplementedError


class InMemoryMessageStore(MessageStore):
    """Process-local store: room id -> messages in created_at order"""

    name = "memory"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._rooms: dict[str, list[RoomMessage]] = {}
        self._lock = threading.Lock()

    def append(self, room_id, stored_content, sender_key, ttl=None):
        if not room_id:
            raise ValidationError("Room ID is required")
        ttl = self.resolve_ttl(ttl)

        with self._lock:
            now = self.now()
            messages = self._rooms.get(room_id, [])
            self._check_room_capacity(room_id, sum(1 for m in messages if m.is_active(now)))

            message = self._new_message(room_id, stored_content, sender_key, ttl)
            self._rooms.setdefault(room_id, []).append(message)

        return message

    def list_by_room(self, room_id):
        with self._lock:
            now = self.now()
            return [m for m in self._rooms.get(room_id, []) if m.is_active(now)]

    def sweep_expired(self):
        removed = 0
        with self._lock:
            now = self.now()
            for room_id in list(self._rooms):
                kept = [m for m in self._rooms[room_id] if m.is_active(now)]
                removed += len(self._rooms[room_id]) - len(kept)
                if kept:
                    self._rooms[room_id] = kept
                else:
                    del self._rooms[room_id]
        return removed

    def count(self, room_id=None):
        with self._lock:
            if room_id is not None:
                return len(self._rooms.get(room_id, []))
            return sum(len(messages) for messages in self._rooms.values())
