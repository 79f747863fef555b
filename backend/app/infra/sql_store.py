# app/infra/sql_store.py

import logging
import threading

from sqlalchemy import delete, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from app.core.errors import StoreUnavailableError, ValidationError
from app.core.message import MessageStore, RoomMessage
from app.infra.postgres import db_session, init_db, make_session_factory
from app.models.message import Message

logger = logging.getLogger(__name__)


def _to_room_message(row: Message) -> RoomMessage:
    return RoomMessage(
        id=row.id,
        room_id=row.room_id,
        stored_content=row.encrypted_content,
        sender_key=row.sender_key,
        created_at=row.created_at,
        expires_at=row.expires_at,
    )


class SqlMessageStore(MessageStore):
    """Messages table behind SQLAlchemy; every operation is its own transaction"""

    name = "sql"

    def __init__(self, engine: Engine, create_tables: bool = True, **kwargs):
        super().__init__(**kwargs)
        self.engine = engine
        self._session_factory = make_session_factory(engine)
        # Room cap check and insert must not interleave within this process
        self._write_lock = threading.Lock()
        if create_tables:
            init_db(engine)

    def append(self, room_id, stored_content, sender_key, ttl=None):
        if not room_id:
            raise ValidationError("Room ID is required")
        ttl = self.resolve_ttl(ttl)

        try:
            with self._write_lock, db_session(self._session_factory) as db:
                if self.max_messages_per_room is not None:
                    active = db.scalar(
                        select(func.count())
                        .select_from(Message)
                        .where(Message.room_id == room_id, Message.expires_at > self.now())
                    )
                    self._check_room_capacity(room_id, active)

                message = self._new_message(room_id, stored_content, sender_key, ttl)
                db.add(Message(
                    id=message.id,
                    room_id=message.room_id,
                    encrypted_content=message.stored_content,
                    sender_key=message.sender_key,
                    created_at=message.created_at,
                    expires_at=message.expires_at,
                ))
        except SQLAlchemyError as e:
            logger.error("Failed to store message in room %s: %s", room_id, e)
            raise StoreUnavailableError("Message store unavailable") from e

        return message

    def list_by_room(self, room_id):
        try:
            with db_session(self._session_factory) as db:
                rows = db.scalars(
                    select(Message)
                    .where(Message.room_id == room_id, Message.expires_at > self.now())
                    .order_by(Message.created_at, Message.id)
                ).all()
                return [_to_room_message(row) for row in rows]
        except SQLAlchemyError as e:
            logger.error("Failed to list room %s: %s", room_id, e)
            raise StoreUnavailableError("Message store unavailable") from e

    def sweep_expired(self):
        try:
            with self._write_lock, db_session(self._session_factory) as db:
                result = db.execute(
                    delete(Message).where(Message.expires_at <= self.now())
                )
                return result.rowcount or 0
        except SQLAlchemyError as e:
            logger.error("Sweep failed: %s", e)
            raise StoreUnavailableError("Message store unavailable") from e

    def count(self, room_id=None):
        query = select(func.count()).select_from(Message)
        if room_id is not None:
            query = query.where(Message.room_id == room_id)
        try:
            with db_session(self._session_factory) as db:
                return db.scalar(query) or 0
        except SQLAlchemyError as e:
            raise StoreUnavailableError("Message store unavailable") from e
