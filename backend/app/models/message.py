# app/models/message.py

from sqlalchemy import Column, DateTime, Index, String, Text

from app.models.base import Base


class Message(Base):
    __tablename__ = "messages"

    id = Column(String(36), primary_key=True)

    # Any string is a valid room; knowing it is the only access control
    room_id = Column(String, nullable=False)

    # Codec output, opaque to the store
    encrypted_content = Column(Text, nullable=False)

    # sha256(session + room) hex, only used to mark "my messages"
    sender_key = Column(String(64), nullable=False)

    expires_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_messages_room_expiry", "room_id", "expires_at"),
    )
