# app/api/messages.py

import logging
import traceback
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Header, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from app.core.errors import IdentityRequiredError, RoomFullError, StoreUnavailableError, ValidationError
from app.services.relay_service import RoomRelay

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages")


class PostMessageSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Optional here so missing fields get the relay's 400, not a 422
    room_id: Optional[str] = Field(default=None, alias="roomId")
    content: Optional[str] = None
    expires_in_minutes: Optional[float] = Field(default=None, alias="expiresInMinutes")


def _iso(value: datetime) -> str:
    return value.isoformat() + "Z"


def get_relay(request: Request) -> RoomRelay:
    return request.app.state.relay


def _to_http_error(e: Exception) -> HTTPException:
    if isinstance(e, HTTPException):
        return e
    if isinstance(e, RoomFullError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, (ValidationError, IdentityRequiredError)):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, StoreUnavailableError):
        logger.error("❌ Store unavailable: %s", e)
        return HTTPException(status_code=503, detail=str(e))

    logger.error("❌ Unexpected error: %s\n%s", e, traceback.format_exc())
    return HTTPException(status_code=500, detail="Request failed")


@router.post("")
def post_message(
    request: Request,
    payload: PostMessageSchema,
    x_session_id: Optional[str] = Header(default=None),
):
    try:
        message = get_relay(request).post(
            payload.room_id,
            payload.content,
            x_session_id,
            ttl_minutes=payload.expires_in_minutes,
        )
    except Exception as e:
        raise _to_http_error(e) from e

    # Neither plaintext nor stored content goes back to the caller
    return {
        "id": message.id,
        "roomId": message.room_id,
        "senderKey": message.sender_key,
        "expiresAt": _iso(message.expires_at),
        "createdAt": _iso(message.created_at),
    }


@router.get("/{room_id:path}")
def read_messages(
    request: Request,
    room_id: str,
    x_session_id: Optional[str] = Header(default=None),
):
    try:
        messages = get_relay(request).read(room_id, x_session_id)
    except Exception as e:
        raise _to_http_error(e) from e

    return [
        {
            "id": m.id,
            "content": m.content,
            "senderKey": m.sender_key,
            "createdAt": _iso(m.created_at),
            "expiresAt": _iso(m.expires_at),
        }
        for m in messages
    ]
