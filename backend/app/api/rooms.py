# app/api/rooms.py

import logging

from fastapi import APIRouter

from app.core.tokens import generate_room_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rooms")


@router.post("")
def create_room():
    """Hand out a fresh room code; the room exists once someone posts to it"""
    room_id = generate_room_id()
    logger.info("Issued room code %s", room_id)
    return {"roomId": room_id}
