# app/api/sessions.py

from fastapi import APIRouter

from app.core.tokens import generate_session_id

router = APIRouter()


@router.post("/session")
def create_session():
    """Anonymous session token; clients keep it and send it as X-Session-ID"""
    return {"sessionId": generate_session_id()}
