# app/clients/room_client.py

import logging
import time
from typing import Callable, Optional

import requests

from app.core.security import sender_fingerprint

logger = logging.getLogger(__name__)

# =========================
# CONFIGURATION
# =========================

SERVER_URL = "http://127.0.0.1:8000"
POLL_INTERVAL_SECONDS = 5.0
REQUEST_TIMEOUT_SECONDS = 10


class RoomClientError(Exception):
    def __init__(self, status_code: int, detail: str):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


# =========================
# ROOM CLIENT
# =========================

class RoomClient:
    """
    Talks to the relay over HTTP. Messages are only readable by clients
    holding the same session token, so share the token with your peer
    along with the room code.
    """

    def __init__(
        self,
        server_url: str = SERVER_URL,
        session_id: Optional[str] = None,
        session=None,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ):
        self.server_url = server_url.rstrip("/")
        self.session_id = session_id
        self.session = session or requests.Session()
        self.poll_interval = poll_interval
        self.timeout = timeout
        self._seen: set[str] = set()

    def _headers(self) -> dict:
        if not self.session_id:
            raise RoomClientError(0, "No session; call start_session() first")
        return {"X-Session-ID": self.session_id}

    @staticmethod
    def _json(resp):
        if resp.status_code >= 400:
            try:
                detail = resp.json().get("detail", resp.text)
            except ValueError:
                detail = resp.text
            raise RoomClientError(resp.status_code, str(detail))
        return resp.json()

    def start_session(self) -> str:
        resp = self.session.post(f"{self.server_url}/session", timeout=self.timeout)
        self.session_id = self._json(resp)["sessionId"]
        return self.session_id

    def create_room(self) -> str:
        resp = self.session.post(f"{self.server_url}/rooms", timeout=self.timeout)
        return self._json(resp)["roomId"]

    def send(self, room_id: str, content: str, expires_in_minutes: Optional[float] = None) -> dict:
        body = {"roomId": room_id, "content": content}
        if expires_in_minutes is not None:
            body["expiresInMinutes"] = expires_in_minutes

        resp = self.session.post(
            f"{self.server_url}/messages",
            json=body,
            headers=self._headers(),
            timeout=self.timeout,
        )
        return self._json(resp)

    def fetch(self, room_id: str) -> list[dict]:
        resp = self.session.get(
            f"{self.server_url}/messages/{requests.utils.quote(room_id, safe='')}",
            headers=self._headers(),
            timeout=self.timeout,
        )
        return self._json(resp)

    def is_mine(self, message: dict, room_id: str) -> bool:
        return bool(self.session_id) and message.get("senderKey") == sender_fingerprint(self.session_id, room_id)

    def poll(
        self,
        room_id: str,
        on_message: Callable[[dict], None],
        rounds: Optional[int] = None,
    ) -> int:
        """
        Fetch the room every poll_interval seconds and hand each message not
        seen before to on_message. Runs forever unless rounds is given.
        Returns how many new messages were delivered.
        """
        delivered = 0
        done = 0
        while rounds is None or done < rounds:
            if done:
                time.sleep(self.poll_interval)
            for message in self.fetch(room_id):
                if message["id"] in self._seen:
                    continue
                self._seen.add(message["id"])
                on_message(message)
                delivered += 1
            done += 1
        return delivered


# =========================
# DEMO USAGE
# =========================

if __name__ == "__main__":
    client = RoomClient()
    client.start_session()
    room = client.create_room()
    print(f"Room: {room}")
    client.send(room, "Hello from a safe room 🔒", expires_in_minutes=5)
    client.poll(room, lambda m: print(f"[{m['createdAt']}] {m['content']}"), rounds=1)
