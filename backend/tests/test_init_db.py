from __future__ import annotations

from datetime import timedelta

from app.infra.postgres import create_db_engine
from app.infra.sql_store import SqlMessageStore
from init_db import reset_message_schema


def test_reset_creates_message_table(tmp_path):
    layout = reset_message_schema(f"sqlite:///{tmp_path / 'relay.db'}")

    assert set(layout["messages"]) == {
        "id", "room_id", "encrypted_content", "sender_key", "created_at", "expires_at",
    }


def test_reset_drops_existing_messages(tmp_path, clock):
    url = f"sqlite:///{tmp_path / 'relay.db'}"
    engine = create_db_engine(url)
    store = SqlMessageStore(engine, clock=clock)
    store.append("room", "c", "s", timedelta(minutes=5))
    engine.dispose()

    reset_message_schema(url)

    engine = create_db_engine(url)
    assert SqlMessageStore(engine, clock=clock).count() == 0
    engine.dispose()
