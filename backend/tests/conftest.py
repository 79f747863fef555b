"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure backend/ is on the import path so `import app` works without installing
BACKEND_PATH = Path(__file__).resolve().parent.parent
if str(BACKEND_PATH) not in sys.path:
    sys.path.insert(0, str(BACKEND_PATH))

from app.core.config import Settings  # noqa: E402
from app.core.crypto import AeadCodec  # noqa: E402
from app.core.message import InMemoryMessageStore  # noqa: E402
from app.infra.postgres import create_db_engine  # noqa: E402
from app.infra.sql_store import SqlMessageStore  # noqa: E402
from app.main import create_app  # noqa: E402
from app.services.relay_service import RoomRelay  # noqa: E402


class FakeClock:
    """Controllable naive-UTC clock."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current

    def rewind(self, **kwargs) -> datetime:
        self.current -= timedelta(**kwargs)
        return self.current


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store(clock: FakeClock) -> InMemoryMessageStore:
    return InMemoryMessageStore(clock=clock)


@pytest.fixture
def sql_store(clock: FakeClock) -> SqlMessageStore:
    engine = create_db_engine("sqlite:///:memory:")
    yield SqlMessageStore(engine, clock=clock)
    engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def store(request, clock: FakeClock):
    """Every store test runs against both backends."""
    if request.param == "memory":
        yield InMemoryMessageStore(clock=clock)
        return
    engine = create_db_engine("sqlite:///:memory:")
    yield SqlMessageStore(engine, clock=clock)
    engine.dispose()


@pytest.fixture
def relay(memory_store: InMemoryMessageStore) -> RoomRelay:
    return RoomRelay(memory_store, AeadCodec())


@pytest.fixture
def settings() -> Settings:
    return Settings(rate_limit_enabled=False, sweep_interval_seconds=300)


@pytest.fixture
def app(settings: Settings, memory_store: InMemoryMessageStore):
    return create_app(settings=settings, store=memory_store)


@pytest.fixture
def client(app) -> TestClient:
    with TestClient(app) as c:
        yield c
