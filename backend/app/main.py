# app/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.api import messages, rooms, sessions
from app.core.config import Settings
from app.core.crypto import MessageCodec, get_codec
from app.core.message import Clock, InMemoryMessageStore, MessageStore
from app.core.rate_limit import build_limiter
from app.core.scheduler import SweepScheduler
from app.infra.postgres import check_connection, create_db_engine
from app.infra.sql_store import SqlMessageStore
from app.services.relay_service import RoomRelay
from app.utils.logger import setup_logger

logger = logging.getLogger(__name__)


def build_store(settings: Settings, clock: Clock | None = None) -> MessageStore:
    options = dict(
        clock=clock,
        default_ttl=settings.default_ttl,
        max_ttl=settings.max_ttl,
        max_messages_per_room=settings.max_messages_per_room,
    )
    if settings.store_backend == "memory":
        return InMemoryMessageStore(**options)
    if settings.store_backend == "sql":
        return SqlMessageStore(create_db_engine(settings.database_url), **options)
    raise ValueError(f"Unknown store backend: {settings.store_backend!r}")


def _store_name(store: MessageStore) -> str:
    return getattr(store, "name", type(store).__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.sweeper.start()
    try:
        yield
    finally:
        await app.state.sweeper.stop()


def create_app(
    settings: Settings | None = None,
    store: MessageStore | None = None,
    codec: MessageCodec | None = None,
    clock: Clock | None = None,
) -> FastAPI:
    """
    Build the relay app. An injected store is used as-is: its TTL and
    per-room limits win over the ones in settings (and clock is ignored).
    """
    settings = settings or Settings.from_env()
    setup_logger(settings.log_level)

    if store is None:
        store = build_store(settings, clock)
    elif (store.max_messages_per_room, store.max_ttl) != (settings.max_messages_per_room, settings.max_ttl):
        logger.warning("Injected store limits differ from settings; using the store's")
    codec = codec or get_codec(settings.message_codec)

    app = FastAPI(
        title="SafeGuard Relay",
        version="1.0.0",
        description="Ephemeral room-scoped encrypted message relay",
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Rate limiting
    limiter = build_limiter(settings)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    app.state.settings = settings
    app.state.store = store
    app.state.relay = RoomRelay(store, codec, max_content_length=settings.max_content_length)
    app.state.sweeper = SweepScheduler(store, settings.sweep_interval_seconds)

    # Register routers
    app.include_router(sessions.router, tags=["Sessions"])
    app.include_router(rooms.router, tags=["Rooms"])
    app.include_router(messages.router, tags=["Messages"])

    @app.get("/health")
    @limiter.exempt
    def health_check():
        status = {"status": "ok", "store": _store_name(store), "codec": codec.name}
        if isinstance(store, SqlMessageStore) and not check_connection(store.engine):
            status["status"] = "degraded"
        return status

    logger.info("✅ Relay ready (store=%s, codec=%s)", _store_name(store), codec.name)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
