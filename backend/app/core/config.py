# app/core/config.py

import os
from dataclasses import dataclass, field
from datetime import timedelta

# =========================
# DEFAULTS
# =========================

DEFAULT_TTL_MINUTES = 60
MAX_TTL_MINUTES = 24 * 60
MAX_MESSAGES_PER_ROOM = 500
MAX_CONTENT_LENGTH = 10_000
SWEEP_INTERVAL_SECONDS = 5 * 60
RATE_LIMIT = "100 per 15 minutes"


def _database_url_from_env() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    db_user = os.getenv("DB_USER", "safeguard")
    db_pass = os.getenv("DB_PASS", "safeguard")
    db_host = os.getenv("DB_HOST", "localhost")
    db_port = os.getenv("DB_PORT", "5432")
    db_name = os.getenv("DB_NAME", "safeguard")
    return f"postgresql://{db_user}:{db_pass}@{db_host}:{db_port}/{db_name}"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    store_backend: str = "memory"
    database_url: str = "sqlite:///:memory:"
    message_codec: str = "aead"
    default_ttl_minutes: float = DEFAULT_TTL_MINUTES
    max_ttl_minutes: float = MAX_TTL_MINUTES
    max_messages_per_room: int = MAX_MESSAGES_PER_ROOM
    max_content_length: int = MAX_CONTENT_LENGTH
    sweep_interval_seconds: float = SWEEP_INTERVAL_SECONDS
    rate_limit: str = RATE_LIMIT
    rate_limit_enabled: bool = True
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @property
    def default_ttl(self) -> timedelta:
        return timedelta(minutes=self.default_ttl_minutes)

    @property
    def max_ttl(self) -> timedelta:
        return timedelta(minutes=self.max_ttl_minutes)

    @classmethod
    def from_env(cls) -> "Settings":
        """Read settings from plain environment variables"""
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            store_backend=os.getenv("STORE_BACKEND", "memory").lower(),
            database_url=_database_url_from_env(),
            message_codec=os.getenv("MESSAGE_CODEC", "aead").lower(),
            default_ttl_minutes=float(os.getenv("DEFAULT_TTL_MINUTES", DEFAULT_TTL_MINUTES)),
            max_ttl_minutes=float(os.getenv("MAX_TTL_MINUTES", MAX_TTL_MINUTES)),
            max_messages_per_room=int(os.getenv("MAX_MESSAGES_PER_ROOM", MAX_MESSAGES_PER_ROOM)),
            max_content_length=int(os.getenv("MAX_CONTENT_LENGTH", MAX_CONTENT_LENGTH)),
            sweep_interval_seconds=float(os.getenv("SWEEP_INTERVAL_SECONDS", SWEEP_INTERVAL_SECONDS)),
            rate_limit=os.getenv("RATE_LIMIT", RATE_LIMIT),
            rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", True),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
