# app/core/rate_limit.py

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import Settings


def build_limiter(settings: Settings) -> Limiter:
    """
    Per-app limiter keyed by client address. The default limit covers every
    route through SlowAPIMiddleware; counters live with this instance only.
    """
    return Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit],
        enabled=settings.rate_limit_enabled,
    )
