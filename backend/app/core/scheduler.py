# app/core/scheduler.py

import asyncio
import logging

from app.core.config import SWEEP_INTERVAL_SECONDS
from app.core.errors import StoreUnavailableError
from app.core.message import MessageStore

logger = logging.getLogger(__name__)


class SweepScheduler:
    """
    Periodically purges expired messages.
    Owned by the app lifespan: start() on startup, await stop() on shutdown.
    """

    def __init__(self, store: MessageStore, interval_seconds: float = SWEEP_INTERVAL_SECONDS):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.store = store
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep_once(self) -> int:
        removed = await asyncio.to_thread(self.store.sweep_expired)
        if removed:
            logger.info("🧹 Swept %d expired message(s)", removed)
        return removed

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.sweep_once()
            except StoreUnavailableError as e:
                # Next tick retries; expired rows stay hidden from reads meanwhile
                logger.warning("Sweep skipped, store unavailable: %s", e)
            except Exception:
                # Log and keep ticking; the next sweep retries
                logger.exception("Sweep failed")

    def start(self):
        """Must be called from inside a running event loop"""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("Sweep scheduler started (every %ss)", self.interval_seconds)

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Sweep scheduler stopped")
