"""Periodic eviction of expired cache entries."""

from __future__ import annotations

import asyncio
import logging

from .cache import CacheStore
from .service_base import BaseService


class CacheJanitor(BaseService):
    """
    Background task that purges expired entries from a CacheStore.

    Reads never depend on the janitor having run; it only keeps entries
    that nobody asks for again from piling up. A failing sweep is logged
    and the loop carries on with the next tick.
    """

    def __init__(
        self,
        store: CacheStore,
        *,
        interval_seconds: float,
        name: str = "cache",
        logger: logging.Logger | None = None,
    ):
        super().__init__(logger=logger)
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self.store = store
        self.interval_seconds = float(interval_seconds)
        self.name = name
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep(self) -> int:
        """Run one eviction pass and return the number of entries removed."""
        try:
            removed = self.store.purge_expired()
        except Exception:  # noqa: BLE001 - never let a sweep kill the host
            self.logger.exception("Cache sweep failed (%s)", self.name)
            return 0
        if removed:
            self.logger.debug("Swept %s expired entries from %s cache", removed, self.name)
        return removed

    async def start(self) -> None:
        if self.running:
            raise RuntimeError(f"Janitor for {self.name} cache is already running")
        self._task = asyncio.create_task(self._loop())
        self.logger.info(
            "Cache janitor started (%s, interval=%.0fs)", self.name, self.interval_seconds
        )

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        if not task.done():
            task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        self.logger.info("Cache janitor stopped (%s)", self.name)

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            self.sweep()


__all__ = ["CacheJanitor"]
