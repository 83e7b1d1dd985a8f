"""Fixed-interval refresh trigger."""

from __future__ import annotations

import asyncio
import logging

from .errors import AggregationFailure
from .service import AggregatorService

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """Runs AggregatorService.refresh() every `interval` seconds.

    The first refresh happens as soon as start() is called so the cache has
    data right away. Refreshes share the cache's single-flight guard with
    read-triggered refreshes.
    """

    def __init__(self, service: AggregatorService, interval: float = 30.0) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._service = service
        self._interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run_loop(), name="refresh-scheduler")
        logger.info("Refresh scheduler started: %.1fs interval", self._interval)

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("Refresh scheduler stopped")

    async def _run_loop(self) -> None:
        while True:
            try:
                report = await self._service.refresh()
                logger.info(
                    "Scheduled refresh: %d tokens, %d volatile, %dms",
                    report.tokens_count,
                    report.updates_count,
                    report.duration_ms,
                )
            except AggregationFailure as e:
                logger.error("Scheduled refresh failed: %s", e)
            except Exception:
                logger.exception("Scheduled refresh crashed")
            await asyncio.sleep(self._interval)
