"""Periodic pruning of history past the retention window."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from .history import HistoryLedger
from .interface import PriceStorage

logger = logging.getLogger(__name__)

RETENTION_WINDOW = 24 * 3600  # seconds


class RetentionSweeper:
    """Prunes the HistoryLedger and durable storage on a slow cadence.

    A failed sweep is logged and leaves the extra rows for the next pass.
    """

    def __init__(
        self,
        ledger: HistoryLedger,
        storage: PriceStorage,
        retention: float = RETENTION_WINDOW,
        interval: float = 3600.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ledger = ledger
        self._storage = storage
        self._retention = retention
        self._interval = interval
        self._clock = clock
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run_loop(), name="retention-sweeper")
        logger.info(
            "Retention sweeper started: %.0fs window, %.0fs interval",
            self._retention,
            self._interval,
        )

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("Retention sweeper stopped")

    async def sweep_once(self) -> int:
        """Prune everything older than now - retention. Returns in-memory samples removed."""
        cutoff = self._clock() - self._retention
        removed = await asyncio.to_thread(self._ledger.prune, cutoff)

        try:
            deleted = await asyncio.to_thread(self._storage.delete_samples_before, cutoff)
        except Exception as e:
            logger.warning("Failed to delete persisted samples before %.0f: %s", cutoff, e)
        else:
            logger.info("Retention sweep: %d in memory, %d persisted samples removed", removed, deleted)
        return removed

    async def _run_loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.sweep_once()
            except Exception:
                logger.exception("Retention sweep failed")
