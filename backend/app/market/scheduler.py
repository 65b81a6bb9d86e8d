"""Fixed-interval tick loop: mutate prices, record history, broadcast."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass, field
from typing import Callable

from .errors import TransientScheduleSkip
from .history import HistoryLedger
from .interface import PriceStorage
from .models import HistorySample, PriceState, price_update_message
from .simulator import DeltaStrategy, UniformDelta
from .store import PriceStore
from .symbols import SUPPORTED_SYMBOLS, seed_price

logger = logging.getLogger(__name__)

# Receives the price-update payload once per tick
Broadcaster = Callable[[dict], Awaitable[object]]

# Ticks waiting for the storage writer before the oldest are dropped
MAX_PENDING_WRITES = 600


@dataclass(frozen=True)
class TickResult:
    """Outcome of one tick."""

    timestamp: float
    prices: Mapping[str, PriceState]
    samples: list[HistorySample] = field(default_factory=list)
    skipped: list[TransientScheduleSkip] = field(default_factory=list)

    def to_message(self) -> dict:
        return price_update_message(self.prices, self.timestamp)


class TickScheduler:
    """Drives the price walk at a fixed interval.

    Each tick advances every allowlisted symbol in order, appends one
    HistorySample per symbol to the ledger, then broadcasts a single
    snapshot of all prices. The in-memory step always runs; persistence
    is queued for a single writer task, so writes land in tick order and
    never delay the next tick. A writer that falls behind merges its
    backlog and drops the oldest ticks past `max_pending_writes`.
    """

    def __init__(
        self,
        store: PriceStore,
        ledger: HistoryLedger,
        storage: PriceStorage,
        symbols: tuple[str, ...] = SUPPORTED_SYMBOLS,
        delta: DeltaStrategy | None = None,
        broadcast: Broadcaster | None = None,
        interval: float = 1.0,
        clock: Callable[[], float] = time.time,
        max_pending_writes: int = MAX_PENDING_WRITES,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._storage = storage
        self._symbols = tuple(symbols)
        self._delta = delta or UniformDelta()
        self._broadcast = broadcast
        self._interval = interval
        self._clock = clock
        self._task: asyncio.Task | None = None
        self._max_pending = max_pending_writes
        self._writes: asyncio.Queue[TickResult] = asyncio.Queue()
        self._writer: asyncio.Task | None = None
        self.dropped_writes: int = 0
        self.ticks: int = 0

    @property
    def symbols(self) -> tuple[str, ...]:
        return self._symbols

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def seed(self, prices: Mapping[str, float] | None = None) -> None:
        """Seed every symbol not yet in the store."""
        for symbol in self._symbols:
            if symbol in self._store:
                continue
            base = prices[symbol] if prices and symbol in prices else seed_price(symbol)
            self._store.seed(symbol, base)

    async def start(self) -> None:
        if self.running:
            return
        self.seed()
        self._task = asyncio.create_task(self._run_loop(), name="tick-scheduler")
        logger.info(
            "Tick scheduler started: %d symbols, %.1fs interval",
            len(self._symbols),
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
        if self._writer is not None:
            if not self._writer.done():
                await self._writes.join()
                self._writer.cancel()
                try:
                    await self._writer
                except asyncio.CancelledError:
                    pass
            self._writer = None
            self._writes = asyncio.Queue()
        logger.info("Tick scheduler stopped")

    def tick(self) -> TickResult:
        """Advance every symbol once. Pure in-memory, never raises."""
        now = self._clock()
        samples: list[HistorySample] = []
        skipped: list[TransientScheduleSkip] = []

        for symbol in self._symbols:
            try:
                state = self._store.apply_tick(symbol, self._delta(symbol))
                sample = HistorySample.from_state(state, now)
                self._ledger.append(sample)
                samples.append(sample)
            except Exception as e:
                skip = TransientScheduleSkip(symbol, e)
                skipped.append(skip)
                logger.warning("%s", skip, exc_info=True)

        self.ticks += 1
        return TickResult(
            timestamp=now,
            prices=self._store.snapshot(),
            samples=samples,
            skipped=skipped,
        )

    async def run_once(self) -> TickResult:
        """One full tick: in-memory step, detached persistence, broadcast."""
        result = self.tick()
        self._persist_detached(result)
        if self._broadcast is not None:
            try:
                await self._broadcast(result.to_message())
            except Exception:
                logger.exception("Price broadcast failed")
        return result

    # --- Internal ---

    async def _run_loop(self) -> None:
        """Sleep, tick, repeat. Seeding already happened in start()."""
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.run_once()
            except Exception:
                logger.exception("Tick failed")

    def _persist_detached(self, result: TickResult) -> None:
        if not result.samples or not self._storage.durable:
            return
        if self._writes.qsize() >= self._max_pending:
            self._writes.get_nowait()
            self._writes.task_done()
            self.dropped_writes += 1
            logger.warning("Storage writer is behind; dropped the oldest pending tick")
        self._writes.put_nowait(result)
        if self._writer is None or self._writer.done():
            self._writer = asyncio.create_task(self._write_loop(), name="tick-writer")

    async def _write_loop(self) -> None:
        """Drain queued ticks in order, one batch per worker-thread call."""
        while True:
            batch = [await self._writes.get()]
            while not self._writes.empty():
                batch.append(self._writes.get_nowait())
            try:
                await asyncio.to_thread(self._persist, batch)
            except Exception:
                logger.exception("Persisting %d ticks failed", len(batch))
            finally:
                for _ in batch:
                    self._writes.task_done()

    def _persist(self, batch: list[TickResult]) -> None:
        """Write a batch of ticks. Runs in a worker thread.

        Every sample is appended in tick order; price info is upserted once
        per symbol with the newest state in the batch.
        """
        latest: dict[str, PriceState] = {}
        for result in batch:
            for sample in result.samples:
                try:
                    self._storage.append_price_sample(sample)
                except Exception as e:
                    logger.warning("Failed to persist sample for %s: %s", sample.symbol, e)
                latest[sample.symbol] = result.prices[sample.symbol]

        for symbol, state in latest.items():
            try:
                self._storage.upsert_price_info(symbol, state)
            except Exception as e:
                logger.warning("Failed to persist price info for %s: %s", symbol, e)
