"""Time-bounded in-memory history of price samples."""

from __future__ import annotations

import logging
from bisect import bisect_left
from threading import Lock

from .models import HistorySample

logger = logging.getLogger(__name__)

DEFAULT_QUERY_LIMIT = 500


def _ts(sample: HistorySample) -> float:
    return sample.timestamp


class HistoryLedger:
    """Append-only sample lists, one per symbol, ordered by timestamp.

    Appends and queries take the lock briefly. prune() releases the lock
    between batches so a long sweep never stalls a tick for more than one
    batch worth of work.
    """

    def __init__(self, prune_batch_size: int = 1000) -> None:
        self._samples: dict[str, list[HistorySample]] = {}
        self._lock = Lock()
        self._batch = prune_batch_size

    def append(self, sample: HistorySample) -> None:
        """Append a sample. Out-of-order timestamps are inserted in place."""
        with self._lock:
            samples = self._samples.setdefault(sample.symbol, [])
            if samples and sample.timestamp < samples[-1].timestamp:
                # Clock went backwards; keep the list sorted
                idx = bisect_left(samples, sample.timestamp, key=_ts)
                samples.insert(idx, sample)
            else:
                samples.append(sample)

    def query(
        self,
        symbol: str,
        since: float = 0.0,
        limit: int = DEFAULT_QUERY_LIMIT,
    ) -> list[HistorySample]:
        """Samples with timestamp >= since, oldest first.

        When more than `limit` samples match, the most recent `limit` are kept.
        """
        if limit <= 0:
            return []
        with self._lock:
            samples = self._samples.get(symbol)
            if not samples:
                return []
            start = bisect_left(samples, since, key=_ts)
            start = max(start, len(samples) - limit)
            return samples[start:]

    def prune(self, cutoff: float) -> int:
        """Drop every sample with timestamp < cutoff. Returns how many were removed."""
        with self._lock:
            symbols = list(self._samples)

        removed = 0
        for symbol in symbols:
            while True:
                with self._lock:
                    samples = self._samples.get(symbol)
                    if not samples:
                        break
                    stale = bisect_left(samples, cutoff, key=_ts)
                    if stale == 0:
                        break
                    batch = min(stale, self._batch)
                    del samples[:batch]
                    removed += batch
        if removed:
            logger.debug("History prune removed %d samples older than %.0f", removed, cutoff)
        return removed

    def count(self, symbol: str | None = None) -> int:
        with self._lock:
            if symbol is not None:
                return len(self._samples.get(symbol, ()))
            return sum(len(s) for s in self._samples.values())

    def symbols(self) -> list[str]:
        with self._lock:
            return list(self._samples)
