"""Abstract interface for durable price storage."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .models import HistorySample, PriceState


class PriceStorage(ABC):
    """Contract for durable storage backends.

    In-memory state (PriceStore, HistoryLedger) is always authoritative.
    Storage is written best-effort from the tick and sweep loops, which call
    these synchronous methods from a worker thread. Implementations raise
    PersistenceFailure for any backend error.

    Lifecycle:
        storage = create_price_storage(settings)
        storage.upsert_price_info("GOOG", state)
        storage.append_price_sample(sample)
        ...
        storage.close()
    """

    #: False for backends that keep nothing across restarts. History reads
    #: skip non-durable storage and go straight to the HistoryLedger.
    durable: bool = True

    @abstractmethod
    def upsert_price_info(self, symbol: str, state: PriceState) -> None:
        """Insert or replace the current price row for a symbol."""

    @abstractmethod
    def append_price_sample(self, sample: HistorySample) -> None:
        """Record one history sample."""

    @abstractmethod
    def delete_samples_before(self, cutoff: float) -> int:
        """Delete samples with timestamp < cutoff. Returns rows removed."""

    @abstractmethod
    def query_samples(self, symbol: str, since: float, limit: int) -> list[HistorySample]:
        """Samples with timestamp >= since, oldest first, the most recent `limit` kept."""

    @abstractmethod
    def get_subscriptions(self, identity_id: str) -> list[str]:
        """The identity's persisted subscription list, in insertion order."""

    @abstractmethod
    def add_subscription(self, identity_id: str, symbol: str) -> list[str]:
        """Add a symbol (no-op if present). Returns the updated list."""

    @abstractmethod
    def remove_subscription(self, identity_id: str, symbol: str) -> list[str]:
        """Remove a symbol (no-op if absent). Returns the updated list."""

    def close(self) -> None:
        """Release backend resources. Safe to call multiple times."""
