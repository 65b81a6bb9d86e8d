"""Price storage backends: in-memory (default) and DuckDB."""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path

import duckdb

from .errors import PersistenceFailure
from .interface import PriceStorage
from .models import HistorySample, PriceState

logger = logging.getLogger(__name__)


class MemoryPriceStorage(PriceStorage):
    """Non-durable storage used when no database is configured.

    Price and sample writes are dropped (the in-memory store and ledger
    already hold them). Subscription lists are kept per identity for the
    lifetime of the process.
    """

    durable = False

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[str]] = {}
        self._lock = threading.Lock()

    def upsert_price_info(self, symbol: str, state: PriceState) -> None:
        return None

    def append_price_sample(self, sample: HistorySample) -> None:
        return None

    def delete_samples_before(self, cutoff: float) -> int:
        return 0

    def query_samples(self, symbol: str, since: float, limit: int) -> list[HistorySample]:
        raise PersistenceFailure("History is not persisted by the in-memory backend")

    def get_subscriptions(self, identity_id: str) -> list[str]:
        with self._lock:
            return list(self._subscriptions.get(identity_id, []))

    def add_subscription(self, identity_id: str, symbol: str) -> list[str]:
        with self._lock:
            symbols = self._subscriptions.setdefault(identity_id, [])
            if symbol not in symbols:
                symbols.append(symbol)
            return list(symbols)

    def remove_subscription(self, identity_id: str, symbol: str) -> list[str]:
        with self._lock:
            symbols = [s for s in self._subscriptions.get(identity_id, []) if s != symbol]
            if symbols:
                self._subscriptions[identity_id] = symbols
            else:
                self._subscriptions.pop(identity_id, None)
            return list(symbols)


class DuckDBPriceStorage(PriceStorage):
    """DuckDB-backed durable storage.

    A single connection is shared by the tick loop, the sweeper and request
    handlers, so every statement runs under a re-entrant lock.
    """

    def __init__(self, db_path: str = "prices.duckdb") -> None:
        self.db_path = db_path
        self._lock = threading.RLock()
        try:
            if db_path != ":memory:":
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            self._conn: duckdb.DuckDBPyConnection | None = duckdb.connect(db_path)
            self._create_schema()
        except duckdb.Error as e:
            raise PersistenceFailure(f"Failed to open price database at {db_path}: {e}") from e
        logger.info("DuckDB price storage ready at %s", db_path)

    def _create_schema(self) -> None:
        with self._lock:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS price_info (
                    symbol VARCHAR PRIMARY KEY,
                    current_price DOUBLE NOT NULL,
                    open_price DOUBLE NOT NULL,
                    day_high DOUBLE NOT NULL,
                    day_low DOUBLE NOT NULL,
                    change DOUBLE NOT NULL,
                    change_percent DOUBLE NOT NULL,
                    updated_at DOUBLE NOT NULL
                )
            """)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS price_samples (
                    symbol VARCHAR NOT NULL,
                    price DOUBLE NOT NULL,
                    change DOUBLE NOT NULL,
                    change_percent DOUBLE NOT NULL,
                    high DOUBLE NOT NULL,
                    low DOUBLE NOT NULL,
                    open DOUBLE NOT NULL,
                    timestamp DOUBLE NOT NULL
                )
            """)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS subscriptions (
                    identity_id VARCHAR NOT NULL,
                    symbol VARCHAR NOT NULL,
                    created_at DOUBLE NOT NULL,
                    PRIMARY KEY (identity_id, symbol)
                )
            """)

    def _execute(self, sql: str, params: list | None = None) -> duckdb.DuckDBPyConnection:
        if self._conn is None:
            raise PersistenceFailure("Price database is closed")
        try:
            return self._conn.execute(sql, params or [])
        except duckdb.Error as e:
            raise PersistenceFailure(str(e)) from e

    def upsert_price_info(self, symbol: str, state: PriceState) -> None:
        with self._lock:
            self._execute(
                """
                INSERT OR REPLACE INTO price_info
                (symbol, current_price, open_price, day_high, day_low, change, change_percent, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    symbol,
                    state.current_price,
                    state.open_price,
                    state.day_high,
                    state.day_low,
                    state.change,
                    state.change_percent,
                    time.time(),
                ],
            )

    def get_price_info(self, symbol: str) -> PriceState | None:
        with self._lock:
            row = self._execute(
                "SELECT symbol, current_price, open_price, day_high, day_low FROM price_info WHERE symbol = ?",
                [symbol],
            ).fetchone()
        if row is None:
            return None
        return PriceState(
            symbol=row[0],
            current_price=row[1],
            open_price=row[2],
            day_high=row[3],
            day_low=row[4],
        )

    def append_price_sample(self, sample: HistorySample) -> None:
        with self._lock:
            self._execute(
                "INSERT INTO price_samples VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    sample.symbol,
                    sample.price,
                    sample.change,
                    sample.change_percent,
                    sample.high,
                    sample.low,
                    sample.open,
                    sample.timestamp,
                ],
            )

    def delete_samples_before(self, cutoff: float) -> int:
        with self._lock:
            stale = self._execute(
                "SELECT COUNT(*) FROM price_samples WHERE timestamp < ?", [cutoff]
            ).fetchone()[0]
            if stale:
                self._execute("DELETE FROM price_samples WHERE timestamp < ?", [cutoff])
        return int(stale)

    def query_samples(self, symbol: str, since: float, limit: int) -> list[HistorySample]:
        if limit <= 0:
            return []
        with self._lock:
            rows = self._execute(
                """
                SELECT symbol, price, change, change_percent, high, low, open, timestamp
                FROM price_samples
                WHERE symbol = ? AND timestamp >= ?
                ORDER BY timestamp DESC
                LIMIT ?
                """,
                [symbol, since, limit],
            ).fetchall()
        return [HistorySample(*row) for row in reversed(rows)]

    def get_subscriptions(self, identity_id: str) -> list[str]:
        with self._lock:
            rows = self._execute(
                "SELECT symbol FROM subscriptions WHERE identity_id = ? ORDER BY created_at, symbol",
                [identity_id],
            ).fetchall()
        return [row[0] for row in rows]

    def add_subscription(self, identity_id: str, symbol: str) -> list[str]:
        with self._lock:
            self._execute(
                "INSERT OR IGNORE INTO subscriptions VALUES (?, ?, ?)",
                [identity_id, symbol, time.time()],
            )
            return self.get_subscriptions(identity_id)

    def remove_subscription(self, identity_id: str, symbol: str) -> list[str]:
        with self._lock:
            self._execute(
                "DELETE FROM subscriptions WHERE identity_id = ? AND symbol = ?",
                [identity_id, symbol],
            )
            return self.get_subscriptions(identity_id)

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.info("DuckDB price storage closed")
