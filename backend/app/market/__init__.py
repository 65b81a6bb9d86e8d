"""Market data subsystem for PricePulse.

Public API:
    PriceState          - Immutable price + day statistics for one symbol
    HistorySample       - Immutable price observation recorded each tick
    PriceStore          - Thread-safe in-memory current prices
    HistoryLedger       - Time-bounded per-symbol sample history
    UniformDelta        - Injectable random-walk delta strategy
    TickScheduler       - Fixed-interval mutate/record/broadcast loop
    RetentionSweeper    - Hourly pruning of history past the retention window
    PriceStorage        - Abstract interface for durable storage
    create_price_storage - Factory that selects DuckDB or in-memory storage
"""

from .errors import (
    AuthFailure,
    PersistenceFailure,
    PriceServiceError,
    SessionNotFound,
    TransientScheduleSkip,
    UnsupportedSymbol,
)
from .factory import create_price_storage
from .history import HistoryLedger
from .interface import PriceStorage
from .models import HistorySample, PriceState
from .scheduler import TickResult, TickScheduler
from .simulator import UniformDelta
from .store import PriceStore
from .sweeper import RetentionSweeper

__all__ = [
    "AuthFailure",
    "HistoryLedger",
    "HistorySample",
    "PersistenceFailure",
    "PriceServiceError",
    "PriceState",
    "PriceStorage",
    "PriceStore",
    "RetentionSweeper",
    "SessionNotFound",
    "TickResult",
    "TickScheduler",
    "TransientScheduleSkip",
    "UniformDelta",
    "UnsupportedSymbol",
    "create_price_storage",
]
