"""Data models for market data."""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class PriceState:
    """Immutable snapshot of a single symbol's price and day statistics."""

    symbol: str
    current_price: float
    open_price: float
    day_high: float
    day_low: float

    @property
    def change(self) -> float:
        """Absolute change since the open."""
        return self.current_price - self.open_price

    @property
    def change_percent(self) -> float:
        """Percentage change since the open. open_price is always positive."""
        return (self.current_price - self.open_price) / self.open_price * 100

    def to_dict(self) -> dict:
        """Serialize for JSON / websocket transmission."""
        return {
            "symbol": self.symbol,
            "price": self.current_price,
            "open": self.open_price,
            "high": self.day_high,
            "low": self.day_low,
            "change": round(self.change, 2),
            "change_percent": round(self.change_percent, 4),
        }


@dataclass(frozen=True, slots=True)
class HistorySample:
    """One price observation recorded for a symbol on a tick."""

    symbol: str
    price: float
    change: float
    change_percent: float
    high: float
    low: float
    open: float
    timestamp: float = field(default_factory=time.time)  # Unix seconds

    @classmethod
    def from_state(cls, state: PriceState, timestamp: float) -> HistorySample:
        return cls(
            symbol=state.symbol,
            price=state.current_price,
            change=state.change,
            change_percent=state.change_percent,
            high=state.day_high,
            low=state.day_low,
            open=state.open_price,
            timestamp=timestamp,
        )

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "price": self.price,
            "change": round(self.change, 2),
            "change_percent": round(self.change_percent, 4),
            "high": self.high,
            "low": self.low,
            "open": self.open,
            "timestamp": self.timestamp,
        }


def price_update_message(prices: Mapping[str, PriceState], timestamp: float) -> dict:
    """price-update payload: every symbol's current price."""
    return {
        "prices": {symbol: state.to_dict() for symbol, state in prices.items()},
        "timestamp": timestamp,
    }
