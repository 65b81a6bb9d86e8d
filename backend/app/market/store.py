"""Thread-safe in-memory price store."""

from __future__ import annotations

from threading import Lock
from types import MappingProxyType
from typing import Mapping

from .models import PriceState
from .symbols import DEFAULT_PRICE_FLOOR


class PriceStore:
    """Current price and day statistics for each seeded symbol.

    Writer: TickScheduler (one tick at a time).
    Readers: websocket broadcast, REST snapshot endpoint.

    Every stored PriceState is frozen, so handing one out never exposes
    state that a later tick could mutate in place.
    """

    def __init__(self, floor: float = DEFAULT_PRICE_FLOOR) -> None:
        if floor <= 0:
            raise ValueError("Price floor must be positive")
        self._floor = floor
        self._states: dict[str, PriceState] = {}
        self._lock = Lock()
        self._version: int = 0  # Bumped on every seed/tick

    @property
    def floor(self) -> float:
        return self._floor

    def seed(self, symbol: str, base_price: float) -> PriceState:
        """Initialize a symbol with every field equal to base_price.

        Startup only. Seeding an already seeded symbol resets its day.
        """
        if base_price <= 0:
            raise ValueError(f"Seed price for {symbol} must be positive, got {base_price}")
        price = round(base_price, 2)
        state = PriceState(
            symbol=symbol,
            current_price=price,
            open_price=price,
            day_high=price,
            day_low=price,
        )
        with self._lock:
            self._states[symbol] = state
            self._version += 1
        return state

    def apply_tick(self, symbol: str, delta: float) -> PriceState:
        """Move a symbol's price by delta, clamped to the floor.

        Raises KeyError if the symbol was never seeded.
        """
        with self._lock:
            prev = self._states[symbol]
            price = max(round(prev.current_price + delta, 2), self._floor)
            state = PriceState(
                symbol=symbol,
                current_price=price,
                open_price=prev.open_price,
                day_high=max(prev.day_high, price),
                day_low=min(prev.day_low, price),
            )
            self._states[symbol] = state
            self._version += 1
            return state

    def get(self, symbol: str) -> PriceState | None:
        with self._lock:
            return self._states.get(symbol)

    def snapshot(self) -> Mapping[str, PriceState]:
        """Read-only copy of all current states, in seeding order."""
        with self._lock:
            return MappingProxyType(dict(self._states))

    @property
    def version(self) -> int:
        return self._version

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)

    def __contains__(self, symbol: str) -> bool:
        with self._lock:
            return symbol in self._states
