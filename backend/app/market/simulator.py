"""Random-walk delta strategies for the price simulator."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Callable

import numpy as np

from .symbols import DEFAULT_SPREAD, SYMBOL_SPREADS

# A delta strategy maps a symbol to the price move for the current tick.
DeltaStrategy = Callable[[str], float]


class UniformDelta:
    """Uniform random walk: each tick moves a price by U(-spread, +spread).

    The spread is the half-width of the range and is looked up per symbol,
    so more volatile names can swing harder. With the default spread of 5.0
    this is the classic +/-5 walk.

    Pass `seed` for a reproducible sequence.
    """

    def __init__(
        self,
        spreads: Mapping[str, float] | None = None,
        default_spread: float = DEFAULT_SPREAD,
        seed: int | None = None,
    ) -> None:
        if default_spread < 0:
            raise ValueError("Spread must be non-negative")
        self._spreads = dict(SYMBOL_SPREADS if spreads is None else spreads)
        self._default = default_spread
        self._rng = np.random.default_rng(seed)

    def spread(self, symbol: str) -> float:
        return self._spreads.get(symbol, self._default)

    def __call__(self, symbol: str) -> float:
        spread = self.spread(symbol)
        if spread == 0:
            return 0.0
        return float(self._rng.uniform(-spread, spread))

    @classmethod
    def scaled(cls, base_spread: float, seed: int | None = None) -> UniformDelta:
        """Rescale the per-symbol spreads so the default spread becomes `base_spread`.

        Relative volatility between symbols is kept; a base of 0 freezes prices.
        """
        if base_spread < 0:
            raise ValueError("Spread must be non-negative")
        factor = base_spread / DEFAULT_SPREAD
        spreads = {symbol: spread * factor for symbol, spread in SYMBOL_SPREADS.items()}
        return cls(spreads, default_spread=base_spread, seed=seed)
