"""Symbol allowlist, seed prices and per-symbol walk parameters."""

from __future__ import annotations

import random

from .errors import UnsupportedSymbol

# Fixed allowlist. Order is the order symbols are advanced on every tick.
SUPPORTED_SYMBOLS: tuple[str, ...] = ("GOOG", "TSLA", "AMZN", "META", "NVDA")

SYMBOL_NAMES: dict[str, str] = {
    "GOOG": "Alphabet Inc.",
    "TSLA": "Tesla, Inc.",
    "AMZN": "Amazon.com, Inc.",
    "META": "Meta Platforms, Inc.",
    "NVDA": "NVIDIA Corporation",
}

# Starting prices used when the Price Store is seeded
SEED_PRICES: dict[str, float] = {
    "GOOG": 2500.00,
    "TSLA": 250.00,
    "AMZN": 185.00,
    "META": 500.00,
    "NVDA": 800.00,
}

# Half-width of the uniform delta range drawn each tick
# A flat 5.0 reproduces the classic +/-5 random walk
DEFAULT_SPREAD = 5.0
SYMBOL_SPREADS: dict[str, float] = {
    "GOOG": 5.0,
    "TSLA": 8.0,  # High volatility
    "AMZN": 5.0,
    "META": 5.0,
    "NVDA": 6.0,
}

# Lowest price a tick may produce
DEFAULT_PRICE_FLOOR = 10.0


def seed_price(symbol: str) -> float:
    """Seed price for a symbol; unknown symbols get a random start in [50, 550)."""
    if symbol in SEED_PRICES:
        return SEED_PRICES[symbol]
    return round(random.uniform(50.0, 550.0), 2)


def normalize_symbol(symbol: str, allowed: tuple[str, ...] = SUPPORTED_SYMBOLS) -> str:
    """Upper-case and strip a symbol, raising UnsupportedSymbol if not allowed."""
    normalized = str(symbol).upper().strip()
    if normalized not in allowed:
        raise UnsupportedSymbol(normalized)
    return normalized


def describe_symbols(symbols: tuple[str, ...] = SUPPORTED_SYMBOLS) -> list[dict[str, str]]:
    return [{"symbol": s, "name": SYMBOL_NAMES.get(s, s)} for s in symbols]
