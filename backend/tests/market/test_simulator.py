"""Tests for the random-walk delta strategies."""

import pytest

from app.market.simulator import UniformDelta
from app.market.symbols import DEFAULT_SPREAD, SYMBOL_SPREADS


class TestUniformDelta:
    """Unit tests for UniformDelta."""

    def test_deltas_stay_within_spread(self):
        """Test that every draw lies in [-spread, +spread]."""
        delta = UniformDelta(spreads={"GOOG": 5.0})
        for _ in range(10_000):
            assert -5.0 <= delta("GOOG") <= 5.0

    def test_deltas_take_both_signs(self):
        """Test that the walk moves both up and down."""
        delta = UniformDelta(seed=7)
        draws = [delta("GOOG") for _ in range(1000)]
        assert min(draws) < 0 < max(draws)

    def test_per_symbol_spread(self):
        """Test that configured symbols use their own spread."""
        delta = UniformDelta()
        assert delta.spread("TSLA") == SYMBOL_SPREADS["TSLA"]

    def test_unknown_symbol_uses_default(self):
        """Test that unlisted symbols fall back to the default spread."""
        delta = UniformDelta(default_spread=2.5)
        assert delta.spread("ZZZZ") == 2.5
        assert UniformDelta().spread("ZZZZ") == DEFAULT_SPREAD

    def test_zero_spread_is_flat(self):
        """Test that a zero spread never moves the price."""
        delta = UniformDelta(spreads={}, default_spread=0.0)
        assert delta("GOOG") == 0.0

    def test_seed_is_reproducible(self):
        """Test that the same seed yields the same sequence."""
        a = UniformDelta(seed=123)
        b = UniformDelta(seed=123)
        assert [a("GOOG") for _ in range(5)] == [b("GOOG") for _ in range(5)]

    def test_returns_python_float(self):
        """Test that draws are plain floats (JSON serializable)."""
        assert type(UniformDelta()("GOOG")) is float

    def test_negative_spread_rejected(self):
        """Test that a negative default spread is refused."""
        with pytest.raises(ValueError):
            UniformDelta(default_spread=-1.0)

    def test_scaled_keeps_relative_volatility(self):
        """Test that a base spread rescales every per-symbol spread."""
        delta = UniformDelta.scaled(10.0)
        assert delta.spread("GOOG") == 10.0
        assert delta.spread("TSLA") == SYMBOL_SPREADS["TSLA"] * 2
        assert delta.spread("ZZZZ") == 10.0

    def test_scaled_zero_freezes_every_symbol(self):
        """Test that a zero base spread yields zero deltas for the whole allowlist."""
        delta = UniformDelta.scaled(0.0)
        assert all(delta(symbol) == 0.0 for symbol in SYMBOL_SPREADS for _ in range(5))

    def test_scaled_rejects_negative(self):
        """Test that a negative base spread is refused."""
        with pytest.raises(ValueError):
            UniformDelta.scaled(-1.0)
