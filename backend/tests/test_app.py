"""Tests for application wiring."""

from app.main import create_app
from app.market.symbols import SEED_PRICES, SUPPORTED_SYMBOLS


class TestCreateApp:
    """Settings flow into the collaborators built by create_app."""

    def test_zero_delta_spread_freezes_prices(self, settings):
        """Test that DELTA_SPREAD=0 leaves every price at its seed."""
        app = create_app(settings.model_copy(update={"DELTA_SPREAD": 0.0}))
        scheduler = app.state.scheduler
        scheduler.seed()
        for _ in range(5):
            result = scheduler.tick()
        for symbol in SUPPORTED_SYMBOLS:
            assert result.prices[symbol].current_price == SEED_PRICES[symbol]
            assert result.prices[symbol].change == 0.0

    def test_price_floor_setting(self, settings):
        """Test that PRICE_FLOOR reaches the price store."""
        app = create_app(settings.model_copy(update={"PRICE_FLOOR": 42.0}))
        store = app.state.price_store
        store.seed("GOOG", 50.0)
        assert store.apply_tick("GOOG", -100.0).current_price == 42.0
