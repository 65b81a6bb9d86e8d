"""Tests for environment settings."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from app.config import Settings


class TestSettings:
    """Tests for Settings.from_env."""

    def test_defaults(self):
        """Test the defaults when nothing is set."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings.from_env()
        assert settings.TICK_INTERVAL == 1.0
        assert settings.SWEEP_INTERVAL == 3600.0
        assert settings.retention_seconds == 24 * 3600
        assert settings.PRICE_FLOOR == 10.0
        assert settings.HISTORY_LIMIT == 500
        assert settings.PRICE_DB_PATH == ""

    def test_reads_environment(self):
        """Test that variables are parsed into typed fields."""
        env = {"TICK_INTERVAL": "0.5", "HISTORY_LIMIT": "100", "PRICE_DB_PATH": "/tmp/p.duckdb"}
        with patch.dict(os.environ, env, clear=True):
            settings = Settings.from_env()
        assert settings.TICK_INTERVAL == 0.5
        assert settings.HISTORY_LIMIT == 100
        assert settings.PRICE_DB_PATH == "/tmp/p.duckdb"

    def test_blank_values_use_defaults(self):
        """Test that blank variables fall back to defaults."""
        with patch.dict(os.environ, {"TICK_INTERVAL": "  "}, clear=True):
            assert Settings.from_env().TICK_INTERVAL == 1.0

    def test_invalid_values_rejected(self):
        """Test that a non-positive interval fails validation."""
        with patch.dict(os.environ, {"TICK_INTERVAL": "0"}, clear=True):
            with pytest.raises(ValidationError):
                Settings.from_env()
