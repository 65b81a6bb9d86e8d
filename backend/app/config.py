"""Environment-driven settings."""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from pydantic import BaseModel, Field


class Settings(BaseModel):
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    TICK_INTERVAL: float = Field(default=1.0, gt=0)
    SWEEP_INTERVAL: float = Field(default=3600.0, gt=0)
    RETENTION_HOURS: float = Field(default=24.0, gt=0)
    PRICE_FLOOR: float = Field(default=10.0, gt=0)
    DELTA_SPREAD: float = Field(default=5.0, ge=0)
    HISTORY_LIMIT: int = Field(default=500, gt=0)
    PRICE_DB_PATH: str = ""
    CLIENT_URL: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    @property
    def retention_seconds(self) -> float:
        return self.RETENTION_HOURS * 3600

    @classmethod
    def from_env(cls) -> "Settings":
        # Unset or blank variables fall back to the model defaults
        raw = {name: os.getenv(name, "").strip() for name in cls.model_fields}
        return cls.model_validate({k: v for k, v in raw.items() if v})


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
