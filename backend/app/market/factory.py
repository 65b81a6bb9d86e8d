"""Factory for creating price storage backends."""

from __future__ import annotations

import logging

from app.config import Settings

from .interface import PriceStorage

logger = logging.getLogger(__name__)


def create_price_storage(settings: Settings) -> PriceStorage:
    """Create the storage backend selected by PRICE_DB_PATH.

    - PRICE_DB_PATH set and non-empty → DuckDBPriceStorage (durable)
    - Otherwise → MemoryPriceStorage (prices and history live only in memory)
    """
    db_path = settings.PRICE_DB_PATH.strip()

    if db_path:
        from .storage import DuckDBPriceStorage

        logger.info("Price storage: DuckDB at %s", db_path)
        return DuckDBPriceStorage(db_path=db_path)
    else:
        from .storage import MemoryPriceStorage

        logger.info("Price storage: in-memory (not durable)")
        return MemoryPriceStorage()
