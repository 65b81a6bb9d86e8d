"""REST endpoints: symbols, prices, history and subscriptions."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Literal

from fastapi import APIRouter, Depends, Header, Query

from app.auth import TokenClaims, TokenVerifier, bearer_token
from app.market.errors import AuthFailure, PersistenceFailure
from app.market.history import DEFAULT_QUERY_LIMIT, HistoryLedger
from app.market.interface import PriceStorage
from app.market.models import price_update_message
from app.market.store import PriceStore
from app.market.symbols import describe_symbols, normalize_symbol
from app.realtime.manager import ConnectionManager

logger = logging.getLogger(__name__)

HistoryRange = Literal["day", "month", "year"]

RANGE_SECONDS: dict[str, int] = {
    "day": 24 * 3600,
    "month": 30 * 24 * 3600,
    "year": 365 * 24 * 3600,
}


def create_api_router(
    *,
    price_store: PriceStore,
    ledger: HistoryLedger,
    storage: PriceStorage,
    manager: ConnectionManager,
    verifier: TokenVerifier,
    symbols: tuple[str, ...],
    history_limit: int = DEFAULT_QUERY_LIMIT,
) -> APIRouter:
    """Create the /api router. Domain errors are mapped to status codes by the app."""
    router = APIRouter(prefix="/api", tags=["prices"])

    def current_identity(authorization: str | None = Header(default=None)) -> TokenClaims:
        claims = verifier.verify(bearer_token(authorization))
        if claims is None:
            raise AuthFailure("Unauthorized")
        return claims

    @router.get("/health")
    async def health() -> dict:
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "storage": "durable" if storage.durable else "memory",
            "supported_symbols": list(symbols),
            "connections": len(manager),
        }

    @router.get("/symbols")
    async def list_symbols() -> dict:
        return {"symbols": list(symbols), "metadata": describe_symbols(symbols)}

    @router.get("/prices")
    async def current_prices() -> dict:
        return price_update_message(price_store.snapshot(), time.time())

    @router.get("/history/{symbol}")
    async def price_history(
        symbol: str,
        range_: HistoryRange = Query(default="day", alias="range"),
    ) -> dict:
        symbol = normalize_symbol(symbol, symbols)
        since = time.time() - RANGE_SECONDS[range_]

        samples = None
        if storage.durable:
            try:
                samples = await asyncio.to_thread(storage.query_samples, symbol, since, history_limit)
            except PersistenceFailure as e:
                logger.warning("History query for %s fell back to memory: %s", symbol, e)
        if samples is None:
            samples = ledger.query(symbol, since, history_limit)

        return {
            "symbol": symbol,
            "range": range_,
            "samples": [s.to_dict() for s in samples],
        }

    @router.get("/subscriptions")
    async def list_subscriptions(claims: TokenClaims = Depends(current_identity)) -> dict:
        subscribed = await asyncio.to_thread(storage.get_subscriptions, claims.identity_id)
        return {"subscribed_symbols": subscribed}

    @router.post("/subscriptions/{symbol}")
    async def subscribe(symbol: str, claims: TokenClaims = Depends(current_identity)) -> dict:
        symbol = normalize_symbol(symbol, symbols)
        subscribed = await asyncio.to_thread(storage.add_subscription, claims.identity_id, symbol)
        joined = manager.registry.subscribe_identity(claims.identity_id, symbol)
        logger.info("%s subscribed to %s (%d live connections joined)", claims.identity_id, symbol, joined)
        return {"message": "Subscribed", "subscribed_symbols": subscribed}

    @router.delete("/subscriptions/{symbol}")
    async def unsubscribe(symbol: str, claims: TokenClaims = Depends(current_identity)) -> dict:
        symbol = normalize_symbol(symbol, symbols)
        subscribed = await asyncio.to_thread(storage.remove_subscription, claims.identity_id, symbol)
        manager.registry.unsubscribe_identity(claims.identity_id, symbol)
        logger.info("%s unsubscribed from %s", claims.identity_id, symbol)
        return {"message": "Unsubscribed", "subscribed_symbols": subscribed}

    return router
