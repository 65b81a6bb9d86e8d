"""FastAPI application: wiring, lifecycle and error mapping."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import create_api_router
from app.auth import JwtTokenVerifier, TokenVerifier
from app.config import Settings, configure_logging, get_settings
from app.market import (
    AuthFailure,
    HistoryLedger,
    PersistenceFailure,
    PriceStorage,
    PriceStore,
    RetentionSweeper,
    TickScheduler,
    UniformDelta,
    UnsupportedSymbol,
    create_price_storage,
)
from app.market.simulator import DeltaStrategy
from app.market.symbols import SUPPORTED_SYMBOLS
from app.realtime import ConnectionManager, SessionRegistry, create_ws_router

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    storage: PriceStorage | None = None,
    verifier: TokenVerifier | None = None,
    delta: DeltaStrategy | None = None,
) -> FastAPI:
    """Build the app. Collaborators default to what the settings select."""
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    price_store = PriceStore(floor=settings.PRICE_FLOOR)
    ledger = HistoryLedger()
    storage = storage or create_price_storage(settings)
    verifier = verifier or JwtTokenVerifier(settings.JWT_SECRET, algorithms=(settings.JWT_ALGORITHM,))
    registry = SessionRegistry(verifier, symbols=SUPPORTED_SYMBOLS)
    manager = ConnectionManager(registry)
    scheduler = TickScheduler(
        price_store,
        ledger,
        storage,
        symbols=SUPPORTED_SYMBOLS,
        delta=delta or UniformDelta.scaled(settings.DELTA_SPREAD),
        broadcast=manager.broadcast_prices,
        interval=settings.TICK_INTERVAL,
    )
    sweeper = RetentionSweeper(
        ledger,
        storage,
        retention=settings.retention_seconds,
        interval=settings.SWEEP_INTERVAL,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await scheduler.start()
        await sweeper.start()
        try:
            yield
        finally:
            await sweeper.stop()
            await scheduler.stop()
            storage.close()

    app = FastAPI(title="PricePulse", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.CLIENT_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.price_store = price_store
    app.state.ledger = ledger
    app.state.storage = storage
    app.state.registry = registry
    app.state.manager = manager
    app.state.scheduler = scheduler
    app.state.sweeper = sweeper

    app.include_router(
        create_api_router(
            price_store=price_store,
            ledger=ledger,
            storage=storage,
            manager=manager,
            verifier=verifier,
            symbols=SUPPORTED_SYMBOLS,
            history_limit=settings.HISTORY_LIMIT,
        )
    )
    app.include_router(create_ws_router(manager, price_store))

    @app.exception_handler(AuthFailure)
    async def auth_failure_handler(request: Request, exc: AuthFailure) -> JSONResponse:
        return JSONResponse(status_code=401, content={"error": exc.reason})

    @app.exception_handler(UnsupportedSymbol)
    async def unsupported_symbol_handler(request: Request, exc: UnsupportedSymbol) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": "Stock not supported", "symbol": exc.symbol})

    @app.exception_handler(PersistenceFailure)
    async def persistence_failure_handler(request: Request, exc: PersistenceFailure) -> JSONResponse:
        logger.error("Storage unavailable for %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=503, content={"error": "Storage unavailable"})

    return app


app = create_app()
