"""Websocket endpoint for live price updates."""

from __future__ import annotations

import json
import logging
import time
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.market.errors import AuthFailure, SessionNotFound, UnsupportedSymbol
from app.market.models import price_update_message
from app.market.store import PriceStore

from .manager import ConnectionManager

logger = logging.getLogger(__name__)


def create_ws_router(manager: ConnectionManager, price_store: PriceStore) -> APIRouter:
    """Create the websocket router bound to a connection manager and price store."""
    router = APIRouter(tags=["realtime"])

    @router.websocket("/ws")
    async def price_socket(websocket: WebSocket) -> None:
        """Bidirectional price channel.

        Frames are JSON objects: {"event": "<name>", "data": <payload>}.

        Client → server: authenticate(token), subscribe(symbol), unsubscribe(symbol)
        Server → client: authenticated, auth-error, subscribed, unsubscribed,
                         error, price-update (on connect, then every tick)
        """
        cid = await manager.connect(websocket)
        try:
            await manager.send(
                cid, "price-update", price_update_message(price_store.snapshot(), time.time())
            )
            while True:
                raw = await websocket.receive_text()
                await _handle_frame(manager, cid, raw)
        except WebSocketDisconnect:
            pass
        except SessionNotFound:
            # Dropped by a failed broadcast while this frame was in flight
            logger.debug("Connection %s closed mid-frame", cid)
        finally:
            manager.disconnect(cid)

    return router


async def _handle_frame(manager: ConnectionManager, cid: str, raw: str) -> None:
    try:
        frame = json.loads(raw)
    except ValueError:
        frame = None
    if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
        await manager.send(cid, "error", {"reason": "Malformed frame"})
        return

    event: str = frame["event"]
    data: Any = frame.get("data")
    registry = manager.registry

    if event == "authenticate":
        try:
            identity_id = registry.authenticate(cid, data)
        except AuthFailure as e:
            logger.info("Authentication failed for connection %s", cid)
            await manager.send(cid, "auth-error", {"reason": e.reason})
        else:
            await manager.send(cid, "authenticated", {"identity_id": identity_id, "message": "Connected"})

    elif event in ("subscribe", "unsubscribe"):
        # Unauthenticated joins are ignored without a reply
        if not registry.is_authenticated(cid):
            return
        try:
            if event == "subscribe":
                registry.subscribe(cid, data)
            else:
                registry.unsubscribe(cid, data)
        except UnsupportedSymbol as e:
            await manager.send(cid, "error", {"reason": str(e), "symbol": e.symbol})
        else:
            await manager.send(cid, f"{event}d", {"symbol": str(data).upper().strip()})

    else:
        await manager.send(cid, "error", {"reason": f"Unknown event: {event}"})
