"""Live websocket handles and fan-out."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import WebSocket

from .registry import SessionRegistry

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Pairs each registered session with its websocket.

    Price updates go to every connected socket, authenticated or not.
    Topic membership is tracked by the registry but does not filter the
    broadcast payload: every client receives every symbol.
    """

    def __init__(self, registry: SessionRegistry) -> None:
        self.registry = registry
        self._sockets: dict[str, WebSocket] = {}

    async def connect(self, websocket: WebSocket) -> str:
        await websocket.accept()
        cid = self.registry.on_connect()
        self._sockets[cid] = websocket
        logger.info("Client connected: %s (total %d)", cid, len(self._sockets))
        return cid

    def disconnect(self, connection_id: str) -> None:
        """Drop a connection from the socket table and the registry. Idempotent."""
        known = self._sockets.pop(connection_id, None) is not None
        self.registry.on_disconnect(connection_id)
        if known:
            logger.info("Client disconnected: %s (total %d)", connection_id, len(self._sockets))

    async def send(self, connection_id: str, event: str, data: Any) -> bool:
        """Send one event to one connection. Returns False if it could not be delivered."""
        websocket = self._sockets.get(connection_id)
        if websocket is None:
            return False
        try:
            await websocket.send_json({"event": event, "data": data})
            return True
        except Exception as e:
            logger.warning("Send to %s failed: %s", connection_id, e)
            self.disconnect(connection_id)
            return False

    async def broadcast(self, event: str, data: Any) -> int:
        """Send an event to every connection. Returns how many received it.

        Fan-out order is unspecified. Connections whose send fails are
        disconnected; the rest still receive the message.
        """
        targets = list(self._sockets.items())
        if not targets:
            return 0
        message = {"event": event, "data": data}
        results = await asyncio.gather(
            *(websocket.send_json(message) for _, websocket in targets),
            return_exceptions=True,
        )

        delivered = 0
        for (cid, _), result in zip(targets, results):
            if isinstance(result, BaseException):
                logger.warning("Broadcast to %s failed: %s", cid, result)
                self.disconnect(cid)
            else:
                delivered += 1
        logger.debug("Broadcast %s to %d/%d connections", event, delivered, len(targets))
        return delivered

    async def broadcast_prices(self, message: dict) -> int:
        return await self.broadcast("price-update", message)

    def __len__(self) -> int:
        return len(self._sockets)

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._sockets
