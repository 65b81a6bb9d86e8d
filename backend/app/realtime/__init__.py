"""Realtime connection subsystem.

Public API:
    SessionRegistry     - Sessions, identity index and topics behind one lock
    TopicRouter         - Symbol → subscribed connection ids
    ConnectionManager   - Websocket handles and price fan-out
    create_ws_router    - FastAPI router factory for the /ws endpoint
"""

from .manager import ConnectionManager
from .registry import ConnectionSession, SessionRegistry
from .topics import TopicRouter
from .ws import create_ws_router

__all__ = [
    "ConnectionManager",
    "ConnectionSession",
    "SessionRegistry",
    "TopicRouter",
    "create_ws_router",
]
