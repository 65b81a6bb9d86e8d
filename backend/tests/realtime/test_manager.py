"""Tests for ConnectionManager."""

import pytest

from app.realtime.manager import ConnectionManager
from app.realtime.registry import SessionRegistry


class FakeWebSocket:
    """Records sent frames; optionally fails every send."""

    def __init__(self, fail: bool = False) -> None:
        self.accepted = False
        self.sent: list[dict] = []
        self.fail = fail

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, data: dict) -> None:
        if self.fail:
            raise RuntimeError("connection reset")
        self.sent.append(data)


@pytest.fixture
def manager(verifier):
    return ConnectionManager(SessionRegistry(verifier))


@pytest.mark.asyncio
class TestConnectionManager:
    """Unit tests for the ConnectionManager."""

    async def test_connect_accepts_and_registers(self, manager):
        """Test that connect() accepts the socket and creates a session."""
        ws = FakeWebSocket()
        cid = await manager.connect(ws)
        assert ws.accepted
        assert cid in manager
        assert cid in manager.registry
        assert len(manager) == 1

    async def test_broadcast_reaches_everyone(self, manager, make_token):
        """Test that price updates go to authenticated and anonymous connections alike."""
        anon, authed = FakeWebSocket(), FakeWebSocket()
        await manager.connect(anon)
        cid = await manager.connect(authed)
        manager.registry.authenticate(cid, make_token("U1"))

        delivered = await manager.broadcast_prices({"prices": {}, "timestamp": 1.0})

        assert delivered == 2
        for ws in (anon, authed):
            assert ws.sent == [{"event": "price-update", "data": {"prices": {}, "timestamp": 1.0}}]

    async def test_broadcast_ignores_topic_membership(self, manager, make_token):
        """Test that a connection subscribed to one symbol still receives every symbol."""
        ws = FakeWebSocket()
        cid = await manager.connect(ws)
        manager.registry.authenticate(cid, make_token("U1"))
        manager.registry.subscribe(cid, "GOOG")

        payload = {"prices": {"GOOG": {}, "TSLA": {}}, "timestamp": 1.0}
        await manager.broadcast_prices(payload)

        assert set(ws.sent[0]["data"]["prices"]) == {"GOOG", "TSLA"}

    async def test_failed_send_disconnects_only_that_client(self, manager, make_token):
        """Test that a dead socket is dropped and the others still receive."""
        good, bad = FakeWebSocket(), FakeWebSocket(fail=True)
        await manager.connect(good)
        bad_cid = await manager.connect(bad)
        manager.registry.authenticate(bad_cid, make_token("U1"))

        delivered = await manager.broadcast("price-update", {})

        assert delivered == 1
        assert len(good.sent) == 1
        assert bad_cid not in manager
        assert bad_cid not in manager.registry
        assert manager.registry.identities() == {}

    async def test_broadcast_with_no_connections(self, manager):
        """Test that broadcasting to nobody is a no-op."""
        assert await manager.broadcast("price-update", {}) == 0

    async def test_send_to_unknown_connection(self, manager):
        """Test that sending to an unknown id returns False."""
        assert await manager.send("ghost", "error", {}) is False

    async def test_disconnect_is_idempotent(self, manager):
        """Test that disconnecting twice does not raise."""
        cid = await manager.connect(FakeWebSocket())
        manager.disconnect(cid)
        manager.disconnect(cid)
        assert len(manager) == 0
