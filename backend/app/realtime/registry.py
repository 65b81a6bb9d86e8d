"""Per-connection sessions and the identity → connections index."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from threading import Lock

from app.auth import TokenVerifier
from app.market.errors import AuthFailure, SessionNotFound
from app.market.symbols import SUPPORTED_SYMBOLS, normalize_symbol

from .topics import TopicRouter

logger = logging.getLogger(__name__)


@dataclass
class ConnectionSession:
    connection_id: str
    identity_id: str | None = None
    email: str | None = None
    subscribed_symbols: set[str] = field(default_factory=set)

    @property
    def authenticated(self) -> bool:
        return self.identity_id is not None

    def copy(self) -> ConnectionSession:
        return ConnectionSession(
            connection_id=self.connection_id,
            identity_id=self.identity_id,
            email=self.email,
            subscribed_symbols=set(self.subscribed_symbols),
        )


class SessionRegistry:
    """Owns every live ConnectionSession, the identity index and the topics.

    All mutations are compound and run under one lock, so the identity
    index always lists exactly the live authenticated connections of each
    identity and no identity is left with an empty connection set.

    Lifecycle:
        cid = registry.on_connect()
        registry.authenticate(cid, token)      # raises AuthFailure
        registry.subscribe(cid, "GOOG")
        registry.on_disconnect(cid)            # idempotent
    """

    def __init__(
        self,
        verifier: TokenVerifier,
        symbols: tuple[str, ...] = SUPPORTED_SYMBOLS,
        topics: TopicRouter | None = None,
    ) -> None:
        self._verifier = verifier
        self._symbols = tuple(symbols)
        self._topics = topics or TopicRouter()
        self._sessions: dict[str, ConnectionSession] = {}
        self._by_identity: dict[str, set[str]] = {}
        self._lock = Lock()

    @property
    def topics(self) -> TopicRouter:
        return self._topics

    def on_connect(self, connection_id: str | None = None) -> str:
        """Register a new unauthenticated session and return its id."""
        cid = connection_id or uuid.uuid4().hex
        with self._lock:
            if cid in self._sessions:
                raise ValueError(f"Connection already registered: {cid}")
            self._sessions[cid] = ConnectionSession(connection_id=cid)
        return cid

    def authenticate(self, connection_id: str, token: object) -> str:
        """Verify a token and bind the connection to its identity.

        Re-authenticating as a different identity moves the connection to
        the new identity and drops its subscriptions. A failed attempt
        leaves the session exactly as it was.
        """
        claims = self._verifier.verify(token)
        with self._lock:
            session = self._require(connection_id)
            if claims is None:
                raise AuthFailure("Invalid token")

            previous = session.identity_id
            if previous == claims.identity_id:
                session.email = claims.email
                return previous

            if previous is not None:
                self._unindex(previous, connection_id)
                self._topics.leave_all(connection_id, session.subscribed_symbols)
                session.subscribed_symbols.clear()

            session.identity_id = claims.identity_id
            session.email = claims.email
            self._by_identity.setdefault(claims.identity_id, set()).add(connection_id)
            active = len(self._by_identity[claims.identity_id])

        logger.info(
            "Connection %s authenticated as %s (%d active connections)",
            connection_id,
            claims.identity_id,
            active,
        )
        return claims.identity_id

    def subscribe(self, connection_id: str, symbol: str) -> bool:
        """Join a symbol topic. Returns True if newly subscribed.

        Unauthenticated sessions are ignored (returns False) rather than
        rejected. Raises UnsupportedSymbol for symbols off the allowlist.
        """
        symbol = normalize_symbol(symbol, self._symbols)
        with self._lock:
            session = self._require(connection_id)
            if not session.authenticated or symbol in session.subscribed_symbols:
                return False
            session.subscribed_symbols.add(symbol)
            self._topics.join(symbol, connection_id)
        logger.debug("Connection %s subscribed to %s", connection_id, symbol)
        return True

    def unsubscribe(self, connection_id: str, symbol: str) -> bool:
        symbol = normalize_symbol(symbol, self._symbols)
        with self._lock:
            session = self._require(connection_id)
            if symbol not in session.subscribed_symbols:
                return False
            session.subscribed_symbols.discard(symbol)
            self._topics.leave(symbol, connection_id)
        logger.debug("Connection %s unsubscribed from %s", connection_id, symbol)
        return True

    def subscribe_identity(self, identity_id: str, symbol: str) -> int:
        """Subscribe every live connection of an identity. Returns how many joined."""
        symbol = normalize_symbol(symbol, self._symbols)
        joined = 0
        with self._lock:
            for cid in self._by_identity.get(identity_id, ()):
                session = self._sessions[cid]
                if symbol not in session.subscribed_symbols:
                    session.subscribed_symbols.add(symbol)
                    self._topics.join(symbol, cid)
                    joined += 1
        return joined

    def unsubscribe_identity(self, identity_id: str, symbol: str) -> int:
        symbol = normalize_symbol(symbol, self._symbols)
        left = 0
        with self._lock:
            for cid in self._by_identity.get(identity_id, ()):
                session = self._sessions[cid]
                if symbol in session.subscribed_symbols:
                    session.subscribed_symbols.discard(symbol)
                    self._topics.leave(symbol, cid)
                    left += 1
        return left

    def on_disconnect(self, connection_id: str) -> ConnectionSession | None:
        """Forget a connection everywhere. Unknown ids are a no-op."""
        with self._lock:
            session = self._sessions.pop(connection_id, None)
            if session is None:
                return None
            if session.identity_id is not None:
                self._unindex(session.identity_id, connection_id)
                remaining = len(self._by_identity.get(session.identity_id, ()))
            self._topics.leave_all(connection_id, session.subscribed_symbols)

        if session.identity_id is not None:
            logger.info(
                "Connection %s of %s closed (%d active connections)",
                connection_id,
                session.identity_id,
                remaining,
            )
        return session

    # --- Reads ---

    def get(self, connection_id: str) -> ConnectionSession | None:
        """Copy of a session, or None if unknown."""
        with self._lock:
            session = self._sessions.get(connection_id)
            return session.copy() if session else None

    def is_authenticated(self, connection_id: str) -> bool:
        with self._lock:
            session = self._sessions.get(connection_id)
            return session is not None and session.authenticated

    def connections_for(self, identity_id: str) -> frozenset[str]:
        with self._lock:
            return frozenset(self._by_identity.get(identity_id, ()))

    def identities(self) -> dict[str, frozenset[str]]:
        with self._lock:
            return {identity: frozenset(cids) for identity, cids in self._by_identity.items()}

    def connection_ids(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, connection_id: str) -> bool:
        with self._lock:
            return connection_id in self._sessions

    # --- Internal ---

    def _require(self, connection_id: str) -> ConnectionSession:
        session = self._sessions.get(connection_id)
        if session is None:
            raise SessionNotFound(connection_id)
        return session

    def _unindex(self, identity_id: str, connection_id: str) -> None:
        cids = self._by_identity.get(identity_id)
        if cids is None:
            return
        cids.discard(connection_id)
        if not cids:
            del self._by_identity[identity_id]
