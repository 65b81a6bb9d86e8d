"""Symbol topics: which connections follow which symbol."""

from __future__ import annotations

from collections.abc import Iterable


class TopicRouter:
    """Maps a symbol to the set of connection ids subscribed to it.

    Topics are created on first join and never removed; the symbol set is
    small and fixed. Not synchronized on its own: SessionRegistry owns the
    router and mutates it under its lock.
    """

    def __init__(self) -> None:
        self._members: dict[str, set[str]] = {}

    def join(self, symbol: str, connection_id: str) -> bool:
        """Add a connection to a topic. Returns False if it was already a member."""
        members = self._members.setdefault(symbol, set())
        if connection_id in members:
            return False
        members.add(connection_id)
        return True

    def leave(self, symbol: str, connection_id: str) -> bool:
        members = self._members.get(symbol)
        if not members or connection_id not in members:
            return False
        members.discard(connection_id)
        return True

    def leave_all(self, connection_id: str, symbols: Iterable[str] | None = None) -> None:
        """Remove a connection from the given topics, or from every topic."""
        for symbol in self._members if symbols is None else symbols:
            self.leave(symbol, connection_id)

    def members(self, symbol: str) -> frozenset[str]:
        return frozenset(self._members.get(symbol, ()))

    def topics(self) -> list[str]:
        return list(self._members)

    def topics_for(self, connection_id: str) -> set[str]:
        return {s for s, members in self._members.items() if connection_id in members}
