"""Error taxonomy for the price distribution service."""

from __future__ import annotations


class PriceServiceError(Exception):
    """Base class for all service errors."""


class AuthFailure(PriceServiceError):
    """Token was missing, malformed, expired or signed with the wrong key.

    The connection stays open; the caller decides what to do next.
    """

    def __init__(self, reason: str = "Invalid token") -> None:
        super().__init__(reason)
        self.reason = reason


class UnsupportedSymbol(PriceServiceError):
    """A request referenced a symbol outside the allowlist."""

    def __init__(self, symbol: str) -> None:
        super().__init__(f"Symbol not supported: {symbol}")
        self.symbol = symbol


class PersistenceFailure(PriceServiceError):
    """A durable-storage call failed. In-memory state stays authoritative."""


class TransientScheduleSkip(PriceServiceError):
    """A single symbol could not be advanced on this tick."""

    def __init__(self, symbol: str, cause: BaseException) -> None:
        super().__init__(f"Tick skipped for {symbol}: {cause}")
        self.symbol = symbol
        self.cause = cause


class SessionNotFound(PriceServiceError, KeyError):
    """No live session exists for the given connection id."""

    def __init__(self, connection_id: str) -> None:
        super().__init__(connection_id)
        self.connection_id = connection_id

    def __str__(self) -> str:
        return f"Unknown connection: {self.connection_id}"
