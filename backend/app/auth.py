"""Session token verification."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import jwt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenClaims:
    identity_id: str
    email: str | None = None
    claims: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


class TokenVerifier(ABC):
    """Stateless, local token check.

    verify() must never raise: malformed, expired or wrongly signed tokens
    (and non-string input) all return None.
    """

    @abstractmethod
    def verify(self, token: object) -> TokenClaims | None:
        """Return the token's claims, or None if the token is not valid."""


class JwtTokenVerifier(TokenVerifier):
    """Verifies HMAC-signed JWTs issued by the account service.

    The identity is read from the `userId` claim, falling back to `sub`.
    """

    def __init__(
        self,
        secret: str,
        algorithms: Sequence[str] = ("HS256",),
        identity_claim: str = "userId",
    ) -> None:
        self._secret = secret
        self._algorithms = list(algorithms)
        self._identity_claim = identity_claim

    def verify(self, token: object) -> TokenClaims | None:
        if not isinstance(token, str) or not token.strip():
            return None
        try:
            payload = jwt.decode(token.strip(), self._secret, algorithms=self._algorithms)
        except jwt.PyJWTError as e:
            logger.debug("Token rejected: %s", e)
            return None

        identity = payload.get(self._identity_claim) or payload.get("sub")
        if identity is None:
            logger.debug("Token rejected: no %s claim", self._identity_claim)
            return None
        return TokenClaims(identity_id=str(identity), email=payload.get("email"), claims=payload)


def bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an `Authorization: Bearer <token>` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
