"""Cached bearer token with proactive refresh before expiry."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from loguru import logger

DEFAULT_SKEW_SECONDS = 30.0

# Returns (access token, lifetime in seconds)
TokenExchange = Callable[[], Awaitable[tuple[str, float]]]


@dataclass(frozen=True)
class Token:
    value: str
    expires_at: float

    def remaining(self, now: float) -> float:
        return self.expires_at - now


class TokenCache:
    """Hands out a token with at least ``skew_seconds`` of life left.

    A failed exchange propagates and leaves the previous token in place, so
    the next call simply retries the exchange. Callers run from a single
    guarded scan, so no locking is needed around the exchange.
    """

    def __init__(
        self,
        exchange: TokenExchange,
        skew_seconds: float = DEFAULT_SKEW_SECONDS,
        clock: Callable[[], float] = time.time,
        name: str = "token",
    ) -> None:
        self._exchange = exchange
        self._skew = skew_seconds
        self._clock = clock
        self._name = name
        self._token: Optional[Token] = None
        self.exchanges = 0

    @property
    def token(self) -> Optional[Token]:
        return self._token

    def is_fresh(self, now: Optional[float] = None) -> bool:
        if self._token is None:
            return False
        now = self._clock() if now is None else now
        return now < self._token.expires_at - self._skew

    async def get_token(self) -> str:
        if self.is_fresh():
            return self._token.value

        value, expires_in = await self._exchange()
        self.exchanges += 1
        self._token = Token(value=value, expires_at=self._clock() + expires_in)
        logger.debug(f"[{self._name}] token refreshed, valid for {int(expires_in)}s")
        return value

    def invalidate(self) -> None:
        """Forget the cached token, e.g. after the backend rejected it."""
        self._token = None
