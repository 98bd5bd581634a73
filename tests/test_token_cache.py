"""TokenCache: proactive refresh inside the skew margin."""

from __future__ import annotations

import pytest

from inboxwatch.application.state.token_cache import TokenCache
from inboxwatch.domain.errors import AuthError


class _Clock:
    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class _Exchange:
    def __init__(self, lifetime: float = 3600.0) -> None:
        self.lifetime = lifetime
        self.calls = 0
        self.error: Exception | None = None

    async def __call__(self) -> tuple[str, float]:
        if self.error is not None:
            raise self.error
        self.calls += 1
        return f"token-{self.calls}", self.lifetime


T0 = 1_700_000_000.0


@pytest.mark.asyncio
async def test_cached_token_reused_well_before_expiry() -> None:
    clock, exchange = _Clock(T0), _Exchange()
    cache = TokenCache(exchange, clock=clock)

    first = await cache.get_token()
    clock.now = T0 + 100
    second = await cache.get_token()

    assert first == second == "token-1"
    assert exchange.calls == 1


@pytest.mark.asyncio
async def test_token_with_more_than_skew_left_is_reused() -> None:
    clock, exchange = _Clock(T0), _Exchange()
    cache = TokenCache(exchange, clock=clock)
    await cache.get_token()

    # 50 s of life left, outside the 30 s margin
    clock.now = T0 + 3550

    assert await cache.get_token() == "token-1"
    assert exchange.calls == 1


@pytest.mark.asyncio
async def test_refreshes_within_skew_margin() -> None:
    clock, exchange = _Clock(T0), _Exchange()
    cache = TokenCache(exchange, clock=clock)
    await cache.get_token()

    clock.now = T0 + 3575
    token = await cache.get_token()

    assert token == "token-2"
    assert exchange.calls == 2
    assert cache.token.expires_at == T0 + 3575 + 3600


@pytest.mark.asyncio
async def test_failed_exchange_keeps_previous_token() -> None:
    clock, exchange = _Clock(T0), _Exchange()
    cache = TokenCache(exchange, clock=clock)
    await cache.get_token()
    previous = cache.token

    clock.now = T0 + 3590
    exchange.error = AuthError("invalid_client")
    with pytest.raises(AuthError):
        await cache.get_token()

    assert cache.token is previous


@pytest.mark.asyncio
async def test_invalidate_forces_exchange() -> None:
    clock, exchange = _Clock(T0), _Exchange()
    cache = TokenCache(exchange, clock=clock)
    await cache.get_token()

    cache.invalidate()

    assert await cache.get_token() == "token-2"
