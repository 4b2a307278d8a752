"""Redis-backed failed-login counters for brute-force protection."""

from __future__ import annotations

from functools import lru_cache
from typing import Protocol, runtime_checkable

from redis.asyncio import Redis

from core import settings


@runtime_checkable
class SupportsCounterClient(Protocol):
    async def incr(self, key: str) -> int: ...

    async def expire(self, key: str, ttl: int) -> bool: ...

    async def get(self, key: str) -> bytes | str | None: ...

    async def delete(self, *keys: str) -> int: ...


def _as_int(raw_value: bytes | str | None) -> int:
    if raw_value is None:
        return 0
    if isinstance(raw_value, bytes):
        raw_value = raw_value.decode("ascii")
    try:
        return int(raw_value)
    except ValueError:
        return 0


class BruteForceCounter:
    """Per scope+identifier failure counter whose window restarts on each failure.

    INCR is atomic on the server, so concurrent requests never lose a failure;
    the key expiring is what ends a lockout.
    """

    def __init__(
        self,
        redis_client: SupportsCounterClient,
        prefix: str = "brute-force",
    ) -> None:
        self.redis = redis_client
        self.prefix = prefix

    def key_for(self, scope: str, identifier: str) -> str:
        return f"{self.prefix}:{scope}:{identifier.strip().lower()}"

    async def failures(self, scope: str, identifier: str) -> int:
        return _as_int(await self.redis.get(self.key_for(scope, identifier)))

    async def register_failure(
        self,
        scope: str,
        identifier: str,
        *,
        window_seconds: int,
    ) -> int:
        """Count one failed attempt and return the failures inside the window."""
        redis_key = self.key_for(scope, identifier)
        count = await self.redis.incr(redis_key)
        if window_seconds > 0:
            await self.redis.expire(redis_key, window_seconds)
        return count

    async def reset(self, scope: str, identifier: str) -> None:
        await self.redis.delete(self.key_for(scope, identifier))


@lru_cache
def get_redis_client() -> SupportsCounterClient:
    """Return a cached async Redis client."""
    return Redis.from_url(settings.redis_url, decode_responses=False)


_cached_counter: BruteForceCounter | None = None


def get_brute_force_counter() -> BruteForceCounter:
    """Singleton accessor for the shared failed-login counter."""
    global _cached_counter
    if _cached_counter is None:
        _cached_counter = BruteForceCounter(redis_client=get_redis_client())
    return _cached_counter


def set_brute_force_counter(counter: BruteForceCounter | None) -> None:
    """Override the cached counter (primarily for tests)."""
    global _cached_counter
    _cached_counter = counter
