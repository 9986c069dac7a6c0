"""Cache adapter over Redis for code → long URL lookups.

Keys are bare short codes and values are the long URL. Every write sets the
configured expiry. A missing key is returned as ``None``; transport failures
are raised as CacheError so callers can tell the two apart.
"""

import asyncio

import redis.asyncio as redis

from app.config import Settings
from app.exceptions import CacheError

__all__ = ["URLCache", "build_redis"]

_CACHE_FAILURES = (redis.RedisError, OSError, asyncio.TimeoutError)


def build_redis(settings: Settings) -> redis.Redis:
    return redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=settings.REDIS_CONNECT_TIMEOUT_SECONDS,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
    )


class URLCache:
    """Ephemeral, TTL-bounded view of the store."""

    def __init__(self, client: redis.Redis, ttl_seconds: int, ping_timeout: float = 5.0) -> None:
        self._client = client
        self._ttl_seconds = ttl_seconds
        self._ping_timeout = ping_timeout

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    async def get(self, code: str) -> str | None:
        try:
            return await self._client.get(code)
        except _CACHE_FAILURES as exc:
            raise CacheError(f"Cache get failed for '{code}': {exc}") from exc

    async def set(self, code: str, long_url: str) -> None:
        try:
            await self._client.set(code, long_url, ex=self._ttl_seconds)
        except _CACHE_FAILURES as exc:
            raise CacheError(f"Cache set failed for '{code}': {exc}") from exc

    async def ping(self) -> None:
        try:
            await asyncio.wait_for(self._client.ping(), timeout=self._ping_timeout)
        except _CACHE_FAILURES as exc:
            raise CacheError(f"Cache ping failed: {exc}") from exc

    async def close(self) -> None:
        await self._client.aclose()
