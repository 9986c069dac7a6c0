"""URL Shortener Service Layer - Core Business Logic

This module holds the two request-facing services: allocating a short code
for a long URL, and resolving a short code back to its long URL.

Architecture Overview
=====================
::
    ┌─────────────────────────────────────────────────────────────┐
    │                    Service Layer                            │
    │  ┌─────────────────────┐        ┌─────────────────────────┐ │
    │  │ URLShorteningService│        │  URLResolutionService   │ │
    │  │                     │        │                         │ │
    │  │ • Validate input    │        │ • Cache-first lookup    │ │
    │  │ • Allocate code     │        │ • Store fallback        │ │
    │  │ • Insert + cache    │        │ • Async hit counting    │ │
    │  └─────────────────────┘        └─────────────────────────┘ │
    └─────────────────────────────────────────────────────────────┘
                │                 │                  │
                ▼                 ▼                  ▼
    ┌─────────────────┐  ┌─────────────────┐  ┌─────────────────┐
    │  CodeGenerator  │  │    URLStore     │  │    URLCache     │
    │   (nanoid)      │  │  (PostgreSQL)   │  │    (Redis)      │
    └─────────────────┘  └─────────────────┘  └─────────────────┘

URL Creation Flow
-----------------
::
    ┌─────────────┐
    │  POST /api  │
    │  /shorten   │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Reject empty│
    │ long_url    │
    └──────┬──────┘
           ▼
    ┌─────────────┐ ◄───────────┐
    │ Generate    │             │
    │ candidate   │             │
    └──────┬──────┘             │
           ▼                    │
    ┌─────────────┐   taken     │
    │ exists()?   │ ────────────┤
    └──────┬──────┘             │
           ▼ free               │
    ┌─────────────┐  conflict   │
    │ insert()    │ ────────────┘
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Cache (TTL) │
    │ advisory    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Return code │
    │ + short_url │
    └─────────────┘

URL Lookup & Redirect Flow
--------------------------
::
    ┌─────────────┐
    │  GET /:code │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Check Redis │
    └──────┬──────┘
    HIT?  │        (error counts as miss)
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Query   │  │ Cached  │
│ store   │  │ URL     │
└────┬────┘  └────┬────┘
     ▼            │
┌─────────┐       │
│ Re-cache│       │
└────┬────┘       │
     └─────┬──────┘
           ▼
    ┌─────────────┐
    │ Schedule hit│
    │ increment   │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ 307 Redirect│
    └─────────────┘

Usage Examples
==============
```python
@router.post("/api/shorten")
async def shorten_url(
    payload: ShortenRequest,
    service: URLShorteningService = Depends(get_shortening_service),
) -> ShortenResponse:
    result = await service.shorten(payload.long_url)
    return ShortenResponse(long_url=result.long_url, short_url=result.short_url, code=result.code)
```
"""

import logging
from dataclasses import dataclass

from app.cache import URLCache
from app.codegen import CodeGenerator
from app.enums import LookupSource
from app.exceptions import CacheError, CodeConflictError, ValidationError
from app.hit_counter import HitCounter
from app.logger import get_logger
from app.metrics import CACHE_ERRORS_TOTAL, CODE_COLLISIONS_TOTAL, LOOKUPS_TOTAL, URLS_CREATED_TOTAL
from app.models import URL
from app.store import URLStore

__all__ = ["RESERVED_CODES", "ShortenResult", "URLShorteningService", "URLResolutionService", "build_short_url"]

# Single-segment paths served by the app itself; a code equal to one would never redirect.
RESERVED_CODES = frozenset({"health", "metrics", "docs", "redoc"})


def build_short_url(base_url: str, code: str) -> str:
    return f"{base_url.rstrip('/')}/{code}"


# ============================================================================
# DATA STRUCTURES
# ============================================================================


@dataclass(frozen=True)
class ShortenResult:
    """Outcome of a successful shorten() call."""

    code: str
    short_url: str
    long_url: str


# ============================================================================
# SHORTENING
# ============================================================================


class URLShorteningService:
    """Allocates collision-free codes and persists new mappings.

    Example:
        >>> service = URLShorteningService(generator, store, cache, "https://sho.rt")
        >>> result = await service.shorten("https://example.com/page")
        >>> print(result.short_url)
        https://sho.rt/aZ3kQ9
    """

    def __init__(
        self,
        generator: CodeGenerator,
        store: URLStore,
        cache: URLCache,
        base_url: str,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        self._generator = generator
        self._store = store
        self._cache = cache
        self._base_url = base_url
        self._logger = logger or get_logger("url_service")

    async def shorten(self, long_url: str) -> ShortenResult:
        """Create a short code for ``long_url``.

        Args:
            long_url: Target URL; any non-empty string is accepted.

        Returns:
            ShortenResult: The allocated code and its fully qualified short URL.

        Raises:
            ValidationError: If ``long_url`` is empty.
            StoreError: If the store fails for any reason other than a taken code.
        """
        if not long_url:
            raise ValidationError("URL is required")

        code = await self._insert_with_fresh_code(long_url)
        URLS_CREATED_TOTAL.inc()

        try:
            await self._cache.set(code, long_url)
        except CacheError as exc:
            CACHE_ERRORS_TOTAL.labels(operation="set").inc()
            self._logger.warning(f"Cache error: {exc}")

        self._logger.info(f"Created short code {code}")
        return ShortenResult(code=code, short_url=build_short_url(self._base_url, code), long_url=long_url)

    async def _insert_with_fresh_code(self, long_url: str) -> str:
        # No attempt cap: with 62^6 codes a long run of collisions is not a realistic failure mode.
        while True:
            code = self._generator.generate()
            if code in RESERVED_CODES:
                CODE_COLLISIONS_TOTAL.labels(stage="reserved").inc()
                self._logger.debug(f"Code {code} shadows an app route, retrying")
                continue
            if await self._store.exists(code):
                CODE_COLLISIONS_TOTAL.labels(stage="exists").inc()
                self._logger.debug(f"Code {code} already taken, retrying")
                continue
            try:
                await self._store.insert(code, long_url)
            except CodeConflictError:
                CODE_COLLISIONS_TOTAL.labels(stage="insert").inc()
                self._logger.debug(f"Code {code} taken by a concurrent insert, retrying")
                continue
            return code


# ============================================================================
# RESOLUTION
# ============================================================================


class URLResolutionService:
    """Resolves short codes cache-first and counts hits in the background."""

    def __init__(
        self,
        store: URLStore,
        cache: URLCache,
        hit_counter: HitCounter,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        self._store = store
        self._cache = cache
        self._hit_counter = hit_counter
        self._logger = logger or get_logger("url_service")

    async def resolve(self, code: str) -> str:
        """Return the long URL for ``code`` and schedule a hit increment.

        Raises:
            NotFoundError: If no record exists for ``code``.
            StoreError: If the cache missed and the store failed.
        """
        long_url = await self._lookup_cache(code)
        if long_url is not None:
            LOOKUPS_TOTAL.labels(source=LookupSource.CACHE).inc()
        else:
            long_url = await self._store.get_long_url(code)
            LOOKUPS_TOTAL.labels(source=LookupSource.STORE).inc()
            await self._populate_cache(code, long_url)

        self._hit_counter.record(code)
        return long_url

    async def stats(self, code: str) -> URL:
        """Full record for ``code`` straight from the store; does not count as a hit."""
        return await self._store.get(code)

    async def _lookup_cache(self, code: str) -> str | None:
        try:
            return await self._cache.get(code)
        except CacheError as exc:
            CACHE_ERRORS_TOTAL.labels(operation="get").inc()
            self._logger.warning(f"Cache error: {exc}")
            return None

    async def _populate_cache(self, code: str, long_url: str) -> None:
        try:
            await self._cache.set(code, long_url)
        except CacheError as exc:
            CACHE_ERRORS_TOTAL.labels(operation="set").inc()
            self._logger.warning(f"Cache error: {exc}")
