"""Unit tests for the shortening and resolution services.

Store and cache are mocked so each test controls exactly which tier answers,
which fails, and which calls are expected.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.cache import URLCache
from app.codegen import CodeGenerator
from app.exceptions import CacheError, CodeConflictError, NotFoundError, StoreError, ValidationError
from app.hit_counter import HitCounter
from app.store import URLStore
from app.url_service import URLResolutionService, URLShorteningService

BASE_URL = "https://sho.rt"

# ============================================================================
# TEST FIXTURES AND UTILITIES
# ============================================================================


@pytest.fixture
def mock_store() -> AsyncMock:
    store = AsyncMock(spec=URLStore)
    store.exists = AsyncMock(return_value=False)
    store.insert = AsyncMock()
    store.get_long_url = AsyncMock(return_value="https://example.com")
    return store


@pytest.fixture
def mock_cache() -> AsyncMock:
    cache = AsyncMock(spec=URLCache)
    cache.get = AsyncMock(return_value=None)
    cache.set = AsyncMock(return_value=None)
    return cache


@pytest.fixture
def mock_hit_counter() -> MagicMock:
    return MagicMock(spec=HitCounter)


@pytest.fixture
def mock_generator() -> MagicMock:
    generator = MagicMock(spec=CodeGenerator)
    generator.generate.side_effect = ["aaaaaa", "bbbbbb", "cccccc", "dddddd", "eeeeee"]
    return generator


@pytest.fixture
def shortening_service(mock_generator, mock_store, mock_cache) -> URLShorteningService:
    return URLShorteningService(mock_generator, mock_store, mock_cache, base_url=BASE_URL)


@pytest.fixture
def resolution_service(mock_store, mock_cache, mock_hit_counter) -> URLResolutionService:
    return URLResolutionService(mock_store, mock_cache, mock_hit_counter)


# ============================================================================
# SHORTENING
# ============================================================================


class TestURLShorteningService:
    @pytest.mark.asyncio
    async def test_shorten_success(self, shortening_service, mock_store, mock_cache):
        result = await shortening_service.shorten("https://example.com/page")

        assert result.code == "aaaaaa"
        assert result.short_url == f"{BASE_URL}/aaaaaa"
        assert result.long_url == "https://example.com/page"
        mock_store.insert.assert_awaited_once_with("aaaaaa", "https://example.com/page")
        mock_cache.set.assert_awaited_once_with("aaaaaa", "https://example.com/page")

    @pytest.mark.asyncio
    async def test_short_url_base_trailing_slash(self, mock_generator, mock_store, mock_cache):
        service = URLShorteningService(mock_generator, mock_store, mock_cache, base_url=f"{BASE_URL}/")
        result = await service.shorten("https://example.com")
        assert result.short_url == f"{BASE_URL}/aaaaaa"

    @pytest.mark.asyncio
    async def test_shorten_empty_url(self, shortening_service, mock_store, mock_cache):
        with pytest.raises(ValidationError, match="URL is required"):
            await shortening_service.shorten("")

        mock_store.exists.assert_not_called()
        mock_store.insert.assert_not_called()
        mock_cache.set.assert_not_called()

    @pytest.mark.asyncio
    async def test_shorten_skips_taken_codes(self, shortening_service, mock_store, mock_generator):
        # First three candidates already exist.
        mock_store.exists.side_effect = [True, True, True, False]

        result = await shortening_service.shorten("https://example.com")

        assert result.code == "dddddd"
        assert mock_generator.generate.call_count == 4
        mock_store.insert.assert_awaited_once_with("dddddd", "https://example.com")

    @pytest.mark.asyncio
    async def test_shorten_skips_reserved_route_codes(self, shortening_service, mock_store, mock_generator):
        mock_generator.generate.side_effect = ["health", "aaaaaa"]

        result = await shortening_service.shorten("https://example.com")

        assert result.code == "aaaaaa"
        mock_store.exists.assert_awaited_once_with("aaaaaa")
        mock_store.insert.assert_awaited_once_with("aaaaaa", "https://example.com")

    @pytest.mark.asyncio
    async def test_shorten_retries_after_insert_conflict(self, shortening_service, mock_store):
        mock_store.insert.side_effect = [CodeConflictError("taken"), None]

        result = await shortening_service.shorten("https://example.com")

        assert result.code == "bbbbbb"
        assert mock_store.insert.await_count == 2

    @pytest.mark.asyncio
    async def test_shorten_store_failure_on_exists(self, shortening_service, mock_store, mock_cache):
        mock_store.exists.side_effect = StoreError("connection refused")

        with pytest.raises(StoreError):
            await shortening_service.shorten("https://example.com")
        mock_store.insert.assert_not_called()
        mock_cache.set.assert_not_called()

    @pytest.mark.asyncio
    async def test_shorten_store_failure_on_insert(self, shortening_service, mock_store, mock_cache):
        mock_store.insert.side_effect = StoreError("disk full")

        with pytest.raises(StoreError):
            await shortening_service.shorten("https://example.com")
        mock_cache.set.assert_not_called()

    @pytest.mark.asyncio
    async def test_shorten_ignores_cache_failure(self, shortening_service, mock_cache):
        mock_cache.set.side_effect = CacheError("redis down")

        result = await shortening_service.shorten("https://example.com")

        assert result.code == "aaaaaa"


# ============================================================================
# RESOLUTION
# ============================================================================


class TestURLResolutionService:
    @pytest.mark.asyncio
    async def test_resolve_cache_hit(self, resolution_service, mock_store, mock_cache, mock_hit_counter):
        mock_cache.get.return_value = "https://cached.example.com"

        long_url = await resolution_service.resolve("abc123")

        assert long_url == "https://cached.example.com"
        mock_store.get_long_url.assert_not_called()
        mock_cache.set.assert_not_called()
        mock_hit_counter.record.assert_called_once_with("abc123")

    @pytest.mark.asyncio
    async def test_resolve_cache_miss(self, resolution_service, mock_store, mock_cache, mock_hit_counter):
        long_url = await resolution_service.resolve("abc123")

        assert long_url == "https://example.com"
        mock_store.get_long_url.assert_awaited_once_with("abc123")
        mock_cache.set.assert_awaited_once_with("abc123", "https://example.com")
        mock_hit_counter.record.assert_called_once_with("abc123")

    @pytest.mark.asyncio
    async def test_resolve_cache_error_falls_back_and_repopulates(
        self, resolution_service, mock_store, mock_cache, mock_hit_counter
    ):
        mock_cache.get.side_effect = CacheError("timeout")

        long_url = await resolution_service.resolve("abc123")

        assert long_url == "https://example.com"
        mock_store.get_long_url.assert_awaited_once_with("abc123")
        mock_cache.set.assert_awaited_once_with("abc123", "https://example.com")
        mock_hit_counter.record.assert_called_once_with("abc123")

    @pytest.mark.asyncio
    async def test_resolve_with_every_cache_call_failing(self, resolution_service, mock_cache):
        mock_cache.get.side_effect = CacheError("down")
        mock_cache.set.side_effect = CacheError("down")

        assert await resolution_service.resolve("abc123") == "https://example.com"

    @pytest.mark.asyncio
    async def test_resolve_not_found(self, resolution_service, mock_store, mock_cache, mock_hit_counter):
        mock_store.get_long_url.side_effect = NotFoundError("no such code")

        with pytest.raises(NotFoundError):
            await resolution_service.resolve("missing")
        mock_cache.set.assert_not_called()
        mock_hit_counter.record.assert_not_called()

    @pytest.mark.asyncio
    async def test_resolve_store_failure(self, resolution_service, mock_store, mock_hit_counter):
        mock_store.get_long_url.side_effect = StoreError("connection reset")

        with pytest.raises(StoreError):
            await resolution_service.resolve("abc123")
        mock_hit_counter.record.assert_not_called()

    @pytest.mark.asyncio
    async def test_stats_reads_store_without_counting(self, resolution_service, mock_store, mock_hit_counter):
        record = MagicMock(code="abc123", hits=4)
        mock_store.get = AsyncMock(return_value=record)

        assert await resolution_service.stats("abc123") is record
        mock_hit_counter.record.assert_not_called()


# ============================================================================
# INTEGRATION TESTS
# ============================================================================


class TestServiceIntegration:
    """Real store on SQLite, mocked Redis."""

    @pytest.mark.asyncio
    async def test_round_trip_across_cache_states(self, store, redis_client):
        cache = URLCache(redis_client, ttl_seconds=60)
        hit_counter = HitCounter(store)
        shortening = URLShorteningService(CodeGenerator(), store, cache, base_url=BASE_URL)
        resolution = URLResolutionService(store, cache, hit_counter)

        result = await shortening.shorten("https://example.com/page")

        warm = await resolution.resolve(result.code)
        redis_client.data.clear()  # expired
        cold = await resolution.resolve(result.code)
        rewarmed = await resolution.resolve(result.code)

        assert warm == cold == rewarmed == "https://example.com/page"
        await hit_counter.drain()
        assert (await store.get(result.code)).hits == 3

    @pytest.mark.asyncio
    async def test_resolve_never_issued_code(self, store, redis_client):
        resolution = URLResolutionService(store, URLCache(redis_client, ttl_seconds=60), HitCounter(store))

        with pytest.raises(NotFoundError):
            await resolution.resolve("zzzzzz")
