"""Shared pytest fixtures for API, store, and cache tests.

The store runs against a throwaway SQLite file through aiosqlite; Redis is an
AsyncMock backed by a dict so tests can inspect or break the cache.
"""

from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
import redis.asyncio as redis
from httpx import ASGITransport, AsyncClient

from app.config import Settings
from app.database import build_engine, build_session_factory, close_db, init_db
from app.dependencies import ServiceManager, _service_manager
from app.main import app
from app.store import URLStore

TEST_BASE_URL = "http://sho.rt"


def make_redis_mock() -> AsyncMock:
    """Redis client double; ``client.data`` holds the cached values and ``client.expiries`` the TTLs."""
    data: dict[str, str] = {}
    expiries: dict[str, int | None] = {}

    async def _get(key: str) -> str | None:
        return data.get(key)

    async def _set(key: str, value: str, ex: int | None = None, **kwargs) -> bool:
        data[key] = value
        expiries[key] = ex
        return True

    client = AsyncMock(spec=redis.Redis)
    client.get = AsyncMock(side_effect=_get)
    client.set = AsyncMock(side_effect=_set)
    client.ping = AsyncMock(return_value=True)
    client.aclose = AsyncMock(return_value=None)
    client.data = data
    client.expiries = expiries
    return client


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        APP_ENV="test",
        BASE_URL=TEST_BASE_URL,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'urls.db'}",
        DB_AUTO_CREATE=False,
        SHORT_CODE_LENGTH=6,
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def redis_client() -> AsyncMock:
    return make_redis_mock()


@pytest_asyncio.fixture(scope="function")
async def store(settings: Settings) -> AsyncGenerator[URLStore, None]:
    engine = build_engine(settings)
    await init_db(engine, settings)
    yield URLStore(build_session_factory(engine))
    await close_db(engine)


@pytest_asyncio.fixture(scope="function")
async def manager(settings: Settings, redis_client: AsyncMock) -> AsyncGenerator[ServiceManager, None]:
    await _service_manager.initialize(settings, redis_client=redis_client)
    await _service_manager.startup()
    yield _service_manager
    await _service_manager.cleanup()


@pytest_asyncio.fixture(scope="function")
async def client(manager: ServiceManager) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
