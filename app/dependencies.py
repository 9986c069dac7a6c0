"""Dependency injection with a process-wide service manager.

The service manager owns the long-lived handles (database engine, Redis
client) and the adapters built on them. It is created once at startup and
handed to each request through FastAPI dependencies; request-scoped services
are thin wrappers that add a context-aware logger.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

import redis.asyncio as redis
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine

from app.cache import URLCache, build_redis
from app.codegen import CodeGenerator
from app.config import Settings, get_settings
from app.database import build_engine, build_session_factory, close_db, init_db
from app.exceptions import CacheError
from app.health import HealthChecker
from app.hit_counter import HitCounter
from app.logger import setup_logging
from app.store import URLStore
from app.url_service import URLResolutionService, URLShorteningService


# ============================================================================
# SINGLETON SERVICE MANAGER
# ============================================================================


class ServiceManager:
    """Singleton service manager for shared resources.

    Holds everything that must outlive a single request: connection handles,
    adapters, and the background hit counter.
    """

    _instance: Optional["ServiceManager"] = None
    _initialized: bool = False

    settings: Settings
    logger: logging.Logger
    engine: AsyncEngine
    store: URLStore
    cache: URLCache
    generator: CodeGenerator
    hit_counter: HitCounter

    def __new__(cls) -> "ServiceManager":
        """Implement singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(
        self,
        settings: Settings | None = None,
        redis_client: redis.Redis | None = None,
        generator: CodeGenerator | None = None,
    ) -> None:
        """Build shared resources once. Arguments replace the defaults, mainly for tests."""
        if self._initialized:
            return
        self.settings = settings or get_settings()
        self.logger = setup_logging(self.settings.LOG_LEVEL)
        self.engine = build_engine(self.settings)
        self.store = URLStore(build_session_factory(self.engine), ping_timeout=self.settings.DB_PING_TIMEOUT_SECONDS)
        self.cache = URLCache(
            redis_client or build_redis(self.settings),
            ttl_seconds=self.settings.CACHE_TTL_SECONDS,
            ping_timeout=self.settings.REDIS_PING_TIMEOUT_SECONDS,
        )
        self.generator = generator or CodeGenerator(self.settings.SHORT_CODE_LENGTH)
        self.hit_counter = HitCounter(self.store)
        self._initialized = True

    async def startup(self) -> None:
        """Provision the schema and probe the cache."""
        await init_db(self.engine, self.settings)
        self.logger.info("Connected to database")
        try:
            await self.cache.ping()
            self.logger.info("Connected to Redis")
        except CacheError as exc:
            # Lookups fall back to the store while the cache is down.
            self.logger.warning(f"Redis unavailable at startup: {exc}")

    async def cleanup(self) -> None:
        """Cleanup shared resources at shutdown."""
        if not self._initialized:
            return
        await self.hit_counter.drain(timeout=self.settings.HIT_COUNTER_DRAIN_TIMEOUT_SECONDS)
        await self.cache.close()
        await close_db(self.engine)
        self._initialized = False


# Global singleton instance
_service_manager = ServiceManager()


# ============================================================================
# LIGHTWEIGHT REQUEST CONTEXT
# ============================================================================


@dataclass
class RequestContext:
    """Per-request tracking on top of the shared service manager.

    Attributes:
        service_manager: Singleton service manager with shared resources
        request_id: Unique identifier for this request
        user_agent: Client user agent string
        client_ip: Client IP address
        start_time: Request start timestamp
    """

    service_manager: ServiceManager
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    user_agent: Optional[str] = None
    client_ip: Optional[str] = None
    start_time: float = field(default_factory=lambda: time.time())

    @property
    def settings(self) -> Settings:
        return self.service_manager.settings

    @property
    def logger(self) -> logging.LoggerAdapter:
        """Shared logger carrying request context."""
        return logging.LoggerAdapter(
            self.service_manager.logger,
            {
                "request_id": self.request_id,
                "client_ip": self.client_ip,
                "user_agent": self.user_agent,
            },
        )

    def get_duration(self) -> float:
        """Get request duration in milliseconds."""
        return (time.time() - self.start_time) * 1000


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


async def get_service_manager() -> ServiceManager:
    if not _service_manager.initialized:
        await _service_manager.initialize()
    return _service_manager


async def get_request_context(
    request: Request,
    manager: ServiceManager = Depends(get_service_manager),
) -> RequestContext:
    return RequestContext(
        service_manager=manager,
        request_id=request.headers.get("x-request-id") or str(uuid.uuid4()),
        user_agent=request.headers.get("user-agent"),
        client_ip=request.client.host if request.client else None,
    )


def get_shortening_service(ctx: RequestContext = Depends(get_request_context)) -> URLShorteningService:
    manager = ctx.service_manager
    return URLShorteningService(
        manager.generator,
        manager.store,
        manager.cache,
        base_url=manager.settings.BASE_URL,
        logger=ctx.logger,
    )


def get_resolution_service(ctx: RequestContext = Depends(get_request_context)) -> URLResolutionService:
    manager = ctx.service_manager
    return URLResolutionService(manager.store, manager.cache, manager.hit_counter, logger=ctx.logger)


def get_health_checker(manager: ServiceManager = Depends(get_service_manager)) -> HealthChecker:
    return HealthChecker(manager.store, manager.cache)
