"""Liveness probe across the store and the cache."""

from dataclasses import dataclass

from app.cache import URLCache
from app.enums import Dependency, HealthStatus
from app.exceptions import CacheError, StoreError
from app.logger import get_logger
from app.store import URLStore

__all__ = ["HealthChecker", "HealthReport"]

logger = get_logger("health")


@dataclass(frozen=True)
class HealthReport:
    status: HealthStatus
    failing: Dependency | None = None
    reason: str | None = None

    @property
    def healthy(self) -> bool:
        return self.status is HealthStatus.HEALTHY


class HealthChecker:
    def __init__(self, store: URLStore, cache: URLCache) -> None:
        self._store = store
        self._cache = cache

    async def check(self) -> HealthReport:
        """Ping the store, then the cache; report the first dependency that fails."""
        try:
            await self._store.ping()
        except StoreError as exc:
            logger.error(f"Database health check failed: {exc}")
            return HealthReport(HealthStatus.UNHEALTHY, Dependency.DATABASE, str(exc))

        try:
            await self._cache.ping()
        except CacheError as exc:
            logger.error(f"Redis health check failed: {exc}")
            return HealthReport(HealthStatus.UNHEALTHY, Dependency.CACHE, str(exc))

        return HealthReport(HealthStatus.HEALTHY)
