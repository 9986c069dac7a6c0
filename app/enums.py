"""Shared enums for the URL shortener application.

This module defines all status and state enums used across the codebase.
Using enums instead of string literals provides type safety and prevents typos.
"""

from enum import StrEnum

__all__ = ["HealthStatus", "Dependency", "RequestStatus", "LookupSource"]


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class Dependency(StrEnum):
    """External services probed by the health check."""

    DATABASE = "database"
    CACHE = "cache"


class RequestStatus(StrEnum):
    """Request status values for metrics and logging."""

    SUCCESS = "success"
    ERROR = "error"


class LookupSource(StrEnum):
    """Tier that answered a resolution."""

    CACHE = "cache"
    STORE = "store"
