"""Prometheus counters for the shortening and resolution paths.

HTTP-level request metrics come from prometheus-fastapi-instrumentator in
app/main.py; the counters here cover what the HTTP layer cannot see.
"""

from prometheus_client import Counter

__all__ = [
    "URLS_CREATED_TOTAL",
    "CODE_COLLISIONS_TOTAL",
    "LOOKUPS_TOTAL",
    "CACHE_ERRORS_TOTAL",
    "HIT_INCREMENTS_TOTAL",
]

URLS_CREATED_TOTAL = Counter(
    "url_shortener_urls_created_total",
    "Short URLs successfully written to the store",
)
CODE_COLLISIONS_TOTAL = Counter(
    "url_shortener_code_collisions_total",
    "Generated codes rejected because they were taken or named an app route",
    ["stage"],
)
LOOKUPS_TOTAL = Counter(
    "url_shortener_lookups_total",
    "Resolved short codes by the tier that answered",
    ["source"],
)
CACHE_ERRORS_TOTAL = Counter(
    "url_shortener_cache_errors_total",
    "Cache operations that failed and were absorbed",
    ["operation"],
)
HIT_INCREMENTS_TOTAL = Counter(
    "url_shortener_hit_increments_total",
    "Background hit-counter increments by outcome",
    ["status"],
)
