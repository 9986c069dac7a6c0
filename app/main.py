"""FastAPI application entry point for the URL shortener service.

Application Lifecycle Diagram
=============================
::
    ┌─────────────┐
    │  uvicorn    │
    │  startup    │
    └──────┬──────┘
           ▼
    ┌──────────────┐
    │ lifespan()   │
    │ startup:     │
    │ initialize() │
    │ init_db()    │
    │ ping Redis   │
    └──────┬───────┘
           ▼
    ┌─────────────┐
    │ Serve HTTP  │
    │ requests    │
    └──────┬──────┘
           ▼
    ┌──────────────┐
    │ lifespan()   │
    │ shutdown:    │
    │ drain hits   │
    │ close Redis  │
    │ close_db()   │
    └──────────────┘

How to Use
===========
**Step 1 — Run**::
    url-shortener
    # or
    uvicorn app.main:app --host 0.0.0.0 --port 8080

**Step 2 — Make API calls**::
    curl -X POST http://localhost:8080/api/shorten \
         -H "Content-Type: application/json" \
         -d '{"long_url": "https://example.com/page"}'

    curl -i http://localhost:8080/<code>
    curl http://localhost:8080/health

Key Behaviours
===============
- The database and the urls table are created on first start.
- An unreachable Redis at startup is logged; lookups fall back to the store.
- Outstanding hit-counter updates are drained before connections close.
- Prometheus metrics are exposed at /metrics.
"""

__all__ = ["app", "run"]

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from app.config import get_settings
from app.dependencies import _service_manager
from app.handlers import register_exception_handlers
from app.routes import router

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    await _service_manager.initialize()
    await _service_manager.startup()
    yield
    # Shutdown
    await _service_manager.cleanup()


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="URL shortener with a Redis cache in front of PostgreSQL",
    lifespan=lifespan,
)

register_exception_handlers(app)

Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=False,
    should_respect_env_var=False,
).instrument(app).expose(app)

app.include_router(router)


def run() -> None:
    uvicorn.run("app.main:app", host=settings.LISTEN_HOST, port=settings.LISTEN_PORT)


if __name__ == "__main__":
    run()
