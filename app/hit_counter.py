"""Fire-and-forget hit counting.

Flow Diagram — record()
=======================
::
    ┌─────────────┐
    │  resolve()  │
    └──────┬──────┘
           ▼
    ┌─────────────┐        ┌──────────────────┐
    │ create_task │ ─────► │ store.increment_ │
    │ (no await)  │        │ hits(code)       │
    └──────┬──────┘        └────────┬─────────┘
           ▼                        ▼
    ┌─────────────┐        ┌──────────────────┐
    │ Response    │        │ done-callback:   │
    │ returned    │        │ log + metric     │
    └─────────────┘        └──────────────────┘

Key Behaviours
===============
- The request path never awaits the increment.
- Failures are logged and counted, never retried, never surfaced.
- Pending tasks are strongly referenced until done, so the event loop
  cannot garbage-collect them mid-flight.
- Cancelling the originating request does not cancel the increment.
- drain() waits for outstanding increments at shutdown.
"""

import asyncio

from app.enums import RequestStatus
from app.logger import get_logger
from app.metrics import HIT_INCREMENTS_TOTAL
from app.store import URLStore

__all__ = ["HitCounter"]

logger = get_logger("hit_counter")


class HitCounter:
    def __init__(self, store: URLStore) -> None:
        self._store = store
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def record(self, code: str) -> asyncio.Task[None]:
        task = asyncio.create_task(self._store.increment_hits(code), name=f"hit:{code}")
        self._pending.add(task)
        task.add_done_callback(lambda done: self._finished(code, done))
        return task

    def _finished(self, code: str, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            HIT_INCREMENTS_TOTAL.labels(status=RequestStatus.ERROR).inc()
            logger.warning(f"Hit counter update cancelled for {code}")
            return
        exc = task.exception()
        if exc is not None:
            HIT_INCREMENTS_TOTAL.labels(status=RequestStatus.ERROR).inc()
            logger.error(f"Failed to update hit counter for {code}: {exc}")
            return
        HIT_INCREMENTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()

    async def drain(self, timeout: float | None = None) -> None:
        if not self._pending:
            return
        _, still_pending = await asyncio.wait(set(self._pending), timeout=timeout)
        if still_pending:
            logger.warning(f"{len(still_pending)} hit counter updates still running at shutdown")
