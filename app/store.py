"""Persistent store adapter over PostgreSQL (SQLAlchemy asyncio).

The store is the system of record for code → long URL mappings and hit
counts. Every public method opens its own short-lived session, so the
background hit counter never shares a session with a request.

Flow Diagram — insert()
=======================
::
    ┌─────────────┐
    │ INSERT urls │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Unique      │
    │ violation?  │
    └──────┬──────┘
    ┌─────┴─────┐
    │ YES        │ NO
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Code-   │  │ Commit, │
│ Conflict│  │ return  │
│ Error   │  │ record  │
└─────────┘  └─────────┘

Key Behaviours
===============
- "Not found" is reported as NotFoundError, never as StoreError.
- Driver errors, pool timeouts and socket errors become StoreError.
- An existing row is never overwritten.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.exceptions import CodeConflictError, NotFoundError, StoreError
from app.models import URL

__all__ = ["URLStore"]

_STORE_FAILURES = (SQLAlchemyError, OSError, asyncio.TimeoutError)


class URLStore:
    """Durable mapping from short code to long URL."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], ping_timeout: float = 5.0) -> None:
        self._session_factory = session_factory
        self._ping_timeout = ping_timeout

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except _STORE_FAILURES as exc:
            raise StoreError(f"Store {operation} failed: {exc}") from exc

    async def exists(self, code: str) -> bool:
        async with self._session("exists") as session:
            result = await session.execute(select(URL.id).where(URL.code == code))
            return result.scalar() is not None

    async def insert(self, code: str, long_url: str) -> URL:
        async with self._session("insert") as session:
            url = URL(code=code, long_url=long_url)
            session.add(url)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise CodeConflictError(f"Short code '{code}' already exists") from exc
            await session.refresh(url)
            return url

    async def get(self, code: str) -> URL:
        async with self._session("get") as session:
            result = await session.execute(select(URL).where(URL.code == code))
            url = result.scalar_one_or_none()
            if url is None:
                raise NotFoundError(f"No record for code '{code}'")
            return url

    async def get_long_url(self, code: str) -> str:
        async with self._session("lookup") as session:
            result = await session.execute(select(URL.long_url).where(URL.code == code))
            long_url = result.scalar_one_or_none()
            if long_url is None:
                raise NotFoundError(f"No record for code '{code}'")
            return long_url

    async def increment_hits(self, code: str) -> None:
        async with self._session("increment") as session:
            await session.execute(update(URL).where(URL.code == code).values(hits=URL.hits + 1))
            await session.commit()

    async def ping(self) -> None:
        async with self._session("ping") as session:
            await asyncio.wait_for(session.execute(text("SELECT 1")), timeout=self._ping_timeout)
