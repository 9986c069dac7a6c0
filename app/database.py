"""Database engine setup and schema provisioning for the URL shortener.

This module provides SQLAlchemy async engine construction, the declarative
base for ORM models, and first-run provisioning of the database and the
``urls`` table.

Flow Diagram — init_db()
========================
::
    ┌─────────────┐
    │  Startup    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ PostgreSQL? │
    └──────┬──────┘
    YES   │
           ▼
    ┌─────────────┐
    │ Connect to  │
    │ maintenance │
    │ database    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ CREATE      │
    │ DATABASE if │
    │ missing     │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ create_all  │
    │ (urls table)│
    └─────────────┘

How to Use
===========
**Step 1 — Build the engine**::
    engine = build_engine(settings)
    session_factory = build_session_factory(engine)

**Step 2 — Provision on startup**::
    await init_db(engine, settings)

**Step 3 — Cleanup on shutdown**::
    await close_db(engine)

Key Behaviours
===============
- asyncpg connections carry a connect timeout and a per-statement timeout.
- Pool checkout is bounded by DB_POOL_TIMEOUT_SECONDS.
- The target database is created only when DB_AUTO_CREATE is set.
- Tables are created with ``checkfirst`` semantics, so restarts are safe.

Classes:
    Base:  SQLAlchemy declarative base for all models.

Functions:
    build_engine():  Creates the async engine from settings.
    build_session_factory():  Creates the async session factory.
    init_db():  Creates the database (if absent) and all tables.
    close_db():  Disposes the engine on shutdown.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import Settings
from app.logger import get_logger

__all__ = ["Base", "build_engine", "build_session_factory", "init_db", "close_db"]

logger = get_logger("database")


class Base(DeclarativeBase):
    pass


def _is_postgres(database_url: str) -> bool:
    return make_url(database_url).get_backend_name() == "postgresql"


def _engine_options(settings: Settings, database_url: str) -> dict[str, Any]:
    if not _is_postgres(database_url):
        return {}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT_SECONDS,
        "pool_pre_ping": True,
        "connect_args": {
            "timeout": settings.DB_CONNECT_TIMEOUT_SECONDS,
            "command_timeout": settings.DB_COMMAND_TIMEOUT_SECONDS,
        },
    }


def build_engine(settings: Settings) -> AsyncEngine:
    return create_async_engine(
        settings.DATABASE_URL,
        echo=(settings.APP_ENV == "development" and settings.LOG_LEVEL.upper() == "DEBUG"),
        **_engine_options(settings, settings.DATABASE_URL),
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def _ensure_database(settings: Settings) -> None:
    target = make_url(settings.DATABASE_URL)
    if target.get_backend_name() != "postgresql" or not target.database:
        return

    maintenance_url = target.set(database=settings.DB_MAINTENANCE_DB)
    admin_engine = create_async_engine(
        maintenance_url,
        isolation_level="AUTOCOMMIT",
        **_engine_options(settings, settings.DATABASE_URL),
    )
    try:
        async with admin_engine.connect() as conn:
            result = await conn.execute(
                text("SELECT 1 FROM pg_database WHERE datname = :name"),
                {"name": target.database},
            )
            if result.scalar() is None:
                quoted = admin_engine.dialect.identifier_preparer.quote(target.database)
                await conn.execute(text(f"CREATE DATABASE {quoted}"))
                logger.info(f"Created database {target.database}")
    finally:
        await admin_engine.dispose()


async def init_db(engine: AsyncEngine, settings: Settings) -> None:
    # Register models on Base.metadata before create_all.
    import app.models  # noqa: F401

    if settings.DB_AUTO_CREATE:
        await _ensure_database(settings)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready")


async def close_db(engine: AsyncEngine) -> None:
    await engine.dispose()
