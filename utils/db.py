from __future__ import annotations

"""
Async SQLAlchemy engine/session helpers.

The cleanup job talks to the app's Postgres database (asyncpg driver). A local
SQLite file (aiosqlite) is allowed only with ENVIRONMENT=dev.
"""

import os
import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

import config

log = logging.getLogger("db")

_engine: Any = None
_sessionmaker: Any = None


def get_database_url() -> str:
    """Public accessor for the database URL (used by tools and logging)."""
    return _database_url()


def _database_url() -> str:
    url = (os.getenv("DATABASE_URL", "") or "").strip()
    if url:
        # Convert sync postgres URLs to asyncpg URLs if needed
        if url.startswith("postgres://"):
            url = "postgresql+asyncpg://" + url[len("postgres://") :]
        elif url.startswith("postgresql://") and "+asyncpg" not in url:
            url = "postgresql+asyncpg://" + url[len("postgresql://") :]
        return url

    # Deleting from the wrong database is not recoverable, so no silent fallback in prod.
    env = (os.getenv("ENVIRONMENT", "prod") or "prod").strip().lower()
    if env != "dev":
        raise RuntimeError(
            "DATABASE_URL is missing. Set DATABASE_URL (Postgres) in your environment. "
            "If you are running locally, set ENVIRONMENT=dev to allow a local SQLite fallback."
        )

    return "sqlite+aiosqlite:///./cleanup.db"


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        url = _database_url()
        is_sqlite = url.startswith("sqlite")
        pool_kwargs: dict = {}
        if not is_sqlite:
            # One session per in-flight premium check, plus the page read/delete.
            pool_kwargs = {
                "pool_size": max(1, config.PREMIUM_CHECK_CHUNK_SIZE) + 1,
                "max_overflow": 4,
                "pool_timeout": 30,
                "pool_pre_ping": True,
            }
        _engine = create_async_engine(url, future=True, echo=False, **pool_kwargs)
    return _engine


def get_sessionmaker() -> async_sessionmaker:
    global _sessionmaker
    if _sessionmaker is None:
        _sessionmaker = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _sessionmaker


async def dispose_engine() -> None:
    """Close pooled connections; safe to call when no engine was created."""
    global _engine, _sessionmaker
    if _engine is None:
        return
    engine = _engine
    _engine = None
    _sessionmaker = None
    await engine.dispose()
    log.debug("DB engine disposed")
