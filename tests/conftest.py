"""Pytest configuration and fixtures. Run without real Postgres/S3 by default."""
from __future__ import annotations

import os
import sys

import pytest

# Ensure project root is on path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Avoid loading .env that might point at prod
os.environ.setdefault("ENVIRONMENT", "dev")


@pytest.fixture
async def db_engine():
    """Standalone in-memory async SQLite engine with all tables created."""
    from sqlalchemy.ext.asyncio import create_async_engine
    from utils.models import Base

    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def patch_db(db_engine, monkeypatch):
    """Point utils.db's cached sessionmaker at the test engine."""
    from sqlalchemy.ext.asyncio import async_sessionmaker
    import utils.db as db_mod

    factory = async_sessionmaker(db_engine, expire_on_commit=False)
    monkeypatch.setattr(db_mod, "_engine", db_engine)
    monkeypatch.setattr(db_mod, "_sessionmaker", factory)
    return factory
