# tests/fixtures/db.py
"""
DB fixtures for tests (async, SQLite):
- One throwaway sqlite+aiosqlite file per test (tmp_path), schema from metadata
- Foreign keys switched on for every connection
- NullPool (no lingering connections between tests)
"""

from typing import AsyncGenerator

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from reelbox.db import base


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


def _enable_sqlite_fks(dbapi_connection, connection_record):  # pragma: no cover (driver hook)
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture()
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'reelbox-test.db'}",
        poolclass=NullPool,
        connect_args={"timeout": 30},
    )
    event.listen(engine.sync_engine, "connect", _enable_sqlite_fks)
    async with engine.begin() as conn:
        await conn.run_sync(base.Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """A session for direct reads/asserts in tests (separate from the stores')."""
    async with session_factory() as session:
        yield session
