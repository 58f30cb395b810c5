"""Async SQLAlchemy engine and session management.

Used by the SQL-backed settings store. Engines are built from
``StorageConfig`` rather than at import time so tests and the memory
backend never open a connection:

- Connection pooling (pool_size/max_overflow) for server databases
- Session context with commit on success, rollback on error
- Table creation for dev/test databases
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import StorageConfig

# ---------------------------------------------------------------------------
# Engine & session factory
# ---------------------------------------------------------------------------

def create_engine_from_config(storage: StorageConfig) -> AsyncEngine:
    """Create an async engine for ``storage.database_url``.

    SQLite does not take pool sizing arguments.
    """
    options: dict = {"echo": storage.echo_sql, "pool_pre_ping": True}
    if make_url(storage.database_url).get_backend_name() != "sqlite":
        options.update(pool_size=storage.pool_size, max_overflow=storage.max_overflow)
    return create_async_engine(storage.database_url, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@asynccontextmanager
async def session_scope(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session that commits on success and rolls back on error."""
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ---------------------------------------------------------------------------
# Lifecycle hooks
# ---------------------------------------------------------------------------

async def init_db(engine: AsyncEngine) -> None:
    """Create tables from models (dev/test only)."""
    from core.models.base import Base
    import core.models.settings  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(engine: AsyncEngine) -> None:
    """Dispose of the connection pool on shutdown."""
    await engine.dispose()
