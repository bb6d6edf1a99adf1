"""
db/session.py
-------------
Async SQLAlchemy engine and session factory.

Design decisions:
  - Each LicensingProvider owns its engine, built from the database URL it
    is constructed with (the provider is a library, not a process-wide app).
  - Server databases (asyncpg) get a bounded pool with pre-ping and hourly
    recycling. In-memory SQLite uses StaticPool so every session shares the
    one connection that holds the database.
  - expire_on_commit=False: avoids lazy-load errors after commit in async
    context (attributes are already loaded, no implicit SELECT needed).
  - session_scope() is one unit of work: commit on success, rollback on
    any exception. No transaction spans two public provider operations.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from licensing.core.config import settings


def _engine_kwargs(database_url: str) -> dict[str, Any]:
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        kwargs: dict[str, Any] = {
            "echo": settings.DEBUG,
            "connect_args": {"check_same_thread": False},
        }
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        return kwargs
    return {
        "echo": settings.DEBUG,          # Log SQL in development
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_pre_ping": True,
        "pool_recycle": 3600,             # Recycle connections every hour
    }


def build_engine(database_url: str) -> AsyncEngine:
    return create_async_engine(database_url, **_engine_kwargs(database_url))


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """
    Yield a session for one provider operation.
    The session is committed when the block exits cleanly and rolled back
    on exceptions.

    Usage:
        async with session_scope(self._sessions) as db:
            ...
    """
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
