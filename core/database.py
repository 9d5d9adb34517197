"""
Async engine and connection helpers for the schedule store.

Schedule tables, mentor details, the onboarding roster and the administrator
list all live in one PostgreSQL database. Everything goes through SQLAlchemy
Core on asyncpg; callers use get_connection() for reads and
get_transaction() for writes.
"""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from .config import get_database_url, get_db_pool_size
from .tables import metadata  # noqa: F401 - exported for schema tooling

ASYNC_SCHEME = "postgresql+asyncpg://"

# Plain schemes hosting providers hand out, rewritten to the asyncpg driver
_PLAIN_SCHEMES = ("postgresql://", "postgres://")

_engine: AsyncEngine | None = None


def to_async_url(database_url: str) -> str:
    """Point a PostgreSQL URL at the asyncpg driver; other URLs pass through."""
    for scheme in _PLAIN_SCHEMES:
        if database_url.startswith(scheme):
            return ASYNC_SCHEME + database_url[len(scheme) :]
    return database_url


def get_engine() -> AsyncEngine:
    """Get or create the engine for DATABASE_URL."""
    global _engine
    if _engine is None:
        database_url = get_database_url()
        if not database_url:
            raise ValueError(
                "DATABASE_URL must be set to the database holding the schedule tables"
            )
        pool_size = get_db_pool_size()
        _engine = create_async_engine(
            to_async_url(database_url),
            echo=os.environ.get("SQL_ECHO", "").lower() == "true",
            pool_size=pool_size,
            max_overflow=pool_size * 2,
            pool_timeout=30,
            pool_recycle=1800,
        )
    return _engine


@asynccontextmanager
async def get_connection() -> AsyncGenerator[AsyncConnection, None]:
    """
    Pooled connection for reads.

    Usage:
        async with get_connection() as conn:
            rows = await find_session_rows(conn, table_name, {"id": 12})
    """
    async with get_engine().connect() as conn:
        yield conn


@asynccontextmanager
async def get_transaction() -> AsyncGenerator[AsyncConnection, None]:
    """
    Connection inside a transaction: commits on exit, rolls back on exception.

    Usage:
        async with get_transaction() as conn:
            await update_session_row(conn, table_name, {"id": 12}, values)
    """
    async with get_engine().begin() as conn:
        yield conn


async def close_engine() -> None:
    """Dispose of the pool. Called from the app lifespan on shutdown."""
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None


def is_configured() -> bool:
    return bool(get_database_url())
