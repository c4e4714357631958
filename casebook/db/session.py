"""
Async SQLAlchemy engine & session factory (asyncpg / aiosqlite drivers).

The engine is created lazily by :func:`init_db` so a process that has not
been given a database yet can still serve requests that do not need one.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import (AsyncEngine, AsyncSession,
                                    async_sessionmaker, create_async_engine)

from casebook.core.exceptions import UnsupportedDialect
from casebook.db.base import Base

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None

# INSERT ... ON CONFLICT is dialect specific.
_DIALECT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def _engine_args(url: str) -> dict[str, Any]:
    engine_args: dict[str, Any] = {
        "echo": False,
        "pool_pre_ping": True,
    }
    if "postgresql" in url:
        engine_args.update(
            {
                "pool_size": 20,
                "max_overflow": 10,
                "pool_recycle": 300,
            }
        )
    return engine_args


def init_db(url: str) -> async_sessionmaker[AsyncSession]:
    """Create the engine and session factory once per process."""
    global _engine, _session_factory
    if _session_factory is None:
        _engine = create_async_engine(url, **_engine_args(url))
        _session_factory = async_sessionmaker(
            _engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info("Database engine initialised (%s)", _engine.url.get_backend_name())
    return _session_factory


def get_session_factory() -> async_sessionmaker[AsyncSession] | None:
    """Return the cached session factory, or ``None`` before :func:`init_db`."""
    if _session_factory is None:
        logger.warning("[Database] Database not initialized. Call init_db first.")
    return _session_factory


async def create_tables() -> None:
    if _engine is None:
        logger.warning("[Database] Cannot create tables: database not available")
        return
    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")


async def dispose_db() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


def dialect_insert(db: AsyncSession) -> Callable[..., Any]:
    """Return the ``insert`` construct that supports ``ON CONFLICT`` for *db*."""
    dialect = db.get_bind().dialect.name
    insert = _DIALECT_INSERTS.get(dialect)
    if insert is None:
        raise UnsupportedDialect(f"ON CONFLICT inserts are not supported on dialect {dialect!r}")
    return insert
