"""Database setup and session management.

Uses SQLAlchemy 2.0 async patterns. Postgres URLs are rewritten to the
asyncpg driver; SQLite (aiosqlite) is used for local development and tests.
"""

import logging
from typing import Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from booking_core.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def _async_url(url: str) -> str:
    # Convert postgresql:// to postgresql+asyncpg://
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


def create_engine_from_settings(
    url: Optional[str] = None, echo: Optional[bool] = None
) -> AsyncEngine:
    """Create the async engine from explicit arguments or configuration."""
    db_url = _async_url(url or settings.database.url)
    kwargs: dict = {
        "echo": settings.database.echo if echo is None else echo,
        "pool_pre_ping": True,
    }
    if not db_url.startswith("sqlite"):
        kwargs["pool_size"] = settings.database.pool_size
        kwargs["max_overflow"] = settings.database.pool_size * 2
    logger.debug("Creating database engine for %s", db_url.split("@")[-1])
    engine = create_async_engine(db_url, **kwargs)
    if db_url.startswith("sqlite"):
        _serialize_sqlite_writers(engine)
    return engine


def _serialize_sqlite_writers(engine: AsyncEngine) -> None:
    """Open every SQLite transaction with ``BEGIN IMMEDIATE``.

    The driver normally defers BEGIN until the first write, so two
    connections could both run the overlap check before either inserts.
    Taking the write lock up front makes check-then-insert atomic across
    connections and processes sharing the file.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, _connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables. For development and tests; production uses migrations."""
    # Registers the ORM tables on Base.metadata
    from booking_core.store import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")
