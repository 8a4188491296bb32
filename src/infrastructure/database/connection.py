# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Process-wide async engine and sessionmaker.

Two kinds of sessions come from here: one per HTTP request (get_session)
and one per derived-effect run, which the dispatcher opens itself through
get_sessionmaker() so that feed and inbox writes never share a
transaction with the operation that triggered them.

PostgreSQL goes through asyncpg with a bounded pool. SQLite
(aiosqlite) is used for tests and local runs and gets no pool options.
"""

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.infrastructure.database.models.base import Base

if TYPE_CHECKING:
    from src.core.config.settings import DatabaseSettings, Settings

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None
_sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None


class DatabaseError(Exception):
    """The store could not be reached or a statement failed outside a service."""

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error is None:
            return self.message
        return f"{self.message}: {self.original_error}"


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Sessionmaker shared by requests, the dispatcher and the test suite.

    Rows stay readable after commit; services build responses and events
    from them after the unit of work is closed.
    """
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def _build_engine(db: "DatabaseSettings") -> AsyncEngine:
    if db.is_sqlite:
        return create_async_engine(db.url)
    return create_async_engine(
        db.url,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_pre_ping=True,
        pool_recycle=1800,
    )


async def init_database(settings: "Settings", create_schema: bool = False) -> None:
    """Open the engine once at startup.

    Args:
        settings: Application settings.
        create_schema: Create missing tables from the models. Only for
            SQLite; PostgreSQL schemas are managed by alembic.

    Raises:
        DatabaseError: If the engine or the schema cannot be created.
    """
    global _engine, _sessionmaker

    try:
        _engine = _build_engine(settings.database)
        _sessionmaker = create_sessionmaker(_engine)
        if create_schema:
            async with _engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Created missing tables")
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to initialize database connection", e) from e


async def close_database() -> None:
    global _engine, _sessionmaker

    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _sessionmaker = None


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Sessionmaker opened by init_database().

    Raises:
        DatabaseError: Before init_database() or after close_database().
    """
    if _sessionmaker is None:
        raise DatabaseError("Database not initialized. Call init_database() first.")
    return _sessionmaker


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """Session for one request.

    Services commit their own units of work; anything that escapes the
    block is rolled back here. Driver errors that reach this point are
    wrapped in DatabaseError.
    """
    async with get_sessionmaker()() as session:
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error("Rolled back request session: %s", e)
            raise DatabaseError("Database operation failed", e) from e
        except Exception:
            await session.rollback()
            raise


async def check_database_connection() -> bool:
    """Round-trip ``SELECT 1``; False when not initialized or unreachable."""
    if _engine is None:
        return False
    try:
        async with _engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Database ping failed: %s", e)
        return False
    return True
