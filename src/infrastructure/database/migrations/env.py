# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Alembic environment for the SchoolOps schema.

One migration chain covers every school. The URL is taken from the
application settings, never from alembic.ini, and log output goes
through the same structlog setup as the API.

    alembic upgrade head
    DATABASE_URL=sqlite+aiosqlite:///./dev.db alembic upgrade head
"""

import asyncio
from typing import Any

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from src.core.config import get_settings
from src.infrastructure.database.models import Base
from src.utils.logging import setup_logging

settings = get_settings()
setup_logging(settings)


def _configure(**kwargs: Any) -> None:
    # SQLite cannot ALTER most constraints in place.
    context.configure(
        target_metadata=Base.metadata,
        compare_type=True,
        render_as_batch=settings.database.is_sqlite,
        **kwargs,
    )
    with context.begin_transaction():
        context.run_migrations()


def _run_sync(connection: Connection) -> None:
    _configure(connection=connection)


async def _run_online() -> None:
    engine = create_async_engine(settings.database.url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_run_sync)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    _configure(
        url=settings.database.url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
else:
    asyncio.run(_run_online())
