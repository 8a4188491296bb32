# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Declarative base and shared column helpers.

Every table uses a String(36) primary key holding str(uuid4()) so the
same models run on PostgreSQL and on SQLite in tests. Id arrays that
the platform keeps on the owning row (class roster, a student's class
and subject sets, an exam period's assigned classes) use IdList, a JSON
column stored as JSONB on PostgreSQL.

JSON columns are not mutation-tracked: code must assign a new list
rather than appending in place.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src.utils.datetime import utc_now

IdList = JSON().with_variant(JSONB(), "postgresql")


def new_id() -> str:
    """Generate a new string primary key."""
    return str(uuid4())


class Base(DeclarativeBase):
    """Declarative base for all SchoolOps models."""

    pass


class TimestampMixin:
    """Adds created_at / updated_at columns maintained by the ORM."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )


class SchoolScopedMixin:
    """Adds the school_id partition key carried by every tenant row."""

    school_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
