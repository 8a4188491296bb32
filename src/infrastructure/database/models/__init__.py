# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models."""

from src.infrastructure.database.models.base import Base, IdList, TimestampMixin, new_id
from src.infrastructure.database.models import tenant  # noqa: F401  registers tables

__all__ = [
    "Base",
    "IdList",
    "TimestampMixin",
    "new_id",
]
