# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit-of-work helper for domain services.

Every state-changing operation stages all of its writes on the session
and then calls commit_unit() exactly once, so either every write of the
operation lands or none does.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.common.errors import StoreUnavailableError

logger = logging.getLogger(__name__)


async def commit_unit(db: AsyncSession, operation: str) -> None:
    """Commit the staged writes of one operation.

    Args:
        db: Session holding the staged writes.
        operation: Operation name used in logs and in the raised error.

    Raises:
        StoreUnavailableError: If the commit fails. The session is rolled
            back before raising.
    """
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Commit failed for %s: %s", operation, str(e))
        raise StoreUnavailableError(operation, e) from e
