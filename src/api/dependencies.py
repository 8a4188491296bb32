# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependencies shared by the v1 routers.

Role checks here are coarse gates on who may call an endpoint at all.
Ownership rules (a teacher editing only their own assignment, a student
reading only their own submission) live in the domain services, which
receive the caller as a RequestContext.
"""

import logging
from typing import AsyncGenerator, Callable

from fastapi import HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.middleware.auth import CurrentUser, get_current_user
from src.core.config import get_settings
from src.infrastructure.database.connection import get_session
from src.infrastructure.database.models.tenant.user import UserRole
from src.infrastructure.storage import FileStorage, LocalFileStorage

logger = logging.getLogger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session for one request, rolled back if the handler raises."""
    async with get_session() as session:
        yield session


def require_auth(request: Request) -> CurrentUser:
    """Return the caller decoded by AuthMiddleware.

    Raises:
        HTTPException: 401 when the request carried no valid bearer token.
    """
    user = get_current_user(request)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_role(*roles: UserRole, label: str) -> Callable[[Request], CurrentUser]:
    """Build a dependency admitting only callers holding one of ``roles``.

    Args:
        *roles: Accepted roles.
        label: Human name of the group, used in the 403 message.

    Returns:
        A FastAPI dependency callable.
    """
    accepted = frozenset(role.value for role in roles)

    def dependency(request: Request) -> CurrentUser:
        user = require_auth(request)
        if user.role not in accepted:
            logger.info("Rejected %s from %s endpoint", user.role, label)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{label} access required",
            )
        return user

    dependency.__name__ = f"require_{label.lower().replace(' ', '_')}"
    return dependency


require_admin = require_role(UserRole.ADMIN, label="Admin")
require_teacher_or_admin = require_role(UserRole.TEACHER, UserRole.ADMIN, label="Teacher or admin")
require_student = require_role(UserRole.STUDENT, label="Student")


def get_file_storage() -> FileStorage:
    """Storage backend for submission uploads."""
    return LocalFileStorage(get_settings().storage)

