# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification inbox and activity feed endpoints.

Notifications:
- GET /notifications - The caller's notifications, newest first
- POST /notifications/{notification_id}/read - Mark one read
- POST /notifications/read-all - Mark all read

Activities:
- GET /activities - School activity feed (teacher or admin)
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, require_auth, require_teacher_or_admin
from src.api.middleware.auth import CurrentUser
from src.domains.notification import InboxService
from src.models.notification import (
    ActivityListResponse,
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/notifications",
    response_model=NotificationListResponse,
    summary="List notifications",
)
async def list_notifications(
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> NotificationListResponse:
    """List the caller's notifications with the unread count."""
    return await InboxService(db).list_notifications(current_user.id, limit=limit)


@router.post(
    "/notifications/read-all",
    response_model=MarkAllReadResponse,
    summary="Mark all notifications read",
)
async def mark_all_read(
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> MarkAllReadResponse:
    """Mark every unread notification of the caller as read."""
    return await InboxService(db).mark_all_read(current_user.to_context())


@router.post(
    "/notifications/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark notification read",
)
async def mark_read(
    notification_id: str,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> NotificationResponse:
    """Mark one of the caller's notifications as read."""
    return await InboxService(db).mark_read(current_user.to_context(), notification_id)


@router.get(
    "/activities",
    response_model=ActivityListResponse,
    summary="List activities",
    description="Class filter also includes school-wide entries.",
)
async def list_activities(
    class_id: Annotated[str | None, Query()] = None,
    user_id: Annotated[str | None, Query()] = None,
    activity_type: Annotated[str | None, Query()] = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    db: AsyncSession = Depends(get_db),
) -> ActivityListResponse:
    """List the school activity feed, newest first."""
    items = await InboxService(db).list_activities(
        current_user.school_id,
        class_id=class_id,
        user_id=user_id,
        activity_type=activity_type,
        limit=limit,
    )
    return ActivityListResponse(items=items)
