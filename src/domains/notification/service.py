# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Inbox and activity feed service.

Read side of the derived-effects dispatcher: users list their
notifications and mark them read, staff browse the school activity feed.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.common import NotFoundError, RequestContext, commit_unit
from src.infrastructure.database.models.tenant.notification import Activity, Notification
from src.models.notification import (
    ActivityResponse,
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
)

logger = logging.getLogger(__name__)


class InboxServiceError(Exception):
    """Base exception for inbox service errors."""

    pass


class NotificationNotFoundError(InboxServiceError, NotFoundError):
    """Raised when notification is not found or belongs to another user."""

    pass


class InboxService:
    """Service for notifications and the activity feed.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize inbox service.

        Args:
            db: Async database session.
        """
        self.db = db

    async def list_notifications(
        self,
        user_id: str,
        limit: int = 20,
    ) -> NotificationListResponse:
        """List a user's notifications, newest first.

        Args:
            user_id: Inbox owner.
            limit: Maximum notifications returned.

        Returns:
            Notifications and the user's total unread count.
        """
        result = await self.db.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .limit(limit)
        )
        unread = await self.db.scalar(
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        )
        return NotificationListResponse(
            items=[NotificationResponse.model_validate(n) for n in result.scalars()],
            unread_count=unread or 0,
        )

    async def mark_read(self, ctx: RequestContext, notification_id: str) -> NotificationResponse:
        """Mark one of the actor's notifications as read.

        Raises:
            NotificationNotFoundError: If it does not exist or is not the actor's.
        """
        notification = await self.db.get(Notification, notification_id)
        if notification is None or notification.user_id != ctx.user_id:
            raise NotificationNotFoundError(f"Notification {notification_id} not found")

        if not notification.is_read:
            notification.is_read = True
            await commit_unit(self.db, "mark_notification_read")
        return NotificationResponse.model_validate(notification)

    async def mark_all_read(self, ctx: RequestContext) -> MarkAllReadResponse:
        """Mark all of the actor's unread notifications as read in one update."""
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == ctx.user_id, Notification.is_read.is_(False))
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        await commit_unit(self.db, "mark_all_notifications_read")
        updated = result.rowcount or 0
        logger.debug("Marked %d notifications read for %s", updated, ctx.user_id)
        return MarkAllReadResponse(updated=updated)

    async def list_activities(
        self,
        school_id: str,
        class_id: str | None = None,
        user_id: str | None = None,
        activity_type: str | None = None,
        limit: int = 10,
    ) -> list[ActivityResponse]:
        """List activity feed entries of a school, newest first.

        Args:
            school_id: School whose feed is read.
            class_id: Only entries for this class, plus school-wide entries.
            user_id: Only entries where this user is actor or target.
            activity_type: Only entries of this type.
            limit: Maximum entries returned.

        Returns:
            Activity entries.
        """
        query = select(Activity).where(Activity.school_id == school_id)
        if class_id:
            query = query.where(or_(Activity.class_id == class_id, Activity.class_id.is_(None)))
        if user_id:
            query = query.where(
                or_(Activity.actor_id == user_id, Activity.target_user_id == user_id)
            )
        if activity_type:
            query = query.where(Activity.activity_type == activity_type)
        result = await self.db.execute(query.order_by(Activity.timestamp.desc()).limit(limit))
        return [ActivityResponse.model_validate(a) for a in result.scalars()]
