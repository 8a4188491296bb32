# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Inbox channel: stages Notification rows on a session the caller commits."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models.base import new_id
from src.infrastructure.database.models.tenant.notification import Notification
from src.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    NotificationPayload,
)


class InAppChannel(BaseChannel):
    """Writes unread inbox rows.

    Bound to one session, so each effect run builds its own channel and
    concurrent runs never stage rows on each other's transaction.
    """

    channel_type = ChannelType.IN_APP

    def __init__(self, session: AsyncSession) -> None:
        super().__init__()
        self._session = session

    async def send(self, payload: NotificationPayload) -> ChannelResult:
        notification = Notification(
            id=new_id(),
            school_id=payload.school_id,
            user_id=payload.recipient_id,
            notification_type=payload.notification_type,
            message=payload.message,
            link=payload.action_url,
            actor_name=payload.actor_name,
            is_read=False,
        )
        self._session.add(notification)
        self.logger.debug(
            "Staged %s notification %s for %s",
            payload.notification_type,
            notification.id,
            payload.recipient_id,
        )
        return self.sent(message_id=notification.id)
