# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification delivery orchestration.

Delivery happens in two phases driven by the dispatcher:
1. stage_in_app() resolves recipients in the event's school and stages
   one in-app record per recipient on the dispatcher's session.
2. After that session commits, send_emails() mirrors the same payloads
   to email. Email failures are reported per recipient and never raised.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import SMTPSettings
from src.infrastructure.database.models.tenant.user import User
from src.infrastructure.notifications.channels import (
    ChannelResult,
    EmailChannel,
    InAppChannel,
    NotificationPayload,
)

logger = logging.getLogger(__name__)

# Subject lines per notification type; anything else gets the default title.
EMAIL_TITLES = {
    "assignment_created": "New assignment posted",
    "assignment_updated": "Assignment updated",
    "submission_received": "New submission received",
    "submission_graded": "Submission graded",
    "student_joined_class": "Class enrollment",
    "exam_period_finalized": "Exam results available",
}


@dataclass
class Recipient:
    """A notification recipient resolved from the users table.

    Attributes:
        user_id: User's id.
        email: User's email address, if any.
        display_name: User's display name.
    """

    user_id: str
    email: str | None
    display_name: str


class NotificationService:
    """Stages in-app notifications and mirrors them to email.

    Attributes:
        send_email: Whether send_emails() actually sends.
    """

    def __init__(self, smtp_settings: SMTPSettings, send_email: bool = True) -> None:
        """Initialize the notification service.

        Args:
            smtp_settings: SMTP configuration for the email channel.
            send_email: Disable to keep notifications in-app only.
        """
        self._email = EmailChannel(smtp_settings)
        self.send_email = send_email and self._email.is_configured

    async def stage_in_app(
        self,
        session: AsyncSession,
        school_id: str,
        notification_type: str,
        actor_name: str | None,
        drafts: Sequence[tuple[str, str, str | None]],
    ) -> list[NotificationPayload]:
        """Stage in-app records for each (user_id, message, link) draft.

        Drafts addressed to users that do not exist in the school are
        dropped.

        Args:
            session: Dispatcher-owned session; the caller commits.
            school_id: School of the originating event.
            notification_type: Event type string.
            actor_name: Name of the user who caused the event.
            drafts: Recipient id, message and link per notification.

        Returns:
            Payloads that were staged, with recipient emails filled in.
        """
        if not drafts:
            return []

        recipients = await self._find_recipients(
            session, school_id, [user_id for user_id, _, _ in drafts]
        )

        in_app = InAppChannel(session)
        payloads: list[NotificationPayload] = []
        for user_id, message, link in drafts:
            recipient = recipients.get(user_id)
            if recipient is None:
                logger.debug("Skipping notification for unknown user %s", user_id)
                continue

            payload = NotificationPayload(
                notification_type=notification_type,
                message=message,
                recipient_id=user_id,
                school_id=school_id,
                recipient_email=recipient.email,
                actor_name=actor_name,
                action_url=link,
                title=EMAIL_TITLES.get(notification_type, "SchoolOps notification"),
            )
            await in_app.send(payload)
            payloads.append(payload)

        return payloads

    async def send_emails(self, payloads: Sequence[NotificationPayload]) -> list[ChannelResult]:
        """Mirror staged notifications to email.

        Args:
            payloads: Payloads returned by stage_in_app().

        Returns:
            One ChannelResult per payload that had an email address.
        """
        if not self.send_email:
            return []

        targets = [p for p in payloads if p.recipient_email]
        results = await asyncio.gather(*[self._email.send(p) for p in targets])

        failed = [r for r in results if not r.ok]
        if failed:
            logger.warning(
                "Email not delivered to %d of %d recipients",
                len(failed),
                len(targets),
            )
        return list(results)

    async def _find_recipients(
        self,
        session: AsyncSession,
        school_id: str,
        user_ids: list[str],
    ) -> dict[str, Recipient]:
        """Load recipients in one query, keyed by user id."""
        result = await session.execute(
            select(User.id, User.email, User.display_name).where(
                User.id.in_(list(set(user_ids))),
                User.school_id == school_id,
            )
        )
        return {
            row.id: Recipient(user_id=row.id, email=row.email, display_name=row.display_name)
            for row in result.all()
        }
