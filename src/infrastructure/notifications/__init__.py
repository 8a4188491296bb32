# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification System for SchoolOps.

Notifications are produced only by the derived-effects dispatcher and
delivered through two channels:
- In-app notifications (database records shown in the inbox)
- Email notifications (SMTP via aiosmtplib, best-effort)

Usage:
    from src.infrastructure.notifications import NotificationService

    service = NotificationService(settings.smtp)
    payloads = await service.stage_in_app(session, school_id, "submission_graded", "Ms. Achieng", drafts)
    await session.commit()
    await service.send_emails(payloads)

Configuration (environment variables):
- SMTP_HOST: SMTP server hostname
- SMTP_PORT: SMTP server port (default: 587)
- SMTP_USERNAME: SMTP authentication username
- SMTP_PASSWORD: SMTP authentication password
- SMTP_FROM_EMAIL: Sender email address
- SMTP_FROM_NAME: Sender display name
"""

from src.infrastructure.notifications.channels import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    DeliveryStatus,
    EmailChannel,
    InAppChannel,
    NotificationPayload,
)
from src.infrastructure.notifications.service import NotificationService, Recipient

__all__ = [
    "BaseChannel",
    "ChannelResult",
    "ChannelType",
    "DeliveryStatus",
    "EmailChannel",
    "InAppChannel",
    "NotificationPayload",
    "NotificationService",
    "Recipient",
]
