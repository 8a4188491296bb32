# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification inbox and activity feed domain package."""

from src.domains.notification.service import (
    InboxService,
    InboxServiceError,
    NotificationNotFoundError,
)

__all__ = [
    "InboxService",
    "InboxServiceError",
    "NotificationNotFoundError",
]
