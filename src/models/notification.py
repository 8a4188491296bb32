# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Inbox and activity feed models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class NotificationResponse(BaseModel):
    """A notification in the user's inbox."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    notification_type: str
    message: str
    link: str | None = None
    actor_name: str | None = None
    is_read: bool
    created_at: datetime


class NotificationListResponse(BaseModel):
    """A user's notifications, newest first."""

    items: list[NotificationResponse]
    unread_count: int


class MarkAllReadResponse(BaseModel):
    """How many notifications were marked read."""

    updated: int


class ActivityResponse(BaseModel):
    """An activity feed entry."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    class_id: str | None = None
    actor_id: str | None = None
    actor_name: str | None = None
    target_user_id: str | None = None
    target_user_name: str | None = None
    activity_type: str
    message: str
    link: str | None = None
    timestamp: datetime


class ActivityListResponse(BaseModel):
    """Activity feed page."""

    items: list[ActivityResponse]
