# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared types for notification channels.

A channel turns one NotificationPayload into one delivery: an inbox row
or an email. Channels report problems in the ChannelResult they return
instead of raising, so a broken mail relay never affects the inbox.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from src.utils.datetime import utc_now


class ChannelType(str, Enum):
    IN_APP = "in_app"
    EMAIL = "email"


class DeliveryStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class NotificationPayload:
    """One message for one recipient.

    Attributes:
        notification_type: Event type that produced it, e.g. submission_graded.
        message: Body shown in the inbox and the email.
        recipient_id: Recipient's user id.
        school_id: School of the originating event.
        recipient_email: Address for the email channel, if the user has one.
        actor_name: Who caused the event.
        action_url: In-app link, e.g. /parent/assignments.
        title: Email subject.
    """

    notification_type: str
    message: str
    recipient_id: str
    school_id: str
    recipient_email: str | None = None
    actor_name: str | None = None
    action_url: str | None = None
    title: str = "SchoolOps notification"


@dataclass(frozen=True)
class ChannelResult:
    """Outcome of one send; ``detail`` explains failures and skips."""

    channel: ChannelType
    status: DeliveryStatus
    message_id: str | None = None
    detail: str | None = None
    attempted_at: datetime | None = None

    @property
    def ok(self) -> bool:
        return self.status == DeliveryStatus.SENT


class BaseChannel(ABC):
    """A delivery medium for notifications."""

    channel_type: ChannelType

    def __init__(self) -> None:
        self.logger = logging.getLogger(f"{__name__}.{type(self).__name__}")

    @abstractmethod
    async def send(self, payload: NotificationPayload) -> ChannelResult:
        """Deliver ``payload``; never raises for delivery problems."""

    def sent(self, message_id: str | None = None) -> ChannelResult:
        return self._result(DeliveryStatus.SENT, message_id=message_id)

    def failed(self, detail: str) -> ChannelResult:
        return self._result(DeliveryStatus.FAILED, detail=detail)

    def skipped(self, reason: str) -> ChannelResult:
        return self._result(DeliveryStatus.SKIPPED, detail=reason)

    def _result(self, status: DeliveryStatus, **kwargs: str | None) -> ChannelResult:
        return ChannelResult(
            channel=self.channel_type,
            status=status,
            attempted_at=utc_now(),
            **kwargs,
        )
