# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for notification channels."""

from unittest.mock import AsyncMock, patch

import aiosmtplib
import pytest
from pydantic import SecretStr

from src.core.config.settings import SMTPSettings
from src.infrastructure.notifications import (
    DeliveryStatus,
    EmailChannel,
    NotificationPayload,
    NotificationService,
)

SEND_PATH = "src.infrastructure.notifications.channels.email.aiosmtplib.send"


@pytest.fixture
def smtp_settings() -> SMTPSettings:
    """Fully configured relay."""
    return SMTPSettings(
        host="smtp.example.com",
        username="mailer",
        password=SecretStr("secret"),
        from_email="noreply@school.example.com",
        from_name="Mwangaza High",
    )


@pytest.fixture
def payload() -> NotificationPayload:
    return NotificationPayload(
        notification_type="submission_graded",
        message="Your submission for Essay on rivers was graded: 85%",
        recipient_id="student-1",
        school_id="school-1",
        recipient_email="amani@example.com",
        actor_name="Ms Achieng",
        action_url="/student/assignments",
        title="Submission graded",
    )


class TestEmailChannel:
    """Tests for EmailChannel."""

    @pytest.mark.asyncio
    async def test_unconfigured_skips(self, payload):
        channel = EmailChannel(SMTPSettings())

        with patch(SEND_PATH, new_callable=AsyncMock) as send:
            result = await channel.send(payload)

        assert result.status == DeliveryStatus.SKIPPED
        send.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_address_skips(self, smtp_settings, payload):
        channel = EmailChannel(smtp_settings)
        no_address = NotificationPayload(
            notification_type=payload.notification_type,
            message=payload.message,
            recipient_id=payload.recipient_id,
            school_id=payload.school_id,
        )

        result = await channel.send(no_address)

        assert result.status == DeliveryStatus.SKIPPED
        assert result.detail == "No recipient email address"

    @pytest.mark.asyncio
    async def test_sends_through_relay(self, smtp_settings, payload):
        channel = EmailChannel(smtp_settings)

        with patch(SEND_PATH, new_callable=AsyncMock) as send:
            result = await channel.send(payload)

        assert result.ok
        assert result.message_id is not None
        message = send.call_args.args[0]
        assert message["To"] == "amani@example.com"
        assert message["Subject"] == "Submission graded"
        assert "Mwangaza High" in message["From"]
        assert send.call_args.kwargs["hostname"] == "smtp.example.com"
        assert send.call_args.kwargs["password"] == "secret"

    @pytest.mark.asyncio
    async def test_relay_error_reported_not_raised(self, smtp_settings, payload):
        channel = EmailChannel(smtp_settings)

        with patch(SEND_PATH, new=AsyncMock(side_effect=aiosmtplib.SMTPException("refused"))):
            result = await channel.send(payload)

        assert result.status == DeliveryStatus.FAILED
        assert "refused" in result.detail

    def test_html_escapes_message(self, smtp_settings, payload):
        channel = EmailChannel(smtp_settings)
        hostile = NotificationPayload(
            notification_type=payload.notification_type,
            message="<script>alert(1)</script>",
            recipient_id=payload.recipient_id,
            school_id=payload.school_id,
            recipient_email=payload.recipient_email,
        )

        message = channel.build_message(hostile)
        html = message.get_body(preferencelist=("html",)).get_content()

        assert "<script>" not in html
        assert "&lt;script&gt;" in html


class TestSendEmails:
    """Tests for NotificationService.send_emails."""

    @pytest.mark.asyncio
    async def test_disabled_sends_nothing(self, smtp_settings, payload):
        service = NotificationService(smtp_settings, send_email=False)

        with patch(SEND_PATH, new_callable=AsyncMock) as send:
            assert await service.send_emails([payload]) == []

        send.assert_not_called()

    @pytest.mark.asyncio
    async def test_one_result_per_addressed_payload(self, smtp_settings, payload):
        service = NotificationService(smtp_settings)
        unaddressed = NotificationPayload(
            notification_type="submission_graded",
            message="Graded",
            recipient_id="parent-1",
            school_id="school-1",
        )

        with patch(SEND_PATH, new_callable=AsyncMock):
            results = await service.send_emails([payload, unaddressed])

        assert len(results) == 1
        assert results[0].ok
