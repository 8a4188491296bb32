# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Email channel: mirrors inbox notifications through an SMTP relay.

Sends a plain text body with an HTML alternative via aiosmtplib. Without
a complete SMTPSettings (host, username, password, from_email) every send
is reported as skipped.
"""

from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from html import escape

import aiosmtplib

from src.core.config.settings import SMTPSettings
from src.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    NotificationPayload,
)

_HTML_TEMPLATE = """\
<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; color: #1F2937; background: #F3F4F6; margin: 0;">
  <div style="max-width: 600px; margin: 0 auto; padding: 24px; background: #FFFFFF;">
    <h2 style="color: #4F46E5; margin-top: 0;">{title}</h2>
    <p>{message}</p>
    {action}
    <p style="font-size: 12px; color: #9CA3AF; border-top: 1px solid #E5E7EB; padding-top: 12px;">
      Sent by {sender} on behalf of your school.
    </p>
  </div>
</body>
</html>
"""


class EmailChannel(BaseChannel):
    """SMTP delivery for notification mirrors."""

    channel_type = ChannelType.EMAIL

    def __init__(self, settings: SMTPSettings) -> None:
        super().__init__()
        self._settings = settings
        if not settings.is_configured:
            self.logger.info("SMTP not configured; notifications stay in-app")

    @property
    def is_configured(self) -> bool:
        return self._settings.is_configured

    async def send(self, payload: NotificationPayload) -> ChannelResult:
        if not self.is_configured:
            return self.skipped("Email channel not configured")
        if not payload.recipient_email:
            return self.skipped("No recipient email address")

        message = self.build_message(payload)
        password = self._settings.password.get_secret_value() if self._settings.password else None
        try:
            await aiosmtplib.send(
                message,
                hostname=self._settings.host,
                port=self._settings.port,
                username=self._settings.username,
                password=password,
                start_tls=self._settings.use_tls,
                timeout=self._settings.timeout,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            self.logger.error("SMTP delivery to %s failed: %s", payload.recipient_email, e)
            return self.failed(f"SMTP error: {e}")

        self.logger.info("Mailed %s to %s", payload.notification_type, payload.recipient_email)
        return self.sent(message_id=message["Message-ID"])

    def build_message(self, payload: NotificationPayload) -> EmailMessage:
        """Compose the MIME message for ``payload``."""
        settings = self._settings
        sender_domain = (settings.from_email or "").rpartition("@")[2] or None

        message = EmailMessage()
        message["From"] = formataddr((settings.from_name, settings.from_email or ""))
        message["To"] = payload.recipient_email or ""
        message["Subject"] = payload.title
        message["Message-ID"] = make_msgid(domain=sender_domain)

        text = f"{payload.message}\n"
        if payload.action_url:
            text += f"\nOpen: {payload.action_url}\n"
        message.set_content(text)

        action = ""
        if payload.action_url:
            action = f'<p><a href="{escape(payload.action_url)}">Open in SchoolOps</a></p>'
        message.add_alternative(
            _HTML_TEMPLATE.format(
                title=escape(payload.title),
                message=escape(payload.message).replace("\n", "<br>"),
                action=action,
                sender=escape(settings.from_name),
            ),
            subtype="html",
        )
        return message
