"""SMTP email transport.

smtplib is blocking, so each send runs in a worker thread.
"""

import asyncio
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

import structlog

from roundrobin.config import Settings, get_settings
from roundrobin.notifications.schemas import OutgoingEmail

logger = structlog.get_logger()


class EmailDeliveryError(Exception):
    """The SMTP server rejected or could not receive a message."""


class SmtpEmailTransport:
    """Sends OutgoingEmail messages through an SMTP relay."""

    def __init__(self, settings: Settings | None = None):
        self._settings = settings or get_settings()

    def _build(self, message: OutgoingEmail) -> MIMEMultipart:
        s = self._settings
        msg = MIMEMultipart("alternative")
        msg["Subject"] = message.subject
        msg["From"] = formataddr((message.sender_name or s.email_from_name, s.email_from))
        msg["To"] = formataddr((message.to_name or "", message.to))
        if message.reply_to:
            msg["Reply-To"] = message.reply_to
        msg.attach(MIMEText(message.text, "plain", "utf-8"))
        msg.attach(MIMEText(message.html, "html", "utf-8"))
        return msg

    async def send(self, message: OutgoingEmail) -> None:
        """Deliver one message.

        Raises:
            EmailDeliveryError: If no SMTP host is configured or delivery fails
        """
        s = self._settings
        if not s.smtp_host:
            raise EmailDeliveryError("SMTP host is not configured")
        mime = self._build(message)

        def _send() -> None:
            with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=30) as server:
                if s.smtp_use_tls:
                    server.starttls()
                if s.smtp_username and s.smtp_password:
                    server.login(s.smtp_username, s.smtp_password)
                server.sendmail(s.email_from, [message.to], mime.as_string())

        try:
            await asyncio.to_thread(_send)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP send failed", to=message.to, error=str(e))
            raise EmailDeliveryError(f"Sending to {message.to} failed: {e}") from e
        logger.info("Email sent", to=message.to, subject=message.subject)
