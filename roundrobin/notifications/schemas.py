"""Schemas for rendered emails and the notification audit log."""

from datetime import datetime

from pydantic import BaseModel, Field


class RenderedEmail(BaseModel):
    """Output of rendering one email template."""

    subject: str = Field(description="Localized subject line")
    text: str = Field(description="Plain text body")
    html: str = Field(description="HTML body")
    template_used: str = Field(description="Base template name")


class OutgoingEmail(BaseModel):
    """A single message handed to the email transport."""

    to: str = Field(description="Recipient address")
    to_name: str | None = Field(default=None, description="Recipient display name")
    subject: str
    text: str
    html: str
    sender_name: str | None = Field(default=None, description="Overrides the From name")
    reply_to: str | None = None


class NotificationRecord(BaseModel):
    """Audit log entry for one send attempt."""

    recipient_email: str
    template: str
    booking_uid: str | None = None
    subject: str | None = None
    sent_at: datetime
    success: bool
    error: str | None = None
