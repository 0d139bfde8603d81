"""Email notifications for reassigned bookings and workflow reminders."""

from roundrobin.notifications.renderer import EmailRenderer
from roundrobin.notifications.schemas import NotificationRecord, OutgoingEmail, RenderedEmail
from roundrobin.notifications.service import NotificationService, host_emails_disabled
from roundrobin.notifications.transport import EmailDeliveryError, SmtpEmailTransport

__all__ = [
    "EmailDeliveryError",
    "EmailRenderer",
    "NotificationRecord",
    "NotificationService",
    "OutgoingEmail",
    "RenderedEmail",
    "SmtpEmailTransport",
    "host_emails_disabled",
]
