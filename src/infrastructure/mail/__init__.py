"""
Administrative email notifications over SMTP.
"""

from .client import (
    MailConfig,
    MockNotifier,
    NotificationError,
    SMTPNotifier,
    create_notifier,
)

__all__ = [
    "MailConfig",
    "MockNotifier",
    "NotificationError",
    "SMTPNotifier",
    "create_notifier",
]
