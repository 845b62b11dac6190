"""
SMTP notifier for new submissions.

Sends one plain-text email per submission to the configured admin address.
smtplib is blocking, so delivery runs in a worker thread to keep the event
loop free while the relay negotiates TLS and accepts the message.

Mock mode records messages in memory instead of sending them.
"""

import asyncio
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional, Protocol

from ...core.submissions.models import Submission

logger = logging.getLogger(__name__)

SUBJECT = "New Video Submission"


class NotificationError(Exception):
    """Raised when the notification email can't be delivered."""
    pass


@dataclass
class MailConfig:
    """SMTP relay settings."""
    host: str
    port: int
    sender: str
    recipient: str
    user: str = ""
    password: str = ""
    secure: bool = False  # implicit TLS, otherwise STARTTLS when offered
    reject_unauthorized: bool = True
    timeout_seconds: float = 30.0


class SubmissionNotifier(Protocol):
    async def notify_submission(self, submission: Submission) -> None: ...


def build_submission_email(submission: Submission, sender: str, recipient: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = sender
    message["To"] = recipient
    message["Subject"] = SUBJECT
    message.set_content(
        f"New video submitted by {submission.name}.\n\nView it at: {submission.page_url}"
    )
    return message


class SMTPNotifier:
    """Delivers submission notifications through an SMTP relay."""

    def __init__(self, config: MailConfig) -> None:
        self._config = config

    async def notify_submission(self, submission: Submission) -> None:
        if not self._config.host or not self._config.recipient:
            raise NotificationError("Mail relay or recipient is not configured")

        message = build_submission_email(
            submission,
            sender=self._config.sender,
            recipient=self._config.recipient,
        )

        try:
            await asyncio.to_thread(self._send, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(
                "Failed to send notification",
                extra={
                    "submission_id": submission.id,
                    "host": self._config.host,
                    "error": str(e),
                }
            )
            raise NotificationError(f"Email delivery failed: {e}")

        logger.info(
            "Sent submission notification",
            extra={"submission_id": submission.id, "recipient": self._config.recipient}
        )

    def _send(self, message: EmailMessage) -> None:
        context = self._tls_context()

        if self._config.secure:
            with smtplib.SMTP_SSL(
                self._config.host,
                self._config.port,
                timeout=self._config.timeout_seconds,
                context=context,
            ) as smtp:
                self._deliver(smtp, message)
            return

        with smtplib.SMTP(
            self._config.host,
            self._config.port,
            timeout=self._config.timeout_seconds,
        ) as smtp:
            smtp.ehlo()
            if smtp.has_extn("starttls"):
                smtp.starttls(context=context)
                smtp.ehlo()
            self._deliver(smtp, message)

    def _deliver(self, smtp: smtplib.SMTP, message: EmailMessage) -> None:
        if self._config.user:
            smtp.login(self._config.user, self._config.password)
        smtp.send_message(message)

    def _tls_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context()
        if not self._config.reject_unauthorized:
            # relay uses a self-signed or mismatched certificate
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context


# ---------------------------------------------------------------------------
# Mock Notifier for Local Development
# ---------------------------------------------------------------------------

class MockNotifier:
    """Keeps notification emails in memory."""

    def __init__(self, sender: str = "noreply@localhost", recipient: str = "admin@localhost") -> None:
        self._sender = sender
        self._recipient = recipient
        self.sent: list[EmailMessage] = []
        logger.info("Initialized mock notifier (in-memory)")

    async def notify_submission(self, submission: Submission) -> None:
        message = build_submission_email(submission, self._sender, self._recipient)
        self.sent.append(message)
        logger.debug(
            "Recorded notification in mock notifier",
            extra={"submission_id": submission.id}
        )


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_notifier(
    config: Optional[MailConfig] = None,
    mock_mode: bool = False,
) -> SubmissionNotifier:
    """
    Create notifier based on configuration.

    Args:
        config: SMTP configuration (required if not mock_mode)
        mock_mode: If True, return in-memory notifier
    """
    if mock_mode:
        return MockNotifier()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return SMTPNotifier(config)
