"""SMTP delivery for outgoing notification emails."""
from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage

from app.config import Settings, get_settings


logger = logging.getLogger(__name__)


class MailDeliveryError(RuntimeError):
    """Raised when the SMTP server could not accept a message."""

    def __init__(self, recipient: str, reason: str) -> None:
        super().__init__(f"Failed to deliver email to {recipient}: {reason}")
        self.recipient = recipient
        self.reason = reason


@dataclass(frozen=True)
class OutgoingEmail:
    """A fully rendered message ready to hand to the transport."""

    to: str
    subject: str
    text_body: str
    html_body: str | None = None


class Mailer:
    """Thin wrapper around ``smtplib`` configured from application settings."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def build_message(self, email: OutgoingEmail) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.settings.mail_from
        message["To"] = email.to
        message["Subject"] = email.subject
        message.set_content(email.text_body)
        if email.html_body:
            message.add_alternative(email.html_body, subtype="html")
        return message

    def send(self, email: OutgoingEmail) -> None:
        """
        Deliver a single email.

        Raises:
            MailDeliveryError: if the message cannot be built (bad address header)
                or the connection, authentication or handoff fails
        """
        settings = self.settings

        try:
            message = self.build_message(email)
            with smtplib.SMTP(
                settings.smtp_host,
                settings.smtp_port,
                timeout=settings.smtp_timeout_seconds,
            ) as smtp:
                if settings.smtp_use_tls:
                    smtp.starttls()
                if settings.smtp_username:
                    smtp.login(settings.smtp_username, settings.smtp_password or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError, ValueError) as exc:
            logger.error(
                "SMTP delivery failed via %s:%s (to=%s, subject=%s): %s",
                settings.smtp_host,
                settings.smtp_port,
                email.to,
                email.subject,
                exc,
            )
            raise MailDeliveryError(email.to, str(exc)) from exc

        logger.info("Email sent to %s (subject=%s)", email.to, email.subject)
