"""Notification service delivering the newsletter over SMTP."""

from email.headerregistry import Address
from email.message import EmailMessage
from email.utils import make_msgid
from typing import List, Protocol

import aiosmtplib

from mamita_newsletter.infrastructure.config import SMTPSettings
from mamita_newsletter.infrastructure.error_handling import DeliveryError
from mamita_newsletter.infrastructure.logging import LoggerMixin
from mamita_newsletter.models.email import DeliveryResult, EmailContent


class NewsletterDelivery(Protocol):
    """Sends one message with every recipient in blind copy."""

    async def send_newsletter(self, email_content: EmailContent, bcc: List[str]) -> DeliveryResult:
        ...


class SMTPDeliveryService(LoggerMixin):
    """Delivery agent submitting a single message per newsletter."""

    def __init__(self, settings: SMTPSettings):
        self.settings = settings.require_complete()

    def build_message(self, email_content: EmailContent) -> EmailMessage:
        """The message as seen by recipients: addressed to the sender only."""
        sender = self.settings.from_email
        message = EmailMessage()
        message["From"] = Address(display_name=email_content.from_name, addr_spec=sender)
        message["To"] = sender
        message["Subject"] = email_content.subject
        message["Message-ID"] = make_msgid(domain=sender.rpartition("@")[2] or None)
        message.set_content(email_content.text)
        message.add_alternative(email_content.html, subtype="html")
        return message

    async def send_newsletter(self, email_content: EmailContent, bcc: List[str]) -> DeliveryResult:
        """Submit the newsletter in one SMTP transaction.

        Raises:
            DeliveryError: If the transport fails; wraps its message.
        """
        message = self.build_message(email_content)
        # Bcc recipients go in the envelope only, never in the headers
        envelope_recipients = [self.settings.from_email] + list(bcc)

        self.logger.info(
            "Sending newsletter",
            subject=email_content.subject,
            recipients=len(bcc),
            host=self.settings.host,
            port=self.settings.port,
        )

        try:
            await aiosmtplib.send(
                message,
                sender=self.settings.from_email,
                recipients=envelope_recipients,
                hostname=self.settings.host,
                port=self.settings.port,
                username=self.settings.username,
                password=self.settings.password,
                use_tls=self.settings.use_tls,
                timeout=self.settings.timeout,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            self.logger.error("Newsletter delivery failed", error=str(e))
            raise DeliveryError(f"Error while sending emails via SMTP: {e}") from e

        self.logger.info("Newsletter sent successfully", recipients=len(bcc))
        return DeliveryResult(
            success=True,
            count=len(bcc),
            message=f"All emails were sent to {len(bcc)} subscriber(s).",
            subject=email_content.subject,
            body=email_content.html,
        )
