"""Transactional e-mail delivery.

Bodies are rendered from Jinja2 templates under ``src/templates/email``
(one ``.html`` and one ``.txt`` per message) and sent over SMTP in a worker
thread. Development sends to the sandbox SMTP server configured in
settings; production sends through SendGrid's SMTP relay.
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import TYPE_CHECKING, Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from src.api.templating import TEMPLATES_DIR
from src.core.exceptions import UpstreamFailure

if TYPE_CHECKING:
    from src.core.config import Settings
    from src.db.models import User

logger = logging.getLogger(__name__)

SENDGRID_HOST = "smtp.sendgrid.net"
SENDGRID_PORT = 587

WELCOME_SUBJECT = "Welcome to the Tourbook Family!"
PASSWORD_RESET_SUBJECT = "Your password reset token (valid for only 10 minutes)"


class EmailDeliveryError(UpstreamFailure):
    """Raised when the SMTP transport rejects or fails to deliver a message."""

    pass


@dataclass(frozen=True)
class SMTPTransport:
    """Connection parameters for one SMTP relay."""

    host: str
    port: int
    username: str | None
    password: str | None
    starttls: bool = False


class EmailService:
    """Renders and sends account e-mails."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._env = Environment(
            loader=FileSystemLoader(TEMPLATES_DIR / "email"),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    @property
    def transport(self) -> SMTPTransport:
        """SMTP relay for the current environment."""
        if self._settings.is_production:
            return SMTPTransport(
                host=SENDGRID_HOST,
                port=SENDGRID_PORT,
                username=self._settings.sendgrid_username,
                password=self._settings.sendgrid_password,
                starttls=True,
            )
        return SMTPTransport(
            host=self._settings.smtp_host,
            port=self._settings.smtp_port,
            username=self._settings.smtp_user,
            password=self._settings.smtp_password,
        )

    async def send_welcome(self, user: User, url: str) -> None:
        """Send the post-signup welcome e-mail.

        Args:
            user: New user.
            url: Link to the user's account page.

        Raises:
            EmailDeliveryError: If delivery fails.
        """
        await self.send(user, "welcome", WELCOME_SUBJECT, url=url)

    async def send_password_reset(self, user: User, url: str) -> None:
        """Send the password reset link.

        Args:
            user: User who asked for the reset.
            url: Reset link carrying the plaintext token.

        Raises:
            EmailDeliveryError: If delivery fails.
        """
        await self.send(user, "password_reset", PASSWORD_RESET_SUBJECT, url=url)

    async def send(self, user: User, template: str, subject: str, **context: Any) -> None:
        """Render ``template`` for ``user`` and deliver it.

        Args:
            user: Recipient.
            template: Template base name (without extension).
            subject: Message subject.
            **context: Extra template variables.

        Raises:
            EmailDeliveryError: If delivery fails.
        """
        context |= {"first_name": user.name.split(" ")[0], "subject": subject}
        text_body = self._env.get_template(f"{template}.txt").render(**context)
        html_body = self._env.get_template(f"{template}.html").render(**context)
        message = self._create_message(user.email, subject, text_body, html_body)
        await asyncio.to_thread(self._send_message, user.email, message)

    def _create_message(
        self,
        to_email: str,
        subject: str,
        text_body: str,
        html_body: str,
    ) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self._settings.email_from_name} <{self._settings.email_from}>"
        msg["To"] = to_email
        msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))
        return msg

    def _send_message(self, to_email: str, message: MIMEMultipart) -> None:
        transport = self.transport
        try:
            with smtplib.SMTP(transport.host, transport.port, timeout=30) as server:
                if transport.starttls:
                    server.starttls(context=ssl.create_default_context())
                if transport.username:
                    server.login(transport.username, transport.password or "")
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            raise EmailDeliveryError("There was an error sending the email.") from e

        logger.info(f"Email sent to {to_email}: {message['Subject']}")
