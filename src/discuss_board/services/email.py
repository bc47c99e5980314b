"""Account email delivery: address verification and password reset.

Messages are rendered from Jinja2 templates (HTML and plain text) under
``discuss_board/templates/email`` and sent over SMTP. With SMTP disabled
the message is only logged, which is the default for development.

Usage:
    from discuss_board.services.email import AccountEmailService

    email_service = AccountEmailService(settings.smtp, settings.public_base_url)
    email_service.send_verification(to_email="member@example.com", nickname="ada",
                                    token=token)
"""

from __future__ import annotations

import logging
import secrets
import smtplib
import ssl
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import TYPE_CHECKING
from urllib.parse import urlencode

from jinja2 import Environment, PackageLoader, select_autoescape

if TYPE_CHECKING:
    from discuss_board.core.config import SMTPSettings

logger = logging.getLogger(__name__)


class EmailError(Exception):
    """Base exception for email operations."""


class EmailDeliveryError(EmailError):
    """Raised when email delivery fails."""


@dataclass(frozen=True, slots=True)
class EmailResult:
    """Outcome of a send attempt.

    Attributes:
        sent: Whether the message was handed to the SMTP server.
        message_id: SMTP message ID when sent.
        template: Template base name used.
    """

    sent: bool
    message_id: str | None
    template: str


class AccountEmailService:
    """Render and send account lifecycle emails."""

    def __init__(
        self,
        smtp_settings: SMTPSettings,
        base_url: str = "http://localhost:8000",
        app_name: str = "Discuss Board",
    ) -> None:
        self.smtp_settings = smtp_settings
        self.base_url = base_url.rstrip("/")
        self.app_name = app_name

        self._env = Environment(
            loader=PackageLoader("discuss_board", "templates/email"),
            autoescape=select_autoescape(["html", "xml"]),
        )

    def send_verification(self, *, to_email: str, nickname: str, token: str) -> EmailResult:
        link = f"{self.base_url}/auth/verify-email?{urlencode({'token': token})}"
        return self._send_template(
            "verification",
            to_email=to_email,
            subject=f"{self.app_name}: confirm your email address",
            context={"nickname": nickname, "link": link},
        )

    def send_password_reset(
        self, *, to_email: str, nickname: str, token: str, expires_minutes: int
    ) -> EmailResult:
        link = f"{self.base_url}/auth/password/reset?{urlencode({'token': token})}"
        return self._send_template(
            "password_reset",
            to_email=to_email,
            subject=f"{self.app_name}: reset your password",
            context={
                "nickname": nickname,
                "link": link,
                "expires_minutes": expires_minutes,
            },
        )

    def render(self, template: str, context: dict[str, object]) -> tuple[str, str]:
        """Render ``template`` to (html_body, text_body)."""
        full_context = {"app_name": self.app_name, **context}
        html_body = self._env.get_template(f"{template}.html").render(**full_context)
        text_body = self._env.get_template(f"{template}.txt").render(**full_context)
        return html_body, text_body

    def _send_template(
        self,
        template: str,
        *,
        to_email: str,
        subject: str,
        context: dict[str, object],
    ) -> EmailResult:
        html_body, text_body = self.render(template, context)

        if not self.smtp_settings.enabled:
            # Token stays out of the log line
            logger.info(
                "SMTP disabled, email not sent",
                extra={"template": template, "subject": subject},
            )
            return EmailResult(sent=False, message_id=None, template=template)

        message_id = self._send_email(to_email, subject, html_body, text_body)
        logger.info(
            "Email sent",
            extra={"template": template, "message_id": message_id},
        )
        return EmailResult(sent=True, message_id=message_id, template=template)

    def _send_email(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> str:
        """Send an email via SMTP.

        Returns:
            SMTP message ID.

        Raises:
            EmailDeliveryError: If the email cannot be sent.
        """
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.smtp_settings.from_name} <{self.smtp_settings.from_address}>"
        msg["To"] = to_email

        domain = self.smtp_settings.from_address.rsplit("@", 1)[-1]
        message_id = f"<{secrets.token_hex(16)}@{domain}>"
        msg["Message-ID"] = message_id

        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            if self.smtp_settings.use_ssl:
                context = ssl.create_default_context()
                server = smtplib.SMTP_SSL(
                    self.smtp_settings.host,
                    self.smtp_settings.port,
                    timeout=self.smtp_settings.timeout,
                    context=context,
                )
            else:
                server = smtplib.SMTP(
                    self.smtp_settings.host,
                    self.smtp_settings.port,
                    timeout=self.smtp_settings.timeout,
                )
                if self.smtp_settings.use_tls:
                    context = ssl.create_default_context()
                    server.starttls(context=context)

            if self.smtp_settings.username and self.smtp_settings.password:
                server.login(
                    self.smtp_settings.username,
                    self.smtp_settings.password.get_secret_value(),
                )

            server.sendmail(
                self.smtp_settings.from_address,
                [to_email],
                msg.as_string(),
            )
            server.quit()

            return message_id

        except smtplib.SMTPException as e:
            msg_text = f"SMTP error: {e}"
            raise EmailDeliveryError(msg_text) from e
        except OSError as e:
            msg_text = f"Connection error: {e}"
            raise EmailDeliveryError(msg_text) from e
