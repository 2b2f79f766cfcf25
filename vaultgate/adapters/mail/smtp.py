"""SMTP mailer built on the standard library ``smtplib``."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from vaultgate.adapters.mail.base import AbstractMailer
from vaultgate.core.errors import MailAppError

logger = logging.getLogger(__name__)


class SmtpMailer(AbstractMailer):
    """Send messages through an SMTP relay.

    Port 465 uses implicit TLS (``SMTP_SSL``); any other port uses a plain
    connection upgraded with STARTTLS when ``use_tls`` is set.
    """

    def __init__(
        self,
        *,
        host: str | None,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        from_address: str | None = None,
        use_tls: bool = True,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._from_address = from_address
        self._use_tls = use_tls
        self._timeout = timeout_seconds

    def _build_message(self, to: str, subject: str, html: str, text: str | None) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self._from_address or (self._username or "")
        msg["To"] = to
        msg.set_content(text or "This message requires an HTML-capable mail client.")
        msg.add_alternative(html, subtype="html")
        return msg

    def _connect(self) -> smtplib.SMTP:
        if self._port == 465:
            return smtplib.SMTP_SSL(self._host, self._port, timeout=self._timeout)
        client = smtplib.SMTP(self._host, self._port, timeout=self._timeout)
        if self._use_tls:
            client.starttls()
        return client

    def send(self, to: str, subject: str, html: str, *, text: str | None = None) -> None:
        if not self._host:
            raise MailAppError(
                code="smtp_not_configured",
                message="SMTP host is not configured",
                details={"hint": "Set SMTP_HOST to enable outbound email"},
            )

        msg = self._build_message(to, subject, html, text)
        try:
            with self._connect() as client:
                if self._username and self._password:
                    client.login(self._username, self._password)
                client.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise MailAppError(
                code="smtp_send_failed",
                message="Failed to deliver email",
                details={"context": {"error_type": type(exc).__name__, "smtp_host": self._host}},
            ) from exc

        logger.info("mail.sent", extra={"subject": subject, "smtp_host": self._host})
