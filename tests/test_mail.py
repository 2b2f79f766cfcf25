"""Tests for the SMTP mailer and the limit-reached template."""

import smtplib
from unittest.mock import MagicMock, patch

import pytest

from vaultgate.adapters.mail.smtp import SmtpMailer
from vaultgate.adapters.mail.templates import render_limit_reached
from vaultgate.core.errors import MailAppError


class TestTemplate:
    def test_subject_names_the_limit(self) -> None:
        message = render_limit_reached("Storage limit")

        assert message.subject == "Limit reached: Storage limit"
        assert "Storage limit" in message.html
        assert "Storage limit" in message.text

    def test_details_and_brand_are_escaped(self) -> None:
        message = render_limit_reached(
            "Files limit",
            "<script>alert(1)</script>",
            product_name="Vault & Co",
        )

        assert "<script>" not in message.html
        assert "&lt;script&gt;" in message.html
        assert "Vault &amp; Co" in message.html

    def test_support_footer(self) -> None:
        message = render_limit_reached(
            "Files limit",
            support_email="help@example.com",
            support_name="The Vault team",
        )

        assert "mailto:help@example.com" in message.html
        assert "The Vault team" in message.html
        assert "help@example.com" in message.text


class TestSmtpMailer:
    def test_requires_host(self) -> None:
        mailer = SmtpMailer(host=None)

        with pytest.raises(MailAppError) as exc_info:
            mailer.send("ada@example.com", "s", "<p>h</p>")

        assert exc_info.value.code == "smtp_not_configured"

    @patch("vaultgate.adapters.mail.smtp.smtplib.SMTP")
    def test_sends_with_starttls_and_login(self, smtp_cls: MagicMock) -> None:
        client = smtp_cls.return_value
        client.__enter__.return_value = client
        mailer = SmtpMailer(
            host="smtp.example.com",
            username="mailer",
            password="secret",
            from_address="vault@example.com",
        )

        mailer.send("ada@example.com", "Limit reached: Files limit", "<p>hi</p>", text="hi")

        smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=10.0)
        client.starttls.assert_called_once()
        client.login.assert_called_once_with("mailer", "secret")
        sent = client.send_message.call_args.args[0]
        assert sent["To"] == "ada@example.com"
        assert sent["From"] == "vault@example.com"
        assert sent["Subject"] == "Limit reached: Files limit"

    @patch("vaultgate.adapters.mail.smtp.smtplib.SMTP_SSL")
    def test_port_465_uses_implicit_tls(self, smtp_ssl_cls: MagicMock) -> None:
        mailer = SmtpMailer(host="smtp.example.com", port=465, from_address="vault@example.com")

        mailer.send("ada@example.com", "s", "<p>h</p>")

        smtp_ssl_cls.assert_called_once_with("smtp.example.com", 465, timeout=10.0)

    @patch("vaultgate.adapters.mail.smtp.smtplib.SMTP")
    def test_transport_errors_are_wrapped(self, smtp_cls: MagicMock) -> None:
        smtp_cls.side_effect = smtplib.SMTPConnectError(421, "busy")
        mailer = SmtpMailer(host="smtp.example.com", use_tls=False)

        with pytest.raises(MailAppError) as exc_info:
            mailer.send("ada@example.com", "s", "<p>h</p>")

        assert exc_info.value.code == "smtp_send_failed"
