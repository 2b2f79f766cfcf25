"""Factory for creating the configured mailer."""

from vaultgate.adapters.mail.base import AbstractMailer
from vaultgate.adapters.mail.smtp import SmtpMailer
from vaultgate.core.config import SmtpSettings, settings


def create_mailer(smtp_settings: SmtpSettings | None = None) -> AbstractMailer:
    """Instantiate the mailer from SMTP settings.

    A missing ``SMTP_HOST`` is not an error here: the mailer is still built
    and every send raises ``MailAppError``, which the breach notifier logs and
    swallows.

    Args:
        smtp_settings: Optional settings; defaults to the global ones.

    Returns:
        AbstractMailer: Configured mailer instance.
    """
    cfg = smtp_settings or settings.smtp
    return SmtpMailer(
        host=cfg.host,
        port=cfg.port,
        username=cfg.user,
        password=cfg.password,
        from_address=cfg.from_address,
        use_tls=cfg.use_tls,
        timeout_seconds=cfg.timeout_seconds,
    )
