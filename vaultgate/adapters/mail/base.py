"""Mailer interface used by the breach notifier."""

from __future__ import annotations

from abc import ABC, abstractmethod


class AbstractMailer(ABC):
    """Interface for outbound email transports."""

    @abstractmethod
    def send(self, to: str, subject: str, html: str, *, text: str | None = None) -> None:
        """Send one message.

        Args:
            to: Recipient address.
            subject: Message subject.
            html: HTML body.
            text: Optional plain-text alternative.

        Raises:
            MailAppError: If the transport is misconfigured or delivery fails.
        """
        raise NotImplementedError
