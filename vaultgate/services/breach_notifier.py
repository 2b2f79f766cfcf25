"""Best-effort "limit reached" notifications.

Notifications run on a small background thread pool. The admission decision
never waits on them, and any failure inside the worker (unknown user, SMTP
error, template error) is logged and dropped. There is no deduplication: a
user who trips the same limit three times in a burst gets three emails.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor

from vaultgate.adapters.mail.base import AbstractMailer
from vaultgate.adapters.mail.templates import render_limit_reached
from vaultgate.adapters.store.base import AbstractGovernanceStore
from vaultgate.core.errors import AppError

logger = logging.getLogger(__name__)


class BreachNotifier:
    """Fire-and-forget limit notifications."""

    def __init__(
        self,
        store: AbstractGovernanceStore,
        mailer: AbstractMailer,
        *,
        disabled: bool = False,
        executor: ThreadPoolExecutor | None = None,
        max_workers: int = 2,
        product_name: str = "Vault",
        support_email: str | None = None,
        support_name: str | None = None,
    ) -> None:
        """Initialize the notifier.

        Args:
            store: Used to resolve the user's email address.
            mailer: Transport for the rendered message.
            disabled: Global kill switch; when set, ``notify`` is a no-op.
            executor: Pool to run sends on; one is created when omitted.
            max_workers: Size of the created pool.
            product_name: Brand used in the email header.
            support_email: Footer contact address.
            support_name: Footer signature.
        """
        self._store = store
        self._mailer = mailer
        self._disabled = disabled
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="breach-notifier"
        )
        self._product_name = product_name
        self._support_email = support_email
        self._support_name = support_name

    @property
    def disabled(self) -> bool:
        return self._disabled

    def notify(self, user_id: str, limit_name: str, details: str | None = None) -> Future | None:
        """Schedule a notification and return immediately.

        Returns:
            The scheduled future (useful in tests), or None when suppressed.
        """
        if self._disabled:
            logger.debug("notifier.suppressed", extra={"user_id": user_id, "limit_name": limit_name})
            return None
        try:
            return self._executor.submit(self._send, user_id, limit_name, details)
        except RuntimeError:
            # Pool already shut down during application teardown.
            logger.warning("notifier.dispatch_failed", extra={"user_id": user_id, "limit_name": limit_name})
            return None

    def _send(self, user_id: str, limit_name: str, details: str | None) -> bool:
        try:
            user = self._store.get_user(user_id)
            if user is None or not user.email:
                logger.info("notifier.no_recipient", extra={"user_id": user_id, "limit_name": limit_name})
                return False

            message = render_limit_reached(
                limit_name,
                details,
                product_name=self._product_name,
                support_email=self._support_email,
                support_name=self._support_name,
            )
            self._mailer.send(user.email, message.subject, message.html, text=message.text)
        except AppError as exc:
            logger.warning(
                "notifier.send_failed",
                extra={"user_id": user_id, "limit_name": limit_name, "error_code": exc.code},
            )
            return False
        except Exception:
            logger.exception("notifier.send_failed", extra={"user_id": user_id, "limit_name": limit_name})
            return False

        logger.info("notifier.sent", extra={"user_id": user_id, "limit_name": limit_name})
        return True

    def shutdown(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)
