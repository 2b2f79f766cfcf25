"""Rate limiting glue for FastAPI routes.

Routes build the list of limiters that applies to them (client IP plus a
user/action or target-resource key) and pass it to ``enforce_rate_limit``.
The combined decision either sets the informational ``RateLimit-*`` headers
on the outgoing response or raises ``RateLimitedError``, which the exception
handlers turn into a 429 with ``Retry-After``.

Disabled unless ``APP_RATE_LIMIT_ENABLED`` is true.
"""

from __future__ import annotations

import logging
from typing import Sequence

from fastapi import Request, Response

from vaultgate.core.config import settings
from vaultgate.core.errors import RateLimitedError
from vaultgate.core.logging import hash_identifier
from vaultgate.services.rate_limiter import CombinedRateLimit, RateLimiter, RateLimitRule

logger = logging.getLogger(__name__)


def client_ip(request: Request) -> str:
    """Resolve the caller's IP address.

    The first ``X-Forwarded-For`` hop is used only when the deployment says
    the proxy in front of the service can be trusted.
    """

    if settings.app.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
        real_ip = request.headers.get("x-real-ip", "").strip()
        if real_ip:
            return real_ip

    return request.client.host if request.client else "unknown"


def default_rules(ip: str, user_id: str, action: str) -> list[RateLimitRule]:
    """IP limiter plus a user/action limiter with the configured budgets."""

    window_ms = settings.app.rate_limit_window_ms
    return [
        RateLimitRule(f"ip:{ip}", settings.app.rate_limit_ip_limit, window_ms),
        RateLimitRule(f"u:{user_id}:{action}", settings.app.rate_limit_user_limit, window_ms),
    ]


def enforce_rate_limit(
    limiter: RateLimiter,
    rules: Sequence[RateLimitRule],
    response: Response | None = None,
    request: Request | None = None,
) -> CombinedRateLimit | None:
    """Throttle a route, unless rate limiting is disabled.

    Args:
        limiter: Limiter backed by the shared counter store.
        rules: Limiters that apply to this request.
        response: Outgoing response to decorate with ``RateLimit-*`` headers.
        request: When given, an admitting decision is kept on
            ``request.state.rate_limit`` so a later quota rejection can
            carry the same headers.

    Returns:
        The combined decision, or None when rate limiting is disabled.

    Raises:
        RateLimitedError: When at least one limiter rejects the request.
    """

    if not settings.app.rate_limit_enabled:
        return None
    decision = check_rate_limit(limiter, rules, response)
    if request is not None:
        request.state.rate_limit = decision
    return decision


def check_rate_limit(
    limiter: RateLimiter,
    rules: Sequence[RateLimitRule],
    response: Response | None = None,
) -> CombinedRateLimit:
    """Evaluate ``rules`` together and reject the request if any limiter trips."""

    decision = limiter.hit_all(rules)
    key_hashes = [hash_identifier(rule.key) for rule in rules]

    if decision.success:
        logger.debug(
            "rate_limit.allowed",
            extra={"key_hashes": key_hashes, "limit": decision.limit, "remaining": decision.remaining},
        )
        if response is not None and settings.app.rate_limit_include_headers:
            response.headers.update(decision.headers())
        return decision

    retry_after = decision.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hashes": key_hashes,
            "rejected": [hash_identifier(r.key) for r in decision.results if not r.success],
            "limit": decision.limit,
            "retry_after_s": retry_after,
        },
    )
    raise RateLimitedError(
        code="rate_limited",
        message="Too many requests. Try again later.",
        details={
            "retry_after": retry_after,
            "limit": decision.limit,
            "remaining": 0,
            "reset": decision.reset_seconds,
        },
    )
