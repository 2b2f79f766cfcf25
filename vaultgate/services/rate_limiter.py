"""Fixed-window rate limiting and the rule for combining several limiters.

A logical request may be checked against several independent limiters (one
keyed by caller IP, one by user and action, one by target resource). The
request is admitted only when every limiter admits it; when any rejects, the
reported wait is the longest wait among the rejecting limiters.

Every evaluated limiter records its hit, even when another one has already
rejected the request, so a burst against one key cannot hide behind another.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from vaultgate.adapters.counter_store.base import AbstractCounterStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitRule:
    """One limiter to evaluate: ``limit`` hits per ``window_ms`` for ``key``."""

    key: str
    limit: int
    window_ms: int


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single ``hit``.

    Attributes:
        success: Whether this hit stayed within the limit.
        key: Counter key that was hit.
        limit: Max hits per window.
        count: Hits recorded in the current window, including this one.
        remaining: Hits left in the window (0 when blocked).
        window_ms: Window length in milliseconds.
        reset_at: UNIX epoch seconds when the current window ends.
        retry_after_seconds: Whole seconds until the window ends, when blocked.
    """

    success: bool
    key: str
    limit: int
    count: int
    remaining: int
    window_ms: int
    reset_at: int
    retry_after_seconds: int | None


@dataclass(frozen=True)
class CombinedRateLimit:
    """AND-combination of several limiter results for one request.

    Attributes:
        success: True only if every limiter admitted the request.
        limit: Smallest configured limit among the combined limiters.
        remaining: Smallest remaining count (0 on failure).
        reset_seconds: Seconds until the limiting window resets.
        retry_after_seconds: Longest wait among rejecting limiters, when blocked.
        results: Individual results in evaluation order.
    """

    success: bool
    limit: int
    remaining: int
    reset_seconds: int
    retry_after_seconds: int | None
    results: tuple[RateLimitResult, ...]

    def headers(self) -> dict[str, str]:
        """Boundary headers; ``Retry-After``/``Remaining`` only when blocked."""
        headers = {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Reset": str(self.reset_seconds),
        }
        if not self.success:
            headers["RateLimit-Remaining"] = "0"
            headers["Retry-After"] = str(self.retry_after_seconds or 0)
        return headers

    def quota_rejection_headers(self) -> dict[str, str]:
        """Headers for a quota rejection on a request this limiter admitted.

        The client is told to back off for one full window of the endpoint.
        """
        return {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": "0",
            "RateLimit-Reset": str(self.reset_seconds),
            "Retry-After": str(self.reset_seconds),
        }


class RateLimiter:
    """Fixed-window limiter over a shared counter store.

    The window for a key opens on its first hit and lasts ``window_ms``; the
    first hit after it elapses opens a fresh window with a count of 1.

    Expired counters are swept from the store at most once per
    ``sweep_interval_ms``, piggybacking on a hit. The sweep uses the longest
    window this limiter has seen, so a counter is never dropped while any
    rule could still be counting it.
    """

    def __init__(
        self,
        store: AbstractCounterStore,
        *,
        clock: Callable[[], float] = time.time,
        sweep_interval_ms: int = 60_000,
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Counter store holding the per-key windows.
            clock: Time source returning UNIX time in seconds.
            sweep_interval_ms: Minimum time between expiry sweeps (0 disables them).
        """
        if sweep_interval_ms < 0:
            raise ValueError("sweep_interval_ms must be >= 0")
        self._store = store
        self._clock = clock
        self._sweep_interval_ms = sweep_interval_ms
        self._sweep_lock = threading.Lock()
        self._longest_window_ms = 0
        self._next_sweep_ms: int | None = None

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def hit(self, key: str, limit: int, window_ms: int) -> RateLimitResult:
        """Record a hit for ``key`` and decide whether it is within ``limit``.

        Args:
            key: Caller-defined key (``ip:<addr>``, ``u:<id>:<action>``, ...).
            limit: Maximum hits per window.
            window_ms: Window length in milliseconds.

        Returns:
            RateLimitResult for this hit.

        Raises:
            ValueError: If key is empty or limit/window are invalid.
        """
        if not key:
            raise ValueError("key must be a non-empty string")
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")

        now_ms = self._now_ms()
        state = self._store.hit(key, window_ms=window_ms, now_ms=now_ms)
        self._maybe_sweep(window_ms, now_ms)

        window_end_ms = state.window_start_ms + window_ms
        reset_at = int(math.ceil(window_end_ms / 1000))

        if state.count <= limit:
            return RateLimitResult(
                success=True,
                key=key,
                limit=limit,
                count=state.count,
                remaining=max(0, limit - state.count),
                window_ms=window_ms,
                reset_at=reset_at,
                retry_after_seconds=None,
            )

        retry_after = max(0, int(math.ceil((window_end_ms - now_ms) / 1000)))
        return RateLimitResult(
            success=False,
            key=key,
            limit=limit,
            count=state.count,
            remaining=0,
            window_ms=window_ms,
            reset_at=reset_at,
            retry_after_seconds=retry_after,
        )

    def _maybe_sweep(self, window_ms: int, now_ms: int) -> None:
        if not self._sweep_interval_ms:
            return
        with self._sweep_lock:
            self._longest_window_ms = max(self._longest_window_ms, window_ms)
            if self._next_sweep_ms is None:
                self._next_sweep_ms = now_ms + self._sweep_interval_ms
                return
            if now_ms < self._next_sweep_ms:
                return
            # Only the thread that moves the deadline sweeps
            self._next_sweep_ms = now_ms + self._sweep_interval_ms
            longest_window_ms = self._longest_window_ms

        removed = self._store.purge_expired(window_ms=longest_window_ms, now_ms=now_ms)
        if removed:
            logger.debug("rate_limit.swept", extra={"removed": removed})

    def hit_all(self, rules: Iterable[RateLimitRule]) -> CombinedRateLimit:
        """Evaluate every rule (no short-circuit) and combine the results."""
        results = [self.hit(rule.key, rule.limit, rule.window_ms) for rule in rules]
        return combine(results)


def combine(results: Sequence[RateLimitResult]) -> CombinedRateLimit:
    """Combine limiter results with AND semantics.

    On failure ``retry_after_seconds`` is the maximum across the rejecting
    limiters; if that rounds to zero the longest rejecting window is used
    instead so clients never see ``Retry-After: 0`` on a 429.

    Raises:
        ValueError: If ``results`` is empty.
    """
    if not results:
        raise ValueError("at least one rate limit result is required")

    limit = min(r.limit for r in results)
    failed = [r for r in results if not r.success]

    if not failed:
        longest_window = max(r.window_ms for r in results)
        return CombinedRateLimit(
            success=True,
            limit=limit,
            remaining=min(r.remaining for r in results),
            reset_seconds=int(math.ceil(longest_window / 1000)),
            retry_after_seconds=None,
            results=tuple(results),
        )

    retry = max(r.retry_after_seconds or 0 for r in failed)
    if retry == 0:
        retry = int(math.ceil(max(r.window_ms for r in failed) / 1000))

    logger.debug(
        "rate_limit.combined_rejection",
        extra={"limiters": len(results), "rejected": len(failed), "retry_after_s": retry},
    )
    return CombinedRateLimit(
        success=False,
        limit=limit,
        remaining=0,
        reset_seconds=retry,
        retry_after_seconds=retry,
        results=tuple(results),
    )
