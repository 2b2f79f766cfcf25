"""Counter store interfaces.

The rate limiter depends on this abstraction (not the concrete store) so the
counters can live in process memory for a single worker or in the shared
database table when several workers must see the same counts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class CounterState:
    """Snapshot of a counter right after a hit.

    Attributes:
        key: Caller-defined counter key (e.g. ``ip:10.0.0.1``).
        count: Hits recorded in the current window, including this one.
        window_start_ms: UNIX epoch milliseconds when the window opened.
    """

    key: str
    count: int
    window_start_ms: int


class AbstractCounterStore(ABC):
    """Key-to-counter mapping with per-window expiry."""

    @abstractmethod
    def hit(self, key: str, *, window_ms: int, now_ms: int) -> CounterState:
        """Record one hit for ``key`` and return the resulting state.

        The read-reset-or-increment sequence must be atomic per key: if the
        counter is absent or ``now_ms - window_start_ms >= window_ms`` it is
        replaced by ``{count: 1, window_start_ms: now_ms}``, otherwise its count
        is incremented.

        Args:
            key: Counter key.
            window_ms: Window length in milliseconds.
            now_ms: Current time in UNIX epoch milliseconds.

        Returns:
            CounterState after the hit.
        """
        raise NotImplementedError

    @abstractmethod
    def purge_expired(self, *, window_ms: int, now_ms: int) -> int:
        """Delete counters whose window has elapsed.

        Returns:
            Number of counters removed.
        """
        raise NotImplementedError
