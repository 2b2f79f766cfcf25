"""In-memory counter store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
  Use the SQL store when workers must share counts.
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

from vaultgate.adapters.counter_store.base import AbstractCounterStore, CounterState


@dataclass
class _WindowState:
    window_start_ms: int
    count: int


class InMemoryCounterStore(AbstractCounterStore):
    """Counter store keeping fixed-window state in a dict.

    Windows open on the first hit for a key (not on a wall-clock boundary) and
    last ``window_ms`` from there.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._state_by_key: dict[str, _WindowState] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._state_by_key)

    def hit(self, key: str, *, window_ms: int, now_ms: int) -> CounterState:
        if not key:
            raise ValueError("key must be a non-empty string")
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")

        with self._lock:
            state = self._state_by_key.get(key)
            if state is None or now_ms - state.window_start_ms >= window_ms:
                state = _WindowState(window_start_ms=now_ms, count=1)
                self._state_by_key[key] = state
            else:
                state.count += 1
            return CounterState(key=key, count=state.count, window_start_ms=state.window_start_ms)

    def purge_expired(self, *, window_ms: int, now_ms: int) -> int:
        with self._lock:
            expired = [
                key
                for key, state in self._state_by_key.items()
                if now_ms - state.window_start_ms >= window_ms
            ]
            for key in expired:
                del self._state_by_key[key]
            return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._state_by_key.clear()
