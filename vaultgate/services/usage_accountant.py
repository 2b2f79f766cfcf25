"""Usage accounting from source-of-truth aggregates.

Nothing here is cached: every figure is a fresh aggregate query so it
reflects writes committed by concurrent requests.

Sizes are converted with decimal megabytes (1 MB = 1,000,000 bytes), the
same unit the upload caps are configured in. "Today" is the server-local
calendar day, not a rolling 24 hour window: a file stored at 23:59:59.999
counts towards today, one stored a millisecond later counts towards
tomorrow.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from typing import Callable

from vaultgate.adapters.store.base import AbstractGovernanceStore
from vaultgate.domain.limits import ResourceKind

BYTES_PER_MB = 1_000_000


def bytes_to_mb(size_bytes: int) -> float:
    return size_bytes / BYTES_PER_MB


def day_bounds(moment: datetime) -> tuple[datetime, datetime]:
    """Inclusive start/end of the calendar day containing ``moment``."""
    day = moment.date()
    return (
        datetime.combine(day, time.min, tzinfo=moment.tzinfo),
        datetime.combine(day, time.max, tzinfo=moment.tzinfo),
    )


@dataclass(frozen=True)
class UsageSnapshot:
    """Derived usage of one user at one point in time."""

    count_by_kind: dict[ResourceKind, int]
    total_storage_bytes: int
    today_uploaded_bytes: int

    @property
    def storage_used_mb(self) -> float:
        return bytes_to_mb(self.total_storage_bytes)

    @property
    def today_uploaded_mb(self) -> float:
        return bytes_to_mb(self.today_uploaded_bytes)


class UsageAccountant:
    """Compute a user's current resource usage."""

    def __init__(
        self,
        store: AbstractGovernanceStore,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the accountant.

        Args:
            store: Persistent store to aggregate over.
            clock: Returns the current server-local time (naive, like the
                stored ``created_at`` values).
        """
        self._store = store
        self._clock = clock

    def usage(self, user_id: str, kind: ResourceKind) -> int:
        """Exact number of live entities of ``kind`` owned by the user."""
        return self._store.count_entities(user_id, kind)

    def storage_used_mb(self, user_id: str) -> float:
        """Total stored file size in decimal MB."""
        return bytes_to_mb(self._store.sum_file_bytes(user_id))

    def today_uploaded_mb(self, user_id: str) -> float:
        """File size created during the current calendar day, in decimal MB."""
        return bytes_to_mb(self._today_bytes(user_id))

    def snapshot(self, user_id: str) -> UsageSnapshot:
        return UsageSnapshot(
            count_by_kind={kind: self.usage(user_id, kind) for kind in ResourceKind},
            total_storage_bytes=self._store.sum_file_bytes(user_id),
            today_uploaded_bytes=self._today_bytes(user_id),
        )

    def _today_bytes(self, user_id: str) -> int:
        start, end = day_bounds(self._clock())
        return self._store.sum_file_bytes(user_id, start=start, end=end)
