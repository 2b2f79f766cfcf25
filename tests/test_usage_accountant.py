"""Unit tests for usage accounting."""

from datetime import datetime, timedelta
from unittest.mock import Mock

import pytest

from vaultgate.adapters.store.in_memory import InMemoryGovernanceStore
from vaultgate.domain.limits import ResourceKind
from vaultgate.services.usage_accountant import (
    UsageAccountant,
    bytes_to_mb,
    day_bounds,
)

MB = 1_000_000
NOW = datetime(2024, 5, 10, 12, 0, 0)


def test_bytes_to_mb_is_decimal() -> None:
    assert bytes_to_mb(1_000_000) == 1.0
    assert bytes_to_mb(1_048_576) == pytest.approx(1.048576)


def test_day_bounds() -> None:
    start, end = day_bounds(datetime(2024, 5, 10, 15, 30))

    assert start == datetime(2024, 5, 10, 0, 0, 0)
    assert end == datetime(2024, 5, 10, 23, 59, 59, 999999)


def test_counts_by_kind(store: InMemoryGovernanceStore, accountant: UsageAccountant) -> None:
    store.add_user("u1")
    store.add_file("u1", 10)
    store.add_file("u1", 20)
    store.add_file("u2", 30)
    store.add_short_link("u1", 4)

    assert accountant.usage("u1", ResourceKind.FILES) == 2
    assert accountant.usage("u1", ResourceKind.SHORT_LINKS) == 4
    assert accountant.usage("nobody", ResourceKind.FILES) == 0


def test_storage_used_sums_every_file(store, accountant) -> None:
    store.add_file("u1", 3 * MB, created_at=NOW - timedelta(days=30))
    store.add_file("u1", 2 * MB, created_at=NOW)

    assert accountant.storage_used_mb("u1") == 5.0


def test_daily_boundary(store: InMemoryGovernanceStore) -> None:
    """A file stored at 23:59:59.999 counts towards today; the next millisecond does not."""
    last_ms_of_day = datetime(2024, 5, 10, 23, 59, 59, 999000)
    next_day = datetime(2024, 5, 11, 0, 0, 0, 0)
    store.add_file("u1", 1 * MB, created_at=last_ms_of_day)
    store.add_file("u1", 4 * MB, created_at=next_day)

    accountant = UsageAccountant(store, clock=Mock(return_value=datetime(2024, 5, 10, 23, 59, 59, 999000)))
    assert accountant.today_uploaded_mb("u1") == 1.0

    accountant = UsageAccountant(store, clock=Mock(return_value=next_day))
    assert accountant.today_uploaded_mb("u1") == 4.0


def test_today_excludes_previous_day(store, accountant) -> None:
    store.add_file("u1", 7 * MB, created_at=datetime(2024, 5, 9, 23, 59, 59, 999999))
    store.add_file("u1", 1 * MB, created_at=datetime(2024, 5, 10, 0, 0, 0))

    assert accountant.today_uploaded_mb("u1") == 1.0


def test_usage_is_never_cached(store, accountant) -> None:
    assert accountant.usage("u1", ResourceKind.FILES) == 0

    store.add_file("u1", 1)

    assert accountant.usage("u1", ResourceKind.FILES) == 1


def test_snapshot(store, accountant) -> None:
    store.add_file("u1", 2 * MB, created_at=NOW)
    store.add_file("u1", 3 * MB, created_at=NOW - timedelta(days=2))
    store.add_short_link("u1")

    snapshot = accountant.snapshot("u1")

    assert snapshot.count_by_kind == {ResourceKind.FILES: 2, ResourceKind.SHORT_LINKS: 1}
    assert snapshot.total_storage_bytes == 5 * MB
    assert snapshot.today_uploaded_bytes == 2 * MB
    assert snapshot.storage_used_mb == 5.0
    assert snapshot.today_uploaded_mb == 2.0
