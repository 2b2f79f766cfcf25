"""In-memory governance store for local runs and tests.

Holds users, file sizes and short links in dicts behind a lock. Aggregates
are computed on every call so concurrent writers are visible immediately,
the same as with the SQL store.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Mapping

from vaultgate.adapters.store.base import AbstractGovernanceStore
from vaultgate.domain.limits import (
    ResourceKind,
    Role,
    ServerDefaults,
    UserOverrides,
    UserRecord,
)


@dataclass(frozen=True)
class _StoredFile:
    user_id: str
    size: int
    created_at: datetime


class InMemoryGovernanceStore(AbstractGovernanceStore):
    """Thread-safe, dict-backed implementation of the store port."""

    def __init__(self, defaults: ServerDefaults | None = None) -> None:
        self._lock = threading.RLock()
        self._defaults = defaults or ServerDefaults()
        self._users: dict[str, UserRecord] = {}
        self._files: list[_StoredFile] = []
        self._short_links: dict[str, int] = {}

    # -- seeding helpers -------------------------------------------------

    def add_user(
        self,
        user_id: str,
        *,
        email: str | None = None,
        role: Role | str = Role.USER,
        **overrides: Any,
    ) -> UserRecord:
        record = UserRecord(
            id=user_id,
            email=email,
            role=Role.parse(role),
            overrides=UserOverrides.normalized(**overrides),
        )
        with self._lock:
            self._users[user_id] = record
        return record

    def add_file(self, user_id: str, size_bytes: int, *, created_at: datetime | None = None) -> None:
        with self._lock:
            self._files.append(
                _StoredFile(user_id=user_id, size=size_bytes, created_at=created_at or datetime.now())
            )

    def add_short_link(self, user_id: str, count: int = 1) -> None:
        with self._lock:
            self._short_links[user_id] = self._short_links.get(user_id, 0) + count

    def replace_server_defaults(self, defaults: ServerDefaults) -> None:
        with self._lock:
            self._defaults = defaults

    # -- port ------------------------------------------------------------

    def get_user(self, user_id: str) -> UserRecord | None:
        with self._lock:
            return self._users.get(user_id)

    def get_server_defaults(self) -> ServerDefaults:
        with self._lock:
            return self._defaults

    def update_server_defaults(self, changes: Mapping[str, Any]) -> ServerDefaults:
        with self._lock:
            self._defaults = self._defaults.updated(changes)
            return self._defaults

    def update_user_overrides(self, user_id: str, changes: Mapping[str, Any]) -> UserRecord | None:
        with self._lock:
            record = self._users.get(user_id)
            if record is None:
                return None
            merged = {**record.overrides.as_dict(), **changes}
            record = replace(record, overrides=UserOverrides.normalized(**merged))
            self._users[user_id] = record
            return record

    def count_entities(self, user_id: str, kind: ResourceKind) -> int:
        with self._lock:
            if kind is ResourceKind.FILES:
                return sum(1 for f in self._files if f.user_id == user_id)
            return self._short_links.get(user_id, 0)

    def sum_file_bytes(
        self,
        user_id: str,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> int:
        with self._lock:
            return sum(
                f.size
                for f in self._files
                if f.user_id == user_id
                and (start is None or f.created_at >= start)
                and (end is None or f.created_at <= end)
            )

