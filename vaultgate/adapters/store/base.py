"""Persistent store interface consumed by the governance services.

The vault application owns users, files, short links and the server settings
row. This service only reads them, plus two narrow admin writes (server
defaults and per-user overrides). Everything is recomputed per call; no
adapter may cache aggregates across requests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Mapping

from vaultgate.domain.limits import ResourceKind, ServerDefaults, UserRecord


class AbstractGovernanceStore(ABC):
    """Read/aggregate/write calls the governance engine needs."""

    @abstractmethod
    def get_user(self, user_id: str) -> UserRecord | None:
        """Return the user's email, role and zero-normalized overrides."""
        raise NotImplementedError

    @abstractmethod
    def get_server_defaults(self) -> ServerDefaults:
        """Return the current server defaults (missing fields as None)."""
        raise NotImplementedError

    @abstractmethod
    def update_server_defaults(self, changes: Mapping[str, Any]) -> ServerDefaults:
        """Apply a partial update to the server defaults and return the result."""
        raise NotImplementedError

    @abstractmethod
    def update_user_overrides(self, user_id: str, changes: Mapping[str, Any]) -> UserRecord | None:
        """Apply a partial update to a user's overrides (``0`` stored as NULL).

        Returns:
            The updated record, or None when the user does not exist.
        """
        raise NotImplementedError

    @abstractmethod
    def count_entities(self, user_id: str, kind: ResourceKind) -> int:
        """Exact number of the user's live entities of ``kind``."""
        raise NotImplementedError

    @abstractmethod
    def sum_file_bytes(
        self,
        user_id: str,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> int:
        """Sum of the user's stored file sizes in bytes.

        Args:
            user_id: Owner of the files.
            start: Inclusive lower bound on the creation timestamp.
            end: Inclusive upper bound on the creation timestamp.
        """
        raise NotImplementedError
