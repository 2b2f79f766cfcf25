"""Effective limit resolution.

Resolution order for a (user, kind) pair:
1. the user's override, when set (``0`` already normalized to "not set");
2. the server default for the user's role tier (owner counts as admin);
3. ``UNLIMITED`` when that default is missing or malformed.

Count limits fail open on missing configuration. Byte limits (per-file size,
files per request, storage cap, daily quota) are returned as ``None`` when
not configured and the admission policy rejects on ``None``: the asymmetry
keeps a broken count default from blocking every account while never
granting unlimited bytes by accident.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from vaultgate.adapters.store.base import AbstractGovernanceStore
from vaultgate.domain.limits import (
    UNLIMITED,
    EffectiveLimit,
    ResourceKind,
    Role,
    ServerDefaults,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadLimits:
    """Resolved byte/count ceilings for an upload. None = not configured."""

    max_upload_mb: int | None
    max_files_per_upload: int | None
    max_storage_mb: int | None
    daily_quota_mb: int | None


class LimitResolver:
    """Resolve the ceiling that actually applies to a user."""

    def __init__(self, store: AbstractGovernanceStore) -> None:
        self._store = store

    def effective_limit(
        self,
        user_id: str,
        kind: ResourceKind,
        role: Role | str | None = None,
        *,
        defaults: ServerDefaults | None = None,
    ) -> EffectiveLimit:
        """Return the count ceiling for ``kind``.

        Args:
            user_id: User being evaluated.
            kind: Entity kind.
            role: Caller role; owner is treated as admin.
            defaults: Settings snapshot for this check; fetched when omitted.

        Returns:
            A non-negative int, or ``UNLIMITED``. Unknown users get ``0``.
        """
        tier = Role.parse(role).limit_tier

        user = self._store.get_user(user_id)
        if user is None:
            logger.warning("limits.unknown_user", extra={"user_id": user_id, "kind": kind.value})
            return 0

        override = user.overrides.for_kind(kind)
        if override is not None:
            return override

        snapshot = defaults if defaults is not None else self._store.get_server_defaults()
        configured = snapshot.count_limit(kind, tier)
        if configured is None:
            logger.warning(
                "limits.count_default_missing",
                extra={"kind": kind.value, "role": tier.value},
            )
            return UNLIMITED
        return configured

    def upload_limits(
        self,
        user_id: str,
        role: Role | str | None = None,
        *,
        defaults: ServerDefaults | None = None,
    ) -> UploadLimits:
        """Resolve the four upload ceilings (override > role/global default)."""
        tier = Role.parse(role).limit_tier
        snapshot = defaults if defaults is not None else self._store.get_server_defaults()
        user = self._store.get_user(user_id)
        overrides = user.overrides if user is not None else None

        max_upload_mb = snapshot.max_upload_mb
        max_storage_mb = snapshot.storage_cap_mb(tier)
        if overrides is not None:
            if overrides.max_upload_mb is not None:
                max_upload_mb = overrides.max_upload_mb
            if overrides.max_storage_mb is not None:
                max_storage_mb = overrides.max_storage_mb

        return UploadLimits(
            max_upload_mb=max_upload_mb,
            max_files_per_upload=snapshot.max_files_per_upload,
            max_storage_mb=max_storage_mb,
            daily_quota_mb=snapshot.daily_quota_mb(tier),
        )
