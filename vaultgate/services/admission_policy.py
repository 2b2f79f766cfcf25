"""Admission decisions for entity creation and uploads.

Two independent check families:

* entity-count admission (``check_can_create``): usage + incoming must not
  exceed the effective limit for the kind;
* upload-volume admission (``check_upload_allowed``): files per request,
  per-file size, daily volume and total storage, evaluated in that order and
  all-or-nothing for the batch.

Checks read usage and decide; they do not lock or reserve capacity. Two
concurrent requests may both be admitted at "9 of 10" and end at 11. The
caller performs the actual write after a successful check.

Megabyte figures in messages are rounded half-up to whole MB.
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from vaultgate.adapters.store.base import AbstractGovernanceStore
from vaultgate.core.errors import LimitExceededError, ValidationAppError
from vaultgate.domain.limits import (
    EffectiveLimit,
    ResourceKind,
    Role,
    ServerDefaults,
    is_unlimited,
)
from vaultgate.services.breach_notifier import BreachNotifier
from vaultgate.services.limit_resolver import LimitResolver, UploadLimits
from vaultgate.services.usage_accountant import UsageAccountant

logger = logging.getLogger(__name__)


def whole_mb(value: float) -> int:
    """Round a megabyte figure half-up to a whole number for display."""
    return int(Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class AdmissionDecision:
    """Tagged result of an admission check."""

    allowed: bool
    error: LimitExceededError | None = None

    @classmethod
    def admit(cls) -> "AdmissionDecision":
        return cls(allowed=True)

    @classmethod
    def reject(cls, error: LimitExceededError) -> "AdmissionDecision":
        return cls(allowed=False, error=error)

    def raise_for_rejection(self) -> None:
        if not self.allowed and self.error is not None:
            raise self.error


@dataclass(frozen=True)
class KindUsage:
    kind: ResourceKind
    used: int
    limit: EffectiveLimit

    @property
    def remaining(self) -> int | None:
        if is_unlimited(self.limit):
            return None
        return max(0, self.limit - self.used)


@dataclass(frozen=True)
class EffectiveUploadLimits:
    """Resolved upload ceilings plus the usage they are compared against."""

    limits: UploadLimits
    storage_used_mb: float
    today_uploaded_mb: float


@dataclass(frozen=True)
class RemainingSummary:
    """Everything a client needs to render "X of Y used" for a user."""

    kinds: tuple[KindUsage, ...]
    upload: EffectiveUploadLimits

    @property
    def storage_remaining_mb(self) -> float | None:
        cap = self.upload.limits.max_storage_mb
        if cap is None:
            return None
        return max(0.0, cap - self.upload.storage_used_mb)

    @property
    def daily_remaining_mb(self) -> float | None:
        quota = self.upload.limits.daily_quota_mb
        if quota is None:
            return None
        return max(0.0, quota - self.upload.today_uploaded_mb)


class AdmissionPolicy:
    """Gate mutating operations on resolved limits and current usage."""

    def __init__(
        self,
        store: AbstractGovernanceStore,
        resolver: LimitResolver,
        accountant: UsageAccountant,
        notifier: BreachNotifier,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._accountant = accountant
        self._notifier = notifier

    # Entity-count admission

    def check_can_create(
        self,
        user_id: str,
        kind: ResourceKind,
        role: Role | str | None = None,
        incoming_count: int = 1,
        *,
        defaults: ServerDefaults | None = None,
    ) -> AdmissionDecision:
        """Decide whether ``incoming_count`` more entities of ``kind`` fit.

        Raises:
            ValueError: If ``incoming_count`` is negative.
        """
        if incoming_count < 0:
            raise ValueError("incoming_count must be >= 0")

        limit = self._resolver.effective_limit(user_id, kind, role, defaults=defaults)
        if is_unlimited(limit):
            return AdmissionDecision.admit()

        used = self._accountant.usage(user_id, kind)
        if used + incoming_count <= limit:
            return AdmissionDecision.admit()

        label = kind.label
        self._notifier.notify(
            user_id,
            f"{label.capitalize()} limit",
            f"You have {used} {label} out of a maximum of {limit}.",
        )
        logger.info(
            "admission.rejected",
            extra={
                "user_id": user_id,
                "kind": kind.value,
                "used": used,
                "limit": limit,
                "incoming": incoming_count,
            },
        )
        return AdmissionDecision.reject(
            LimitExceededError(
                code="limit_exceeded",
                message=f"You have reached the limit for {label} ({limit} max).",
                details={"kind": kind.value, "used": used, "limit": limit},
            )
        )

    def assert_can_create(
        self,
        user_id: str,
        kind: ResourceKind,
        role: Role | str | None = None,
        incoming_count: int = 1,
        *,
        defaults: ServerDefaults | None = None,
    ) -> None:
        """Raise LimitExceededError when creation would exceed the limit."""
        self.check_can_create(
            user_id, kind, role, incoming_count, defaults=defaults
        ).raise_for_rejection()

    # Upload-volume admission

    def check_upload_allowed(
        self,
        user_id: str,
        role: Role | str | None,
        file_sizes_mb: Sequence[float],
        *,
        defaults: ServerDefaults | None = None,
    ) -> AdmissionDecision:
        """Decide whether a batch of files (sizes in decimal MB) may be stored.

        The batch is admitted or rejected as a whole. Any of the four byte
        limits being unconfigured rejects the upload.
        """
        if any(not math.isfinite(size) or size < 0 for size in file_sizes_mb):
            raise ValueError("file sizes must be finite and >= 0")

        limits = self._resolver.upload_limits(user_id, role, defaults=defaults)

        max_files = limits.max_files_per_upload
        if max_files is None:
            return self._not_configured(user_id, "max_files_per_upload")
        if len(file_sizes_mb) > max_files:
            return self._reject(
                user_id,
                "files_per_upload",
                f"You can upload at most {max_files} files per request.",
                used=len(file_sizes_mb),
                limit=max_files,
            )

        max_upload = limits.max_upload_mb
        if max_upload is None:
            return self._not_configured(user_id, "max_upload_mb")
        if any(size > max_upload for size in file_sizes_mb):
            return self._reject(
                user_id,
                "upload_size",
                f"One of your files exceeds the maximum upload size ({max_upload} MB).",
                used=max(file_sizes_mb),
                limit=max_upload,
            )

        daily_quota = limits.daily_quota_mb
        if daily_quota is None:
            return self._not_configured(user_id, "daily_quota_mb")
        storage_cap = limits.max_storage_mb
        if storage_cap is None:
            return self._not_configured(user_id, "max_storage_mb")

        incoming_total = sum(file_sizes_mb)
        used_today = self._accountant.today_uploaded_mb(user_id)
        if used_today + incoming_total > daily_quota:
            self._notifier.notify(
                user_id,
                "Daily upload quota",
                f"Used {whole_mb(used_today)} MB of {daily_quota} MB. Incoming would exceed the daily cap.",
            )
            return self._reject(
                user_id,
                "daily_quota",
                f"Daily upload quota exceeded ({daily_quota} MB per day).",
                used=used_today,
                limit=daily_quota,
            )

        used_storage = self._accountant.storage_used_mb(user_id)
        if used_storage + incoming_total > storage_cap:
            self._notifier.notify(
                user_id,
                "Storage limit",
                f"Used {whole_mb(used_storage)} MB of {storage_cap} MB. Incoming would exceed your storage cap.",
            )
            return self._reject(
                user_id,
                "storage",
                f"Storage limit exceeded ({storage_cap} MB total).",
                used=used_storage,
                limit=storage_cap,
            )

        return AdmissionDecision.admit()

    def assert_upload_allowed(
        self,
        user_id: str,
        role: Role | str | None,
        file_sizes_mb: Sequence[float],
        *,
        defaults: ServerDefaults | None = None,
    ) -> None:
        """Raise LimitExceededError when the batch may not be stored."""
        self.check_upload_allowed(user_id, role, file_sizes_mb, defaults=defaults).raise_for_rejection()

    def _reject(self, user_id: str, kind: str, message: str, *, used: float, limit: int) -> AdmissionDecision:
        logger.info(
            "admission.upload_rejected",
            extra={"user_id": user_id, "kind": kind, "used": used, "limit": limit},
        )
        return AdmissionDecision.reject(
            LimitExceededError(
                code="limit_exceeded",
                message=message,
                details={"kind": kind, "used": used, "limit": limit},
            )
        )

    def _not_configured(self, user_id: str, setting: str) -> AdmissionDecision:
        logger.error("admission.limit_not_configured", extra={"user_id": user_id, "setting": setting})
        return AdmissionDecision.reject(
            LimitExceededError(
                code="limit_not_configured",
                message="Uploads are disabled because upload limits are not configured.",
                details={"kind": setting, "limit": None, "reason": "not_configured"},
            )
        )

    # Read-only views

    def effective_upload_limits(
        self,
        user_id: str,
        role: Role | str | None = None,
        *,
        defaults: ServerDefaults | None = None,
    ) -> EffectiveUploadLimits:
        return EffectiveUploadLimits(
            limits=self._resolver.upload_limits(user_id, role, defaults=defaults),
            storage_used_mb=self._accountant.storage_used_mb(user_id),
            today_uploaded_mb=self._accountant.today_uploaded_mb(user_id),
        )

    def remaining_summary(self, user_id: str, role: Role | str | None = None) -> RemainingSummary:
        """Usage and ceilings for every kind plus the upload figures.

        One settings snapshot is used for the whole summary.
        """
        defaults = self._store.get_server_defaults()
        kinds = tuple(
            KindUsage(
                kind=kind,
                used=self._accountant.usage(user_id, kind),
                limit=self._resolver.effective_limit(user_id, kind, role, defaults=defaults),
            )
            for kind in ResourceKind
        )
        return RemainingSummary(
            kinds=kinds,
            upload=self.effective_upload_limits(user_id, role, defaults=defaults),
        )

    def kind_usage(self, user_id: str, kind: ResourceKind, role: Role | str | None = None) -> KindUsage:
        return KindUsage(
            kind=kind,
            used=self._accountant.usage(user_id, kind),
            limit=self._resolver.effective_limit(user_id, kind, role),
        )

    # File type policy

    def assert_file_type_allowed(
        self,
        mime_type: str | None,
        filename: str | None,
        *,
        defaults: ServerDefaults | None = None,
    ) -> None:
        """Reject MIME types outside the allow-list and blocked extensions.

        An empty allow-list admits every MIME type.

        Raises:
            ValidationAppError: If the file type is not allowed.
        """
        snapshot = defaults if defaults is not None else self._store.get_server_defaults()

        prefixes = snapshot.allowed_mime_prefixes
        if prefixes:
            mime = (mime_type or "").strip().lower()
            if not mime or not any(mime.startswith(prefix.lower()) for prefix in prefixes):
                raise ValidationAppError(
                    code="file_type_not_allowed",
                    message="This file type is not allowed.",
                    details={"field": "mime_type", "hint": f"Allowed prefixes: {', '.join(prefixes)}"},
                )

        if filename and snapshot.disallowed_extensions:
            extension = os.path.splitext(filename)[1].lower()
            if extension and extension in snapshot.disallowed_extensions:
                raise ValidationAppError(
                    code="file_extension_not_allowed",
                    message=f"Files with the {extension} extension are not allowed.",
                    details={"field": "filename"},
                )
