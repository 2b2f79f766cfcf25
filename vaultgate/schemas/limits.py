"""Pydantic schemas for limit and usage responses."""

from __future__ import annotations

from pydantic import BaseModel, Field

from vaultgate.domain.limits import ResourceKind, is_unlimited
from vaultgate.services.admission_policy import KindUsage, RemainingSummary


class KindUsageResponse(BaseModel):
    """Usage of one entity kind against its effective limit."""

    kind: ResourceKind = Field(..., description="Entity kind.")
    used: int = Field(..., ge=0, description="Live entities of this kind.")
    limit: int | None = Field(
        ..., description="Effective ceiling; null means unlimited."
    )
    remaining: int | None = Field(
        ..., description="Entities that can still be created; null means unlimited."
    )

    @classmethod
    def from_usage(cls, usage: KindUsage) -> "KindUsageResponse":
        return cls(
            kind=usage.kind,
            used=usage.used,
            limit=None if is_unlimited(usage.limit) else usage.limit,
            remaining=usage.remaining,
        )


class StorageSummary(BaseModel):
    max_mb: int | None = Field(..., description="Total storage cap in MB (null = not configured).")
    used_mb: float = Field(..., ge=0, description="Stored file size in decimal MB.")
    remaining_mb: float | None = Field(..., description="Storage left in MB.")


class DailyQuotaSummary(BaseModel):
    quota_mb: int | None = Field(..., description="Daily upload cap in MB (null = not configured).")
    used_today_mb: float = Field(..., ge=0, description="Uploaded during the current calendar day.")
    remaining_mb: float | None = Field(..., description="Volume left today in MB.")


class UploadSummary(BaseModel):
    max_upload_mb: int | None = Field(..., description="Per-file size cap in MB.")
    max_files_per_upload: int | None = Field(..., description="Files allowed in one request.")


class RemainingSummaryResponse(BaseModel):
    """Everything a client needs to render "X of Y used"."""

    kinds: list[KindUsageResponse]
    storage: StorageSummary
    daily: DailyQuotaSummary
    upload: UploadSummary

    @classmethod
    def from_summary(cls, summary: RemainingSummary) -> "RemainingSummaryResponse":
        limits = summary.upload.limits
        return cls(
            kinds=[KindUsageResponse.from_usage(usage) for usage in summary.kinds],
            storage=StorageSummary(
                max_mb=limits.max_storage_mb,
                used_mb=summary.upload.storage_used_mb,
                remaining_mb=summary.storage_remaining_mb,
            ),
            daily=DailyQuotaSummary(
                quota_mb=limits.daily_quota_mb,
                used_today_mb=summary.upload.today_uploaded_mb,
                remaining_mb=summary.daily_remaining_mb,
            ),
            upload=UploadSummary(
                max_upload_mb=limits.max_upload_mb,
                max_files_per_upload=limits.max_files_per_upload,
            ),
        )
