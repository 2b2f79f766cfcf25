"""Pydantic schemas for admin settings endpoints.

Numeric fields accept ``null`` to clear a value. For per-user overrides a
``0`` is stored as ``null`` ("no override, use the role default").
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from vaultgate.domain.limits import ServerDefaults, UserRecord


class ServerDefaultsResponse(BaseModel):
    max_upload_mb: int | None
    max_files_per_upload: int | None
    user_max_storage_mb: int | None
    admin_max_storage_mb: int | None
    user_daily_quota_mb: int | None
    admin_daily_quota_mb: int | None
    files_limit_user: int | None
    files_limit_admin: int | None
    short_links_limit_user: int | None
    short_links_limit_admin: int | None
    allowed_mime_prefixes: list[str]
    disallowed_extensions: list[str]

    @classmethod
    def from_defaults(cls, defaults: ServerDefaults) -> "ServerDefaultsResponse":
        return cls(**defaults.as_dict())


class ServerDefaultsUpdate(BaseModel):
    """Partial update; only the fields present in the body are changed."""

    model_config = ConfigDict(extra="forbid")

    max_upload_mb: int | None = Field(default=None, ge=0)
    max_files_per_upload: int | None = Field(default=None, ge=0)
    user_max_storage_mb: int | None = Field(default=None, ge=0)
    admin_max_storage_mb: int | None = Field(default=None, ge=0)
    user_daily_quota_mb: int | None = Field(default=None, ge=0)
    admin_daily_quota_mb: int | None = Field(default=None, ge=0)
    files_limit_user: int | None = Field(default=None, ge=0)
    files_limit_admin: int | None = Field(default=None, ge=0)
    short_links_limit_user: int | None = Field(default=None, ge=0)
    short_links_limit_admin: int | None = Field(default=None, ge=0)
    allowed_mime_prefixes: list[str] | None = None
    disallowed_extensions: list[str] | None = None


class UserOverridesUpdate(BaseModel):
    """Partial update of a user's overrides. ``0`` clears the override."""

    model_config = ConfigDict(extra="forbid")

    max_storage_mb: int | None = Field(default=None, ge=0)
    max_upload_mb: int | None = Field(default=None, ge=0)
    files_limit: int | None = Field(default=None, ge=0)
    short_links_limit: int | None = Field(default=None, ge=0)


class UserLimitsResponse(BaseModel):
    user_id: str
    role: str
    max_storage_mb: int | None
    max_upload_mb: int | None
    files_limit: int | None
    short_links_limit: int | None

    @classmethod
    def from_record(cls, record: UserRecord) -> "UserLimitsResponse":
        return cls(user_id=record.id, role=record.role.value, **record.overrides.as_dict())
