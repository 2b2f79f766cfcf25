"""Value types shared by the resource governance services.

These types carry no I/O. Store adapters build them from rows, services make
decisions over them, and the HTTP layer serializes them.

Notes on sentinels:
- ``UNLIMITED`` is the explicit "no ceiling" value of an effective limit.
- ``None`` on a ServerDefaults field means "not configured" (missing or
  malformed). The two are never conflated: count limits treat a missing
  default as unlimited, byte limits treat it as a rejection.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Mapping, Union


class Role(str, Enum):
    """Account role. Owners are governed exactly like admins."""

    OWNER = "owner"
    ADMIN = "admin"
    USER = "user"

    @property
    def limit_tier(self) -> "Role":
        """Role whose server defaults apply (owner collapses to admin)."""
        if self in (Role.OWNER, Role.ADMIN):
            return Role.ADMIN
        return Role.USER

    @property
    def is_admin(self) -> bool:
        return self.limit_tier is Role.ADMIN

    @classmethod
    def parse(cls, value: "Role | str | None") -> "Role":
        """Parse a role, defaulting to ``user`` when absent.

        Raises:
            ValueError: If the value is not a known role.
        """
        if value is None or value == "":
            return cls.USER
        if isinstance(value, Role):
            return value
        return cls(str(value).strip().lower())


class ResourceKind(str, Enum):
    """Entity kinds governed by count limits."""

    FILES = "files"
    SHORT_LINKS = "short_links"

    @property
    def label(self) -> str:
        return "files" if self is ResourceKind.FILES else "short links"


class Unlimited(Enum):
    """Tagged "no ceiling" value for effective limits."""

    UNLIMITED = "unlimited"

    def __repr__(self) -> str:
        return "UNLIMITED"


UNLIMITED = Unlimited.UNLIMITED

EffectiveLimit = Union[int, Unlimited]


def is_unlimited(limit: EffectiveLimit) -> bool:
    return limit is UNLIMITED


def coerce_limit(value: Any) -> int | None:
    """Coerce a stored limit to a non-negative int, or None when malformed.

    Booleans, negatives, fractions and non-numeric strings are malformed.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        if value.is_integer() and value >= 0:
            return int(value)
        return None
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def normalize_override(value: Any) -> int | None:
    """Normalize a per-user override: ``0`` and malformed values mean "no override"."""
    limit = coerce_limit(value)
    if limit == 0:
        return None
    return limit


@dataclass(frozen=True)
class UserOverrides:
    """Optional per-user ceilings. ``None`` falls through to the role default."""

    max_storage_mb: int | None = None
    max_upload_mb: int | None = None
    files_limit: int | None = None
    short_links_limit: int | None = None

    @classmethod
    def normalized(cls, **values: Any) -> "UserOverrides":
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"Unknown override fields: {sorted(unknown)}")
        return cls(**{name: normalize_override(v) for name, v in values.items()})

    def for_kind(self, kind: ResourceKind) -> int | None:
        if kind is ResourceKind.FILES:
            return self.files_limit
        return self.short_links_limit

    def as_dict(self) -> dict[str, int | None]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class UserRecord:
    """The slice of a user row the governance engine reads."""

    id: str
    email: str | None
    role: Role = Role.USER
    overrides: UserOverrides = field(default_factory=UserOverrides)


@dataclass(frozen=True)
class Principal:
    """Caller identity supplied by the authentication layer."""

    user_id: str
    role: Role = Role.USER


@dataclass(frozen=True)
class ServerDefaults:
    """Global configuration record. Fields are None when not configured."""

    max_upload_mb: int | None = 1024
    max_files_per_upload: int | None = 25
    user_max_storage_mb: int | None = 5120
    admin_max_storage_mb: int | None = 10240
    user_daily_quota_mb: int | None = 1024
    admin_daily_quota_mb: int | None = 2048
    files_limit_user: int | None = 250
    files_limit_admin: int | None = 500
    short_links_limit_user: int | None = 50
    short_links_limit_admin: int | None = 100
    allowed_mime_prefixes: tuple[str, ...] = ()
    disallowed_extensions: tuple[str, ...] = ()

    @classmethod
    def field_names(cls) -> set[str]:
        return {f.name for f in fields(cls)}

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ServerDefaults":
        """Build from a raw mapping; missing or malformed numbers become None."""
        values: dict[str, Any] = {}
        for name in cls.field_names():
            raw = data.get(name)
            if name in ("allowed_mime_prefixes", "disallowed_extensions"):
                values[name] = _string_tuple(raw)
            else:
                values[name] = coerce_limit(raw)
        if values["disallowed_extensions"]:
            values["disallowed_extensions"] = tuple(
                _normalize_extension(ext) for ext in values["disallowed_extensions"]
            )
        return cls(**values)

    def updated(self, changes: Mapping[str, Any]) -> "ServerDefaults":
        """Return a copy with ``changes`` applied (same coercion as from_mapping)."""
        unknown = set(changes) - self.field_names()
        if unknown:
            raise ValueError(f"Unknown settings fields: {sorted(unknown)}")
        merged = {**self.as_dict(), **changes}
        return ServerDefaults.from_mapping(merged)

    def count_limit(self, kind: ResourceKind, role: Role) -> int | None:
        admin = role.is_admin
        if kind is ResourceKind.FILES:
            return self.files_limit_admin if admin else self.files_limit_user
        return self.short_links_limit_admin if admin else self.short_links_limit_user

    def storage_cap_mb(self, role: Role) -> int | None:
        return self.admin_max_storage_mb if role.is_admin else self.user_max_storage_mb

    def daily_quota_mb(self, role: Role) -> int | None:
        return self.admin_daily_quota_mb if role.is_admin else self.user_daily_quota_mb

    def as_dict(self) -> dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["allowed_mime_prefixes"] = list(self.allowed_mime_prefixes)
        data["disallowed_extensions"] = list(self.disallowed_extensions)
        return data


def _string_tuple(raw: Any) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        raw = raw.split(",")
    return tuple(str(item).strip() for item in raw if str(item).strip())


def _normalize_extension(ext: str) -> str:
    ext = ext.strip().lower()
    return ext if ext.startswith(".") else f".{ext}"
