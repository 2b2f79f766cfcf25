"""SQLAlchemy table models for the slice of the vault schema this service reads.

Only the columns the governance engine needs are mapped. The vault
application owns these tables; ``create_schema`` exists for local runs and
tests.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, BigInteger, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

SETTINGS_ROW_ID = 1


class Base(DeclarativeBase):
    pass


class UserRow(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(320), unique=True)
    role: Mapped[str] = mapped_column(String(16), default="user", nullable=False)

    # per-user overrides; 0 and NULL both mean "use the role default"
    max_storage_mb: Mapped[int | None] = mapped_column(Integer)
    max_upload_mb: Mapped[int | None] = mapped_column(Integer)
    files_limit: Mapped[int | None] = mapped_column(Integer)
    short_links_limit: Mapped[int | None] = mapped_column(Integer)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)


class FileRow(Base):
    __tablename__ = "files"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    slug: Mapped[str | None] = mapped_column(String(255), unique=True)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    # naive server-local timestamps, same as the vault writes them
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)


class ShortLinkRow(Base):
    __tablename__ = "short_links"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    slug: Mapped[str | None] = mapped_column(String(255), unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)


class ServerSettingsRow(Base):
    __tablename__ = "server_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    max_upload_mb: Mapped[int | None] = mapped_column(Integer, default=1024)
    max_files_per_upload: Mapped[int | None] = mapped_column(Integer, default=25)

    user_max_storage_mb: Mapped[int | None] = mapped_column(Integer, default=5120)
    admin_max_storage_mb: Mapped[int | None] = mapped_column(Integer, default=10240)
    user_daily_quota_mb: Mapped[int | None] = mapped_column(Integer, default=1024)
    admin_daily_quota_mb: Mapped[int | None] = mapped_column(Integer, default=2048)
    files_limit_user: Mapped[int | None] = mapped_column(Integer, default=250)
    files_limit_admin: Mapped[int | None] = mapped_column(Integer, default=500)
    short_links_limit_user: Mapped[int | None] = mapped_column(Integer, default=50)
    short_links_limit_admin: Mapped[int | None] = mapped_column(Integer, default=100)

    allowed_mime_prefixes: Mapped[list[str] | None] = mapped_column(JSON)
    disallowed_extensions: Mapped[list[str] | None] = mapped_column(JSON)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class RateLimitRow(Base):
    __tablename__ = "rate_limits"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    hits: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    window_start_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)


def create_schema(engine: Engine) -> None:
    """Create all mapped tables that do not exist yet."""
    Base.metadata.create_all(engine)
