"""SQLAlchemy implementation of the governance store.

All aggregates are ``COALESCE(SUM/COUNT, 0)`` queries issued per call. Store
failures (connectivity, query errors) propagate as SQLAlchemy exceptions; the
HTTP layer turns them into a generic 500, which rejects the request.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping

from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from vaultgate.adapters.store.base import AbstractGovernanceStore
from vaultgate.adapters.store.models import (
    SETTINGS_ROW_ID,
    FileRow,
    ServerSettingsRow,
    ShortLinkRow,
    UserRow,
)
from vaultgate.domain.limits import (
    ResourceKind,
    Role,
    ServerDefaults,
    UserOverrides,
    UserRecord,
    normalize_override,
)

logger = logging.getLogger(__name__)

_OVERRIDE_COLUMNS = ("max_storage_mb", "max_upload_mb", "files_limit", "short_links_limit")


def _to_record(row: UserRow) -> UserRecord:
    try:
        role = Role.parse(row.role)
    except ValueError:
        logger.warning("store.unknown_role", extra={"user_id": row.id, "role": row.role})
        role = Role.USER
    return UserRecord(
        id=row.id,
        email=row.email,
        role=role,
        overrides=UserOverrides.normalized(**{col: getattr(row, col) for col in _OVERRIDE_COLUMNS}),
    )


def _settings_mapping(row: ServerSettingsRow) -> dict[str, Any]:
    return {name: getattr(row, name) for name in ServerDefaults.field_names()}


class SqlGovernanceStore(AbstractGovernanceStore):
    """Governance store over the vault's relational schema."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)

    def _session(self) -> Session:
        return self._sessions()

    def _ensure_settings_row(self, session: Session) -> ServerSettingsRow:
        row = session.get(ServerSettingsRow, SETTINGS_ROW_ID)
        if row is None:
            row = ServerSettingsRow(id=SETTINGS_ROW_ID)
            session.add(row)
            session.flush()
        return row

    def get_user(self, user_id: str) -> UserRecord | None:
        with self._session() as session:
            row = session.get(UserRow, user_id)
            return _to_record(row) if row is not None else None

    def get_server_defaults(self) -> ServerDefaults:
        with self._session() as session, session.begin():
            row = self._ensure_settings_row(session)
            return ServerDefaults.from_mapping(_settings_mapping(row))

    def update_server_defaults(self, changes: Mapping[str, Any]) -> ServerDefaults:
        with self._session() as session, session.begin():
            row = self._ensure_settings_row(session)
            current = ServerDefaults.from_mapping(_settings_mapping(row))
            updated = current.updated(changes)
            for name, value in updated.as_dict().items():
                if name in changes:
                    setattr(row, name, value)
            logger.info("store.settings_updated", extra={"fields": sorted(changes)})
            return updated

    def update_user_overrides(self, user_id: str, changes: Mapping[str, Any]) -> UserRecord | None:
        unknown = set(changes) - set(_OVERRIDE_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown override fields: {sorted(unknown)}")
        with self._session() as session, session.begin():
            row = session.get(UserRow, user_id)
            if row is None:
                return None
            for name, value in changes.items():
                setattr(row, name, normalize_override(value))
            return _to_record(row)

    def count_entities(self, user_id: str, kind: ResourceKind) -> int:
        model = FileRow if kind is ResourceKind.FILES else ShortLinkRow
        stmt = select(func.count()).select_from(model).where(model.user_id == user_id)
        with self._session() as session:
            return int(session.execute(stmt).scalar_one())

    def sum_file_bytes(
        self,
        user_id: str,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> int:
        stmt = select(func.coalesce(func.sum(FileRow.size), 0)).where(FileRow.user_id == user_id)
        if start is not None:
            stmt = stmt.where(FileRow.created_at >= start)
        if end is not None:
            stmt = stmt.where(FileRow.created_at <= end)
        with self._session() as session:
            return int(session.execute(stmt).scalar_one())
