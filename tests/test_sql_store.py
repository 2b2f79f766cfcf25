"""Tests for the SQLAlchemy governance store against in-memory SQLite."""

from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from vaultgate.adapters.store.models import FileRow, ShortLinkRow, UserRow, create_schema
from vaultgate.adapters.store.sql import SqlGovernanceStore
from vaultgate.domain.limits import ResourceKind, Role, ServerDefaults


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(engine) -> SqlGovernanceStore:
    with Session(engine) as session, session.begin():
        session.add_all(
            [
                UserRow(id="u1", email="ada@example.com", role="user", files_limit=0, max_upload_mb=15),
                UserRow(id="u2", email="root@example.com", role="owner"),
                UserRow(id="u3", email=None, role="superhero"),
            ]
        )
        session.add_all(
            [
                FileRow(user_id="u1", size=1_000_000, created_at=datetime(2024, 5, 9, 23, 59, 59, 999000)),
                FileRow(user_id="u1", size=2_000_000, created_at=datetime(2024, 5, 10, 0, 0, 0)),
                FileRow(user_id="u1", size=4_000_000, created_at=datetime(2024, 5, 10, 23, 59, 59, 999000)),
                FileRow(user_id="u2", size=8_000_000, created_at=datetime(2024, 5, 10, 12, 0, 0)),
            ]
        )
        session.add_all([ShortLinkRow(user_id="u1"), ShortLinkRow(user_id="u1")])
    return SqlGovernanceStore(engine)


def test_get_user_normalizes_zero_overrides(sql_store: SqlGovernanceStore) -> None:
    user = sql_store.get_user("u1")

    assert user is not None
    assert user.email == "ada@example.com"
    assert user.role is Role.USER
    assert user.overrides.files_limit is None
    assert user.overrides.max_upload_mb == 15


def test_get_user_unknown(sql_store) -> None:
    assert sql_store.get_user("missing") is None


def test_unknown_role_falls_back_to_user(sql_store) -> None:
    assert sql_store.get_user("u3").role is Role.USER


def test_server_defaults_row_is_created_with_defaults(sql_store) -> None:
    assert sql_store.get_server_defaults() == ServerDefaults()


def test_update_server_defaults_is_partial(sql_store) -> None:
    updated = sql_store.update_server_defaults({"files_limit_user": 3, "disallowed_extensions": ["EXE"]})

    assert updated.files_limit_user == 3
    assert updated.files_limit_admin == 500
    assert updated.disallowed_extensions == (".exe",)
    assert sql_store.get_server_defaults() == updated


def test_update_server_defaults_can_clear_a_field(sql_store) -> None:
    sql_store.update_server_defaults({"user_daily_quota_mb": None})

    assert sql_store.get_server_defaults().user_daily_quota_mb is None


def test_update_server_defaults_rejects_unknown_fields(sql_store) -> None:
    with pytest.raises(ValueError):
        sql_store.update_server_defaults({"nope": 1})


def test_update_user_overrides(sql_store) -> None:
    record = sql_store.update_user_overrides("u1", {"files_limit": 12, "max_upload_mb": 0})

    assert record.overrides.files_limit == 12
    assert record.overrides.max_upload_mb is None
    assert sql_store.get_user("u1").overrides.files_limit == 12


def test_update_user_overrides_unknown_user(sql_store) -> None:
    assert sql_store.update_user_overrides("missing", {"files_limit": 1}) is None


def test_update_user_overrides_rejects_unknown_fields(sql_store) -> None:
    with pytest.raises(ValueError):
        sql_store.update_user_overrides("u1", {"role": "admin"})


def test_count_entities(sql_store) -> None:
    assert sql_store.count_entities("u1", ResourceKind.FILES) == 3
    assert sql_store.count_entities("u1", ResourceKind.SHORT_LINKS) == 2
    assert sql_store.count_entities("u2", ResourceKind.SHORT_LINKS) == 0


def test_sum_file_bytes(sql_store) -> None:
    assert sql_store.sum_file_bytes("u1") == 7_000_000
    assert sql_store.sum_file_bytes("nobody") == 0


def test_sum_file_bytes_inclusive_day_bounds(sql_store) -> None:
    total = sql_store.sum_file_bytes(
        "u1",
        start=datetime(2024, 5, 10, 0, 0, 0),
        end=datetime(2024, 5, 10, 23, 59, 59, 999999),
    )

    assert total == 6_000_000
