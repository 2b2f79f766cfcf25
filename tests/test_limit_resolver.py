"""Unit tests for effective limit resolution."""

import pytest

from vaultgate.adapters.store.in_memory import InMemoryGovernanceStore
from vaultgate.domain.limits import UNLIMITED, ResourceKind, Role, ServerDefaults
from vaultgate.services.limit_resolver import LimitResolver


@pytest.fixture
def resolver(store: InMemoryGovernanceStore) -> LimitResolver:
    return LimitResolver(store)


@pytest.mark.parametrize("role", [Role.USER, Role.ADMIN, Role.OWNER])
@pytest.mark.parametrize("kind, field", [(ResourceKind.FILES, "files_limit"), (ResourceKind.SHORT_LINKS, "short_links_limit")])
def test_override_precedence(store, resolver, role, kind, field) -> None:
    store.add_user("u1", role=role, **{field: 7})

    assert resolver.effective_limit("u1", kind, role) == 7


def test_zero_override_falls_through_to_role_default(store, resolver) -> None:
    store.add_user("u1", files_limit=0, short_links_limit=0)

    assert resolver.effective_limit("u1", ResourceKind.FILES, Role.USER) == 250
    assert resolver.effective_limit("u1", ResourceKind.SHORT_LINKS, Role.USER) == 50


@pytest.mark.parametrize(
    "role, files, links",
    [
        (Role.USER, 250, 50),
        (Role.ADMIN, 500, 100),
        (Role.OWNER, 500, 100),
    ],
)
def test_role_defaults(store, resolver, role, files, links) -> None:
    store.add_user("u1", role=role)

    assert resolver.effective_limit("u1", ResourceKind.FILES, role) == files
    assert resolver.effective_limit("u1", ResourceKind.SHORT_LINKS, role) == links


def test_role_string_is_accepted(store, resolver) -> None:
    store.add_user("u1")

    assert resolver.effective_limit("u1", ResourceKind.FILES, "owner") == 500
    assert resolver.effective_limit("u1", ResourceKind.FILES, None) == 250


def test_missing_count_default_is_unlimited(store, resolver) -> None:
    store.add_user("u1")
    store.replace_server_defaults(ServerDefaults(files_limit_user=None))

    assert resolver.effective_limit("u1", ResourceKind.FILES, Role.USER) is UNLIMITED


def test_malformed_count_default_is_unlimited(store, resolver) -> None:
    store.add_user("u1")
    store.replace_server_defaults(ServerDefaults.from_mapping({"short_links_limit_user": "lots"}))

    assert resolver.effective_limit("u1", ResourceKind.SHORT_LINKS, Role.USER) is UNLIMITED


def test_unknown_user_gets_zero(resolver) -> None:
    assert resolver.effective_limit("ghost", ResourceKind.FILES, Role.ADMIN) == 0


def test_explicit_defaults_snapshot_is_used(store, resolver) -> None:
    store.add_user("u1")
    snapshot = ServerDefaults(files_limit_user=3)

    assert resolver.effective_limit("u1", ResourceKind.FILES, Role.USER, defaults=snapshot) == 3


def test_upload_limits_apply_overrides(store, resolver) -> None:
    store.add_user("u1", max_upload_mb=5, max_storage_mb=100)

    limits = resolver.upload_limits("u1", Role.USER)

    assert limits.max_upload_mb == 5
    assert limits.max_storage_mb == 100
    assert limits.max_files_per_upload == 25
    assert limits.daily_quota_mb == 1024


def test_upload_limits_for_admin_tier(store, resolver) -> None:
    store.add_user("u1", role=Role.OWNER)

    limits = resolver.upload_limits("u1", Role.OWNER)

    assert limits.max_storage_mb == 10240
    assert limits.daily_quota_mb == 2048
    assert limits.max_upload_mb == 1024


def test_upload_limits_report_missing_as_none(store, resolver) -> None:
    store.add_user("u1")
    store.replace_server_defaults(ServerDefaults(user_daily_quota_mb=None))

    assert resolver.upload_limits("u1", Role.USER).daily_quota_mb is None
