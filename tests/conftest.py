"""Pytest configuration and fixtures shared across all test modules.

This file is loaded by pytest before any test module, so the environment
variables below are in place before ``vaultgate.core.config`` builds the
global settings.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("DB_BACKEND", "memory")
os.environ.setdefault("DB_COUNTER_BACKEND", "memory")
os.environ.setdefault("LIMITS_EMAILS_DISABLED", "true")

from datetime import datetime
from unittest.mock import Mock

import pytest

from vaultgate.adapters.counter_store.in_memory import InMemoryCounterStore
from vaultgate.adapters.store.in_memory import InMemoryGovernanceStore
from vaultgate.domain.limits import ServerDefaults
from vaultgate.services.admission_policy import AdmissionPolicy
from vaultgate.services.limit_resolver import LimitResolver
from vaultgate.services.rate_limiter import RateLimiter
from vaultgate.services.usage_accountant import UsageAccountant

MB = 1_000_000
NOW = datetime(2024, 5, 10, 12, 0, 0)


@pytest.fixture
def store() -> InMemoryGovernanceStore:
    return InMemoryGovernanceStore(ServerDefaults())


@pytest.fixture
def notifier() -> Mock:
    return Mock()


@pytest.fixture
def clock() -> Mock:
    return Mock(return_value=NOW)


@pytest.fixture
def accountant(store: InMemoryGovernanceStore, clock: Mock) -> UsageAccountant:
    return UsageAccountant(store, clock=clock)


@pytest.fixture
def policy(store: InMemoryGovernanceStore, accountant: UsageAccountant, notifier: Mock) -> AdmissionPolicy:
    return AdmissionPolicy(store, LimitResolver(store), accountant, notifier)


@pytest.fixture
def counter_store() -> InMemoryCounterStore:
    return InMemoryCounterStore()


@pytest.fixture
def limiter_clock() -> Mock:
    return Mock(return_value=1_000.0)


@pytest.fixture
def limiter(counter_store: InMemoryCounterStore, limiter_clock: Mock) -> RateLimiter:
    return RateLimiter(counter_store, clock=limiter_clock)
