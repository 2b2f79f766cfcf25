"""Process-wide wiring of stores and services.

Instances are cached in-module so state (rate-limit counters, the notifier
pool, the SQLAlchemy engine) survives across requests. Routes depend on the
``get_*`` functions only, which lets tests swap implementations through
``app.dependency_overrides``.
"""

from __future__ import annotations

import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from vaultgate.adapters.counter_store.base import AbstractCounterStore
from vaultgate.adapters.counter_store.in_memory import InMemoryCounterStore
from vaultgate.adapters.counter_store.sql import SqlCounterStore
from vaultgate.adapters.mail.factory import create_mailer
from vaultgate.adapters.store.base import AbstractGovernanceStore
from vaultgate.adapters.store.in_memory import InMemoryGovernanceStore
from vaultgate.adapters.store.models import create_schema
from vaultgate.adapters.store.sql import SqlGovernanceStore
from vaultgate.core.config import settings
from vaultgate.services.admission_policy import AdmissionPolicy
from vaultgate.services.breach_notifier import BreachNotifier
from vaultgate.services.limit_resolver import LimitResolver
from vaultgate.services.rate_limiter import RateLimiter
from vaultgate.services.usage_accountant import UsageAccountant

logger = logging.getLogger(__name__)

_engine: Engine | None = None
_store: AbstractGovernanceStore | None = None
_counter_store: AbstractCounterStore | None = None
_notifier: BreachNotifier | None = None
_limiter: RateLimiter | None = None


def get_engine() -> Engine:
    global _engine

    if _engine is None:
        _engine = create_engine(settings.db.url, echo=settings.db.echo, future=True)
        if settings.db.create_schema:
            create_schema(_engine)
            logger.info("db.schema_created")
    return _engine


def get_store() -> AbstractGovernanceStore:
    """Return the governance store selected by ``DB_BACKEND``."""

    global _store

    if _store is None:
        backend = settings.db.backend.lower()
        if backend == "memory":
            _store = InMemoryGovernanceStore()
        elif backend == "sql":
            _store = SqlGovernanceStore(get_engine())
        else:
            raise ValueError(f"Unsupported DB_BACKEND: {settings.db.backend}")
        logger.info("store.initialized", extra={"backend": backend})
    return _store


def get_counter_store() -> AbstractCounterStore:
    """Return the rate-limit counter store selected by ``DB_COUNTER_BACKEND``.

    The in-memory store is per process; use ``sql`` when several workers
    must share counters.
    """

    global _counter_store

    if _counter_store is None:
        backend = settings.db.counter_backend.lower()
        if backend == "memory":
            _counter_store = InMemoryCounterStore()
        elif backend == "sql":
            _counter_store = SqlCounterStore(get_engine())
        else:
            raise ValueError(f"Unsupported DB_COUNTER_BACKEND: {settings.db.counter_backend}")
        logger.info("counter_store.initialized", extra={"backend": backend})
    return _counter_store


def get_rate_limiter() -> RateLimiter:
    global _limiter

    # One limiter per process so its sweep schedule spans requests
    if _limiter is None:
        _limiter = RateLimiter(
            get_counter_store(),
            sweep_interval_ms=settings.app.rate_limit_sweep_interval_ms,
        )
    return _limiter


def get_breach_notifier() -> BreachNotifier:
    global _notifier

    if _notifier is None:
        _notifier = BreachNotifier(
            get_store(),
            create_mailer(settings.smtp),
            disabled=settings.limits.emails_disabled,
            max_workers=settings.limits.notifier_max_workers,
            product_name=settings.limits.product_name,
            support_email=settings.smtp.support_email,
            support_name=settings.smtp.support_name,
        )
    return _notifier


def get_admission_policy() -> AdmissionPolicy:
    store = get_store()
    return AdmissionPolicy(
        store,
        LimitResolver(store),
        UsageAccountant(store),
        get_breach_notifier(),
    )


def shutdown() -> None:
    """Stop the notifier pool and dispose the engine."""

    global _engine, _store, _counter_store, _notifier, _limiter

    if _notifier is not None:
        _notifier.shutdown(wait=True)
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _store = None
    _counter_store = None
    _notifier = None
    _limiter = None
