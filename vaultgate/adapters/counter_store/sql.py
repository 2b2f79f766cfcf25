"""SQL-backed counter store shared across worker processes.

Each hit runs in one transaction: an insert-if-absent seeds the row with zero
hits, then a single conditional ``UPDATE ... RETURNING`` either restarts the
window or increments the count. The database's row lock on that UPDATE is
what makes the read-check-increment atomic per key.
"""

from __future__ import annotations

import logging

from sqlalchemy import case, delete, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine

from vaultgate.adapters.counter_store.base import AbstractCounterStore, CounterState
from vaultgate.adapters.store.models import RateLimitRow

logger = logging.getLogger(__name__)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SqlCounterStore(AbstractCounterStore):
    """Counter store persisting windows in the ``rate_limits`` table."""

    def __init__(self, engine: Engine) -> None:
        dialect = engine.dialect.name
        if dialect not in _INSERT_BY_DIALECT:
            raise ValueError(f"Unsupported database dialect for counters: {dialect}")
        self._engine = engine
        self._insert = _INSERT_BY_DIALECT[dialect]

    def hit(self, key: str, *, window_ms: int, now_ms: int) -> CounterState:
        if not key:
            raise ValueError("key must be a non-empty string")
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")

        table = RateLimitRow.__table__
        expired = table.c.window_start_ms <= now_ms - window_ms

        seed = (
            self._insert(table)
            .values(key=key, hits=0, window_start_ms=now_ms)
            .on_conflict_do_nothing(index_elements=[table.c.key])
        )
        bump = (
            update(table)
            .where(table.c.key == key)
            .values(
                hits=case((expired, 1), else_=table.c.hits + 1),
                window_start_ms=case((expired, now_ms), else_=table.c.window_start_ms),
            )
            .returning(table.c.hits, table.c.window_start_ms)
        )

        with self._engine.begin() as conn:
            conn.execute(seed)
            row = conn.execute(bump).one()

        return CounterState(key=key, count=int(row.hits), window_start_ms=int(row.window_start_ms))

    def purge_expired(self, *, window_ms: int, now_ms: int) -> int:
        table = RateLimitRow.__table__
        with self._engine.begin() as conn:
            result = conn.execute(delete(table).where(table.c.window_start_ms <= now_ms - window_ms))
        removed = result.rowcount or 0
        logger.debug("counter_store.purged", extra={"removed": removed})
        return removed
