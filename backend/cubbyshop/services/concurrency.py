# Overview: Service-layer helpers for concurrent writes (row locks, retries, guarded decrements).

from __future__ import annotations

import logging
import time

import sqlalchemy as sa
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


logger = logging.getLogger(__name__)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts).
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            logger.warning("Retrying after concurrency error (attempt %s): %s", attempt + 1, exc)
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def guarded_decrement(model, row_id, column: str, amount: int) -> bool:
    """
    Decrement model.column by amount only if the stored value is still >= amount.

    Single UPDATE ... WHERE column >= amount, so two writers can never both
    take the last unit. Returns False when no row matched.
    """
    col = getattr(model, column)
    result = db.session.execute(
        sa.update(model)
        .where(model.id == row_id, col >= amount)
        .values({column: col - amount})
    )
    return result.rowcount == 1
