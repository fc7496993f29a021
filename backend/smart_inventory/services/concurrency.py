# Overview: Service-layer operations for concurrency; row locks, retries and the unit-of-work boundary.

from __future__ import annotations

import logging
import time

from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import PersistenceError, StockError
from ..extensions import db

logger = logging.getLogger(__name__)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    On SQLite the unit of work takes the database write lock up front instead
    (see begin_write_transaction).
    """
    return query.with_for_update()


def begin_write_transaction() -> None:
    """
    On SQLite, take the RESERVED lock before the first read so concurrent
    read-modify-write units serialize instead of racing. No-op elsewhere:
    row locks from lock_for_update do the job.
    """
    if db.engine.dialect.name == "sqlite":
        db.session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, lock timeouts) and StaleDataError
    (optimistic locking conflicts on version_id).
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
            logger.warning(
                "Retrying unit of work after %s (attempt %d/%d)",
                type(exc).__name__, attempt + 1, attempts,
            )
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def run_in_unit_of_work(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run func() as one atomic unit of work and commit it.

    - func must not commit; it only reads, locks, adds and flushes.
    - Any exception rolls the whole unit back; nothing func did is persisted.
    - StockError subclasses propagate unchanged.
    - Storage failures (including exhausted lock/deadlock retries) surface as
      PersistenceError.
    - func may be called more than once (retries), so it must rebuild any
      per-attempt state (e.g. alert outboxes) on every call.
    """
    def _op():
        begin_write_transaction()
        result = func()
        db.session.commit()
        return result

    try:
        return run_with_retry(_op, attempts=attempts, backoff_base=backoff_base)
    except StockError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Unit of work failed; rolled back")
        raise PersistenceError("Could not save stock changes. Please try again.") from exc
    except Exception:
        db.session.rollback()
        raise
