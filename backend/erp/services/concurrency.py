# Overview: Transaction boundary and row-locking helpers shared by every write path.

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import StorageError
from ..extensions import db

logger = logging.getLogger(__name__)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    On SQLite the write lock is taken up front by begin_write().
    """
    return query.with_for_update()


def begin_write() -> None:
    """
    Open the write transaction eagerly on SQLite.

    pysqlite defers BEGIN until the first DML statement, so two requests can
    both read a stale stock value before either one writes. BEGIN IMMEDIATE
    takes the database write lock at the start instead. Other dialects rely
    on row locks and conditional updates.
    """
    if db.engine.dialect.name != "sqlite":
        return
    conn = db.session.connection()
    if not conn.connection.dbapi_connection.in_transaction:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def run_in_transaction(func, *, attempts: int = 3, backoff_base: float = 0.05):
    """
    Run func as one unit of work: commit on success, rollback on any error.

    Retries on OperationalError (locked database, deadlocks) and
    StaleDataError. Domain errors propagate untouched after rollback and are
    never retried. Other SQLAlchemy failures surface as StorageError.
    """
    for attempt in range(attempts):
        try:
            begin_write()
            result = func()
            db.session.commit()
            return result
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                logger.error("Transaction failed after %d attempts: %s", attempts, exc)
                raise StorageError("Storage is busy, please retry") from exc
            logger.warning("Transient storage error, retrying (attempt %d): %s", attempt + 1, exc)
            time.sleep(backoff_base * (2 ** attempt))
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.exception("Storage failure, transaction rolled back")
            raise StorageError("Storage failure") from exc
        except Exception:
            db.session.rollback()
            raise
    raise StorageError("Storage failure")
