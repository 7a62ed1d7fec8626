"""
Shared SQLite connection handling for the repository adapters.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from library_app.domain.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


@contextmanager
def open_connection(db_path: Path, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> Iterator[sqlite3.Connection]:
    """
    Open a connection for one unit of work.

    The transaction is committed when the block exits normally and rolled
    back on error; the connection is always closed. Each call gets its own
    connection, so adapters can be shared between threads.

    Args:
        db_path: Path of the SQLite database file
        timeout: Seconds to wait on a locked database before failing
    """
    # IMMEDIATE: writes take the database write lock when the transaction
    # begins, waiting up to `timeout` for it.
    conn = sqlite3.connect(str(db_path), timeout=timeout, isolation_level="IMMEDIATE")
    conn.row_factory = sqlite3.Row # Needed to access by name column and not a number
    try:
        with conn:
            yield conn
    finally:
        conn.close()


@contextmanager
def store_errors(action: str) -> Iterator[None]:
    """
    Translate database failures into StoreUnavailableError.

    IntegrityError is left alone so that callers can map constraint
    violations to domain errors themselves.
    """
    try:
        yield
    except sqlite3.IntegrityError:
        raise
    except sqlite3.Error as e:
        logger.error("Database error while %s: %s", action, e)
        raise StoreUnavailableError(f"Database error while {action}: {e}") from e
