"""
Database connection management for the Systematic Theology Index.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from .paths import DB_PATH


@contextmanager
def get_conn(
    db_path: Optional[Path] = None, readonly: bool = False
) -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections.

    Args:
        db_path: Database file (default: theology.sqlite at project root)
        readonly: If True, open in read-only mode

    Yields:
        sqlite3.Connection with row_factory set to Row, in autocommit mode so
        that writes are grouped explicitly with transaction().
    """
    path = Path(db_path) if db_path is not None else DB_PATH
    if readonly:
        conn = sqlite3.connect(f"file:{path}?mode=ro", uri=True)
    else:
        path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(path))
    conn.isolation_level = None
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(conn: sqlite3.Connection) -> Generator[sqlite3.Connection, None, None]:
    """
    Run a block of writes atomically.

    Commits when the block finishes, rolls back and re-raises on any
    exception so no partial state survives.
    """
    conn.execute("BEGIN;")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK;")
        raise
    conn.execute("COMMIT;")
