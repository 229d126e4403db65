"""
Status and health-report helpers for the Systematic Theology Index.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Tuple

import sqlite3

from . import store
from .db import get_conn
from .schema import table_exists
from .util import info, warn


def get_entry_counts(db_path: Path) -> Optional[dict]:
    """
    Return {entry_type: count}, or None if the table is missing.
    """
    try:
        with get_conn(db_path, readonly=True) as conn:
            return store.entry_counts(conn)
    except sqlite3.Error:
        return None


def get_table_counts(db_path: Path) -> List[Tuple[str, int]]:
    """
    Return (table, row_count) for the index, edge and tag tables that exist.
    """
    tables = (
        "systematic_scripture_index",
        "systematic_related",
        "systematic_tags",
        "systematic_chapter_tags",
    )
    out: List[Tuple[str, int]] = []
    try:
        with get_conn(db_path, readonly=True) as conn:
            for name in tables:
                if not table_exists(conn, name):
                    continue
                count = conn.execute(f"SELECT COUNT(*) FROM {name};").fetchone()[0]
                out.append((name, int(count)))
    except sqlite3.Error:
        return []
    return out


def get_last_run(db_path: Path) -> Optional[sqlite3.Row]:
    """
    Return the most recent import_runs row, or None.
    """
    try:
        with get_conn(db_path, readonly=True) as conn:
            return conn.execute(
                """
                SELECT source, mode, parts, chapters, sections, subsections,
                       scripture_refs, cross_refs, finished_at
                FROM import_runs
                ORDER BY id DESC
                LIMIT 1;
                """
            ).fetchone()
    except sqlite3.Error:
        return None


def print_status(db_path: Path) -> None:
    """
    Print a human-readable status report:

    - DB path
    - Outline entry counts by type
    - Index / edge / tag row counts
    - Last import run
    """
    info(f"Database: {db_path}")
    if not Path(db_path).exists():
        warn("Database file does not exist yet. Run `init-schema` or `import`.")
        return

    counts = get_entry_counts(db_path)
    if counts is None:
        warn("Outline table `systematic_theology` not found.")
    else:
        info("Outline entries:")
        for entry_type, n in counts.items():
            print(f"  - {entry_type}: {n}")

    for name, n in get_table_counts(db_path):
        print(f"  - {name}: {n} row(s)")

    run = get_last_run(db_path)
    if run is None:
        warn("No import runs recorded.")
    else:
        info(
            f"Last import: {run['source']} ({run['mode']}) at {run['finished_at']}: "
            f"{run['chapters']} chapter(s), {run['scripture_refs']} scripture ref(s), "
            f"{run['cross_refs']} cross ref(s)"
        )
