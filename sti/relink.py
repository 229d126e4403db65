"""
Relink maintenance pass.

Re-scans stored entry content for free-text citations that were never linked,
wraps them in canonical markup, and appends index rows for them (never
primary). Running it twice in a row changes nothing the second time.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from . import store
from .db import get_conn, transaction
from .indexer import index_references
from .model import utc_now_iso
from .paths import BACKUP_DIR
from .schema import init_schema
from .scripture import extract_linked_refs, link_unlinked_refs
from .util import count_words, debug, info, ok, warn

MAX_SAMPLES = 10


@dataclass
class RelinkReport:
    processed: int = 0
    modified: int = 0
    references_linked: int = 0
    index_before: int = 0
    index_after: int = 0
    samples: List[str] = field(default_factory=list)
    backup_path: Optional[Path] = None
    dry_run: bool = False


def index_row_count(conn: sqlite3.Connection) -> int:
    return int(conn.execute("SELECT COUNT(*) FROM systematic_scripture_index;").fetchone()[0])


def backup_database(conn: sqlite3.Connection, backup_dir: Path = BACKUP_DIR) -> Path:
    """
    Copy the live database with SQLite's online backup API.
    """
    backup_dir = Path(backup_dir)
    backup_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    target = backup_dir / f"theology_before_relink_{stamp}.sqlite"
    dest = sqlite3.connect(str(target))
    try:
        conn.backup(dest)
    finally:
        dest.close()
    return target


class RelinkMaintenancePass:
    """
    Parameters
    ----------
    db_path:
        SQLite file to maintain.
    dry_run:
        Report what would change; write nothing.
    chapter:
        Only entries of this chapter number.
    limit:
        Only the first N entries (in sort order).
    backup:
        Take an online backup before mutating (skipped in dry run).
    backup_dir:
        Where backups go (default: data/backups).
    """

    def __init__(
        self,
        db_path: Path,
        dry_run: bool = False,
        chapter: Optional[int] = None,
        limit: Optional[int] = None,
        backup: bool = False,
        backup_dir: Path = BACKUP_DIR,
    ):
        self.db_path = Path(db_path)
        self.dry_run = dry_run
        self.chapter = chapter
        self.limit = limit
        self.backup = backup
        self.backup_dir = Path(backup_dir)

    def run(self) -> RelinkReport:
        report = RelinkReport(dry_run=self.dry_run)

        with get_conn(self.db_path, readonly=self.dry_run) as conn:
            if not self.dry_run:
                init_schema(conn)
            report.index_before = index_row_count(conn)

            if self.backup and not self.dry_run:
                report.backup_path = backup_database(conn, self.backup_dir)
                info(f"Backup written to {report.backup_path}")

            entries = store.fetch_entries_with_content(conn, chapter=self.chapter, limit=self.limit)
            info(f"Scanning {len(entries)} entr{'y' if len(entries) == 1 else 'ies'}")

            if self.dry_run:
                for entry in entries:
                    report.processed += 1
                    _, linked = link_unlinked_refs(entry.content)
                    self._note(report, entry, linked)
                report.index_after = report.index_before
            else:
                with transaction(conn):
                    now = utc_now_iso()
                    for entry in entries:
                        report.processed += 1
                        content, linked = link_unlinked_refs(entry.content)
                        if not linked:
                            continue
                        self._note(report, entry, linked)
                        store.update_content(conn, entry.id, content, count_words(content), now)
                        index_references(
                            conn,
                            entry.id,
                            extract_linked_refs(content),
                            content,
                            now,
                            mark_primary=False,
                        )
                report.index_after = index_row_count(conn)

        self._print(report)
        return report

    def _note(self, report: RelinkReport, entry, linked) -> None:
        if not linked:
            return
        report.modified += 1
        report.references_linked += len(linked)
        debug(f"{entry.label}: {', '.join(r.locator for r in linked)}")
        if len(report.samples) < MAX_SAMPLES:
            report.samples.append(f"{entry.label} {entry.title}: {', '.join(r.text for r in linked)}")

    def _print(self, report: RelinkReport) -> None:
        label = "Dry run" if report.dry_run else "Relink"
        ok(
            f"{label} complete: {report.processed} processed, {report.modified} modified, "
            f"{report.references_linked} reference(s) linked"
        )
        info(f"Index rows: {report.index_before} -> {report.index_after}")
        if report.samples:
            info("Samples:")
            for sample in report.samples:
                print(f"  - {sample}")
        if report.dry_run and report.modified:
            warn("Dry run: no changes were written")


def run_relink(db_path: Path, **kwargs) -> RelinkReport:
    return RelinkMaintenancePass(db_path, **kwargs).run()
