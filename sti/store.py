"""
Entry repository for the systematic_theology table.

All functions take an open connection; grouping writes into a transaction is
the caller's job (see db.transaction).
"""

from __future__ import annotations

import sqlite3
from dataclasses import replace
from typing import Dict, List, Optional

from .model import DoctrineEntry

_ENTRY_COLUMNS = (
    "id", "entry_type", "part_number", "chapter_number", "section_letter",
    "subsection_number", "title", "content", "summary", "parent_id",
    "sort_order", "word_count", "created_at", "updated_at",
)

UPSERT_SQL = f"""
INSERT INTO systematic_theology ({", ".join(_ENTRY_COLUMNS)})
VALUES ({", ".join(":" + c for c in _ENTRY_COLUMNS)})
ON CONFLICT(id) DO UPDATE SET
    entry_type        = excluded.entry_type,
    part_number       = excluded.part_number,
    chapter_number    = excluded.chapter_number,
    section_letter    = excluded.section_letter,
    subsection_number = excluded.subsection_number,
    title             = excluded.title,
    content           = excluded.content,
    summary           = COALESCE(excluded.summary, systematic_theology.summary),
    parent_id         = excluded.parent_id,
    sort_order        = excluded.sort_order,
    word_count        = excluded.word_count,
    updated_at        = excluded.updated_at;
"""


def upsert_entry(conn: sqlite3.Connection, entry: DoctrineEntry, now: str) -> None:
    """
    Insert an entry, or update it in place when its id already exists.

    created_at of an existing row is kept, and an existing summary survives
    when the new entry carries none.
    """
    conn.execute(UPSERT_SQL, entry.to_row(now))


def find_part(conn: sqlite3.Connection, part_number: int) -> Optional[sqlite3.Row]:
    cur = conn.execute(
        """
        SELECT id, title FROM systematic_theology
        WHERE entry_type = 'part' AND part_number = ?
        ORDER BY created_at
        LIMIT 1;
        """,
        (part_number,),
    )
    return cur.fetchone()


def resolve_parts(conn: sqlite3.Connection, entries: List[DoctrineEntry]) -> List[DoctrineEntry]:
    """
    Map each parsed part onto the part already stored with the same number.

    A stored part keeps its id, and its title when the parsed part only has
    the placeholder 'Part N' (the input had no part header). Children of the
    parsed part are re-parented onto it. Parts not yet stored keep their
    parsed id.
    """
    remap: Dict[str, str] = {}
    titles: Dict[str, str] = {}
    for entry in entries:
        if entry.entry_type != "part" or entry.part_number is None:
            continue
        existing = find_part(conn, entry.part_number)
        if existing is None:
            continue
        if existing["id"] != entry.id:
            remap[entry.id] = existing["id"]
        if entry.title == f"Part {entry.part_number}":
            titles[entry.id] = existing["title"]

    if not remap and not titles:
        return list(entries)

    out: List[DoctrineEntry] = []
    for entry in entries:
        if entry.id in titles:
            entry = replace(entry, title=titles[entry.id])
        if entry.id in remap:
            entry = replace(entry, id=remap[entry.id])
        if entry.parent_id in remap:
            entry = replace(entry, parent_id=remap[entry.parent_id])
        out.append(entry)
    return out


def clear_all(conn: sqlite3.Connection) -> None:
    """Remove every entry, index row, edge and chapter-tag link."""
    conn.execute("DELETE FROM systematic_chapter_tags;")
    conn.execute("DELETE FROM systematic_related;")
    conn.execute("DELETE FROM systematic_scripture_index;")
    conn.execute("DELETE FROM systematic_theology;")


def get_entry(conn: sqlite3.Connection, entry_id: str) -> Optional[DoctrineEntry]:
    cur = conn.execute("SELECT * FROM systematic_theology WHERE id = ?;", (entry_id,))
    row = cur.fetchone()
    return DoctrineEntry.from_db_row(row) if row else None


def fetch_entries_with_content(
    conn: sqlite3.Connection,
    chapter: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[DoctrineEntry]:
    """
    Entries with non-empty content in sort order, optionally for one chapter
    and capped at limit rows.
    """
    sql = "SELECT * FROM systematic_theology WHERE content IS NOT NULL AND content != ''"
    params: list = []
    if chapter is not None:
        sql += " AND chapter_number = ?"
        params.append(chapter)
    sql += " ORDER BY sort_order, rowid"
    if limit is not None:
        sql += " LIMIT ?"
        params.append(limit)
    return [DoctrineEntry.from_db_row(r) for r in conn.execute(sql, params).fetchall()]


def update_content(
    conn: sqlite3.Connection, entry_id: str, content: str, word_count: int, now: str
) -> None:
    conn.execute(
        """
        UPDATE systematic_theology
        SET content = ?, word_count = ?, updated_at = ?
        WHERE id = ?;
        """,
        (content, word_count, now, entry_id),
    )


def entry_counts(conn: sqlite3.Connection) -> Dict[str, int]:
    counts = {t: 0 for t in ("part", "chapter", "section", "subsection")}
    for row in conn.execute(
        "SELECT entry_type, COUNT(*) AS n FROM systematic_theology GROUP BY entry_type;"
    ):
        counts[row["entry_type"]] = int(row["n"])
    return counts
