"""
Scripture index, related-chapter edges, and chapter tags.

The index never holds the same (systematic_id, book, chapter, start_verse,
end_verse) tuple twice: keys already stored for an entry are loaded before
inserting. Edges and tag links rely on unique constraints and INSERT OR IGNORE.
"""

from __future__ import annotations

import sqlite3
import uuid
from typing import Iterable, Optional, Set, Tuple

from .config import PRIMARY_REFERENCE_LIMIT
from .model import CrossRef, ENTRY_NAMESPACE, ScriptureRef, new_id
from .scripture import context_snippet

# part_number -> (tag name, color)
PART_TAGS = {
    1: ("doctrine-word", "#5b7db1"),
    2: ("doctrine-god", "#8e6bb8"),
    3: ("doctrine-man", "#b5835a"),
    4: ("doctrine-christ-spirit", "#c0504d"),
    5: ("doctrine-salvation", "#4f9a6d"),
    6: ("doctrine-church", "#d19a3d"),
    7: ("doctrine-future", "#4aa3b5"),
}

RefSpan = Tuple[ScriptureRef, int, int]


def indexed_keys(conn: sqlite3.Connection, systematic_id: str) -> Set[tuple]:
    cur = conn.execute(
        """
        SELECT book, chapter, start_verse, end_verse
        FROM systematic_scripture_index
        WHERE systematic_id = ?;
        """,
        (systematic_id,),
    )
    return {(r["book"], r["chapter"], r["start_verse"], r["end_verse"]) for r in cur}


def index_references(
    conn: sqlite3.Connection,
    systematic_id: str,
    refs: Iterable[RefSpan],
    content: str,
    now: str,
    mark_primary: bool = True,
) -> int:
    """
    Insert index rows for an entry's references (document order).

    With mark_primary, the first PRIMARY_REFERENCE_LIMIT unique references are
    flagged is_primary. Returns the number of rows inserted.
    """
    stored = indexed_keys(conn, systematic_id)
    ranked: Set[tuple] = set()
    inserted = 0

    for ref, start, end in refs:
        if ref.key in ranked:
            continue
        ranked.add(ref.key)
        if ref.key in stored:
            continue
        is_primary = 1 if mark_primary and len(ranked) <= PRIMARY_REFERENCE_LIMIT else 0

        conn.execute(
            """
            INSERT INTO systematic_scripture_index (
                id, systematic_id, book, chapter, start_verse, end_verse,
                is_primary, context_snippet, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                new_id(),
                systematic_id,
                ref.book,
                ref.chapter,
                ref.start_verse,
                ref.end_verse,
                is_primary,
                context_snippet(content, start, end),
                now,
            ),
        )
        inserted += 1

    return inserted


def insert_edges(conn: sqlite3.Connection, edges: Iterable[CrossRef], now: str) -> int:
    """Insert-or-ignore related-chapter edges; returns how many were new."""
    inserted = 0
    for edge in edges:
        cur = conn.execute(
            """
            INSERT OR IGNORE INTO systematic_related (
                id, source_chapter, target_chapter, relationship_type, note, created_at
            ) VALUES (?, ?, ?, ?, ?, ?);
            """,
            (
                new_id(),
                edge.source_chapter,
                edge.target_chapter,
                edge.relationship_type,
                edge.note,
                now,
            ),
        )
        inserted += cur.rowcount
    return inserted


def tag_id_for(name: str) -> str:
    return str(uuid.uuid5(ENTRY_NAMESPACE, f"tag:{name}"))


def seed_tags(conn: sqlite3.Connection, now: str) -> None:
    """Make sure the seven part tags exist."""
    for part_number, (name, color) in sorted(PART_TAGS.items()):
        conn.execute(
            """
            INSERT OR IGNORE INTO systematic_tags (id, name, color, sort_order, created_at)
            VALUES (?, ?, ?, ?, ?);
            """,
            (tag_id_for(name), name, color, part_number, now),
        )


def find_tag_id(conn: sqlite3.Connection, name: str) -> Optional[str]:
    row = conn.execute("SELECT id FROM systematic_tags WHERE name = ?;", (name,)).fetchone()
    return row["id"] if row else None


def link_chapter_tag(conn: sqlite3.Connection, chapter_number: int, part_number: Optional[int]) -> bool:
    """
    Tag a chapter with its part's tag. Returns True when a new link was made.
    """
    if part_number not in PART_TAGS:
        return False
    tag_id = find_tag_id(conn, PART_TAGS[part_number][0])
    if tag_id is None:
        return False
    cur = conn.execute(
        "INSERT OR IGNORE INTO systematic_chapter_tags (chapter_number, tag_id) VALUES (?, ?);",
        (chapter_number, tag_id),
    )
    return cur.rowcount > 0
