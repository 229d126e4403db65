"""
Read-side lookups over an imported database.

- resolve_link: '[[ST:Ch32]]', '[[ST:Ch32:A]]', '[[ST:Ch32:A.1]]' -> entry id
- entries_for_passage: which entries cite a passage (primary references first)
- related_chapters: outgoing "see also" edges of a chapter
"""

from __future__ import annotations

import re
import sqlite3
from typing import List, Optional

from .books import resolve_book

LINK_RE = re.compile(r"^\[\[ST:Ch(\d+)(?::([A-Za-z])(?:\.(\d+))?)?\]\]$")


def resolve_link(conn: sqlite3.Connection, link: str) -> Optional[str]:
    """
    Resolve downstream link syntax to an entry id, or None when the link is
    malformed or names nothing stored.
    """
    match = LINK_RE.match((link or "").strip())
    if not match:
        return None
    chapter, letter, number = match.groups()

    if letter is None:
        sql = "entry_type = 'chapter' AND chapter_number = ?"
        params: list = [int(chapter)]
    elif number is None:
        sql = "entry_type = 'section' AND chapter_number = ? AND section_letter = ?"
        params = [int(chapter), letter.upper()]
    else:
        sql = (
            "entry_type = 'subsection' AND chapter_number = ? "
            "AND section_letter = ? AND subsection_number = ?"
        )
        params = [int(chapter), letter.upper(), int(number)]

    row = conn.execute(
        f"SELECT id FROM systematic_theology WHERE {sql} ORDER BY sort_order LIMIT 1;",
        params,
    ).fetchone()
    return row["id"] if row else None


def entries_for_passage(
    conn: sqlite3.Connection,
    book: str,
    chapter: int,
    verse: Optional[int] = None,
) -> List[sqlite3.Row]:
    """
    Entries whose index rows cover the passage. With a verse, only rows whose
    verse span contains it. Primary references sort first, then outline order.

    An unresolvable book returns [].
    """
    code = resolve_book(book)
    if code is None:
        return []

    sql = """
        SELECT st.id, st.entry_type, st.title, st.chapter_number, st.section_letter,
               st.subsection_number, si.start_verse, si.end_verse, si.is_primary,
               si.context_snippet
        FROM systematic_scripture_index si
        JOIN systematic_theology st ON st.id = si.systematic_id
        WHERE si.book = ? AND si.chapter = ?
    """
    params: list = [code, int(chapter)]
    if verse is not None:
        sql += " AND si.start_verse <= ? AND COALESCE(si.end_verse, si.start_verse) >= ?"
        params.extend([int(verse), int(verse)])
    sql += " ORDER BY si.is_primary DESC, st.sort_order, si.start_verse;"
    return conn.execute(sql, params).fetchall()


def related_chapters(conn: sqlite3.Connection, chapter: int) -> List[sqlite3.Row]:
    return conn.execute(
        """
        SELECT r.target_chapter, r.relationship_type, r.note, st.title AS target_title
        FROM systematic_related r
        LEFT JOIN systematic_theology st
          ON st.entry_type = 'chapter' AND st.chapter_number = r.target_chapter
        WHERE r.source_chapter = ?
        ORDER BY r.target_chapter;
        """,
        (int(chapter),),
    ).fetchall()
