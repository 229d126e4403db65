"""
SQLite schema for the doctrine outline, scripture index, chapter cross-references,
chapter tags, and import run history.

Applying the schema is idempotent; every statement uses IF NOT EXISTS.
"""

import sqlite3


SCHEMA_SQL = r"""
CREATE TABLE IF NOT EXISTS systematic_theology (
    id                 TEXT PRIMARY KEY,
    entry_type         TEXT NOT NULL CHECK (entry_type IN ('part', 'chapter', 'section', 'subsection')),
    part_number        INTEGER,
    chapter_number     INTEGER,
    section_letter     TEXT,
    subsection_number  INTEGER,
    title              TEXT NOT NULL,
    content            TEXT,
    summary            TEXT,
    parent_id          TEXT REFERENCES systematic_theology(id) ON DELETE CASCADE,
    sort_order         INTEGER NOT NULL DEFAULT 0,
    word_count         INTEGER DEFAULT 0,
    created_at         TEXT NOT NULL,
    updated_at         TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_st_entry_type ON systematic_theology(entry_type);
CREATE INDEX IF NOT EXISTS idx_st_chapter ON systematic_theology(chapter_number);
CREATE INDEX IF NOT EXISTS idx_st_parent ON systematic_theology(parent_id);
CREATE INDEX IF NOT EXISTS idx_st_part_chapter ON systematic_theology(part_number, chapter_number);

CREATE TABLE IF NOT EXISTS systematic_scripture_index (
    id               TEXT PRIMARY KEY,
    systematic_id    TEXT NOT NULL REFERENCES systematic_theology(id) ON DELETE CASCADE,
    book             TEXT NOT NULL,
    chapter          INTEGER NOT NULL,
    start_verse      INTEGER,
    end_verse        INTEGER,
    is_primary       INTEGER DEFAULT 0,
    context_snippet  TEXT,
    created_at       TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_ssi_systematic ON systematic_scripture_index(systematic_id);
CREATE INDEX IF NOT EXISTS idx_ssi_book_chapter ON systematic_scripture_index(book, chapter);
CREATE INDEX IF NOT EXISTS idx_ssi_primary ON systematic_scripture_index(is_primary);

CREATE TABLE IF NOT EXISTS systematic_related (
    id                 TEXT PRIMARY KEY,
    source_chapter     INTEGER NOT NULL,
    target_chapter     INTEGER NOT NULL,
    relationship_type  TEXT DEFAULT 'see_also',
    note               TEXT,
    created_at         TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_sr_source ON systematic_related(source_chapter);
CREATE INDEX IF NOT EXISTS idx_sr_target ON systematic_related(target_chapter);
CREATE UNIQUE INDEX IF NOT EXISTS idx_sr_unique ON systematic_related(source_chapter, target_chapter);

CREATE TABLE IF NOT EXISTS systematic_tags (
    id          TEXT PRIMARY KEY,
    name        TEXT NOT NULL UNIQUE,
    color       TEXT,
    sort_order  INTEGER DEFAULT 0,
    created_at  TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS systematic_chapter_tags (
    chapter_number  INTEGER NOT NULL,
    tag_id          TEXT NOT NULL REFERENCES systematic_tags(id) ON DELETE CASCADE,
    PRIMARY KEY (chapter_number, tag_id)
);

CREATE INDEX IF NOT EXISTS idx_sct_chapter ON systematic_chapter_tags(chapter_number);
CREATE INDEX IF NOT EXISTS idx_sct_tag ON systematic_chapter_tags(tag_id);

CREATE TABLE IF NOT EXISTS import_runs (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    source          TEXT NOT NULL,
    source_sha256   TEXT,
    mode            TEXT NOT NULL,
    parts           INTEGER NOT NULL DEFAULT 0,
    chapters        INTEGER NOT NULL DEFAULT 0,
    sections        INTEGER NOT NULL DEFAULT 0,
    subsections     INTEGER NOT NULL DEFAULT 0,
    scripture_refs  INTEGER NOT NULL DEFAULT 0,
    cross_refs      INTEGER NOT NULL DEFAULT 0,
    started_at      TEXT NOT NULL,
    finished_at     TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_runs_sha ON import_runs(source_sha256);
"""


def init_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(SCHEMA_SQL)


def table_exists(conn: sqlite3.Connection, name: str) -> bool:
    cur = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=?;",
        (name,),
    )
    return cur.fetchone() is not None
