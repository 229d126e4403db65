"""
Data model definitions for the Systematic Theology Index.

We define:
- StyleFlags / Paragraph : the abstract paragraph record every source produces
- ScriptureRef           : a normalized citation (book code, chapter, verse span)
- DoctrineEntry          : one node of the Part > Chapter > Section > Subsection outline
- CrossRef               : a "see chapter N" edge between chapters
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


ENTRY_TYPES = ("part", "chapter", "section", "subsection")

# Namespace for deterministic entry ids; re-imports of the same outline node
# always produce the same id.
ENTRY_NAMESPACE = uuid.UUID("7f3c2a1e-5b8d-4c6a-9e1f-2d4b6a8c0e13")


def utc_now_iso() -> str:
    """RFC-3339-like UTC timestamp, second precision."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def new_id() -> str:
    return str(uuid.uuid4())


def entry_id_for(natural_key: str) -> str:
    """Stable id for an outline node, e.g. 'chapter:32' or 'subsection:32:A:1'."""
    return str(uuid.uuid5(ENTRY_NAMESPACE, natural_key))


@dataclass(frozen=True)
class StyleFlags:
    bold: bool = False
    italic: bool = False
    centered: bool = False
    large_font: bool = False


@dataclass(frozen=True)
class Paragraph:
    """
    One styled paragraph as delivered by a source reader.

    text : plain text, whitespace collapsed
    html : inner markup (may contain citation anchors); equals escaped text
           for sources without markup
    """
    text: str
    html: str
    style: StyleFlags = StyleFlags()


@dataclass(frozen=True)
class ScriptureRef:
    """
    A normalized reference to a verse or verse range.

    book        : canonical 3-letter code (e.g. 'ROM', '1CO')
    chapter     : 1..N
    start_verse : 1..N
    end_verse   : None for a single verse
    text        : visible citation text as it appeared in the content
    """
    book: str
    chapter: int
    start_verse: int
    end_verse: Optional[int] = None
    text: str = ""

    @property
    def locator(self) -> str:
        """
        Compute the data-scripture locator (e.g. 'ROM.8.28-30').
        """
        base = f"{self.book}.{self.chapter}.{self.start_verse}"
        if self.end_verse is not None:
            return f"{base}-{self.end_verse}"
        return base

    @property
    def key(self) -> tuple:
        return (self.book, self.chapter, self.start_verse, self.end_verse)


@dataclass(frozen=True)
class DoctrineEntry:
    id: str
    entry_type: str
    title: str
    part_number: Optional[int] = None
    chapter_number: Optional[int] = None
    section_letter: Optional[str] = None
    subsection_number: Optional[int] = None
    content: str = ""
    summary: Optional[str] = None
    parent_id: Optional[str] = None
    sort_order: int = 0
    word_count: int = 0

    @property
    def label(self) -> str:
        """Short outline label, e.g. 'Ch32 A.1'."""
        if self.entry_type == "part":
            return f"Part {self.part_number}"
        label = f"Ch{self.chapter_number}"
        if self.section_letter:
            label += f" {self.section_letter}"
        if self.subsection_number is not None:
            label += f".{self.subsection_number}" if self.section_letter else f" {self.subsection_number}"
        return label

    def to_row(self, now: str) -> dict:
        return {
            "id": self.id,
            "entry_type": self.entry_type,
            "part_number": self.part_number,
            "chapter_number": self.chapter_number,
            "section_letter": self.section_letter,
            "subsection_number": self.subsection_number,
            "title": self.title,
            "content": self.content,
            "summary": self.summary,
            "parent_id": self.parent_id,
            "sort_order": self.sort_order,
            "word_count": self.word_count,
            "created_at": now,
            "updated_at": now,
        }

    @classmethod
    def from_db_row(cls, row) -> "DoctrineEntry":
        """
        Construct from a sqlite3.Row of the systematic_theology table.
        """
        return cls(
            id=row["id"],
            entry_type=row["entry_type"],
            title=row["title"],
            part_number=row["part_number"],
            chapter_number=row["chapter_number"],
            section_letter=row["section_letter"],
            subsection_number=row["subsection_number"],
            content=row["content"] or "",
            summary=row["summary"],
            parent_id=row["parent_id"],
            sort_order=row["sort_order"],
            word_count=row["word_count"] or 0,
        )


@dataclass(frozen=True)
class CrossRef:
    source_chapter: int
    target_chapter: int
    note: Optional[str] = None
    relationship_type: str = "see_also"


@dataclass
class ImportCounts:
    """Counts reported at the end of an import (and persisted in import_runs)."""
    parts: int = 0
    chapters: int = 0
    sections: int = 0
    subsections: int = 0
    scripture_refs: int = 0
    cross_refs: int = 0

    def add_entry(self, entry_type: str) -> None:
        attr = entry_type + "s"
        setattr(self, attr, getattr(self, attr) + 1)
