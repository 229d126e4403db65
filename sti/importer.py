"""
Import orchestration for the Systematic Theology Index.

One invocation:

    sources -> paragraphs -> classify -> outline
            -> per entry: free-text linking, linked-reference extraction,
               cross-reference extraction
            -> (optional) summaries
            -> persistence inside a single transaction

Modes:
- rebuild  (--clear): wipe entries, index, edges and tag links first
- merge    (default): upsert by id; parts resolved by number against storage
- dry run: parse and report; nothing is written
- bundle:  a .json export is restored instead of parsed

Any exception inside the transaction rolls the whole invocation back.
"""

from __future__ import annotations

import hashlib
import json
import sqlite3
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from . import store
from .classify import classify_paragraphs
from .crossrefs import extract_cross_refs
from .db import get_conn, transaction
from .indexer import (
    RefSpan,
    index_references,
    indexed_keys,
    insert_edges,
    link_chapter_tag,
    seed_tags,
    tag_id_for,
)
from .model import (
    CrossRef,
    DoctrineEntry,
    ENTRY_TYPES,
    ImportCounts,
    Paragraph,
    new_id,
    utc_now_iso,
)
from .schema import init_schema
from .scripture import extract_linked_refs, link_unlinked_refs
from .structure import build_outline
from .summaries import summarize_entries
from .util import count_words, debug, info, ok, warn


class ImportFailed(RuntimeError):
    """Raised when the input cannot be imported; the transaction is rolled back."""


HTML_SUFFIXES = (".html", ".htm")
TABLE_SUFFIXES = (".xlsx", ".xlsm", ".csv")
PDF_SUFFIXES = (".pdf",)
BUNDLE_SUFFIXES = (".json",)
SUPPORTED_SUFFIXES = HTML_SUFFIXES + TABLE_SUFFIXES + PDF_SUFFIXES + BUNDLE_SUFFIXES


@dataclass
class ImportOptions:
    clear: bool = False
    resume: bool = False
    skip_summaries: bool = False
    dry_run: bool = False
    use_remote_summaries: Optional[bool] = None


@dataclass
class ParsedDocument:
    """One source file, parsed, linked and ready to persist."""
    source: Path
    sha256: str
    entries: List[DoctrineEntry]
    refs: Dict[str, List[RefSpan]]
    cross_refs: List[CrossRef]


@dataclass
class ImportReport:
    counts: ImportCounts = field(default_factory=ImportCounts)
    imported: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    dry_run: bool = False


# ---------- Sources ----------


def collect_sources(path: Path) -> List[Path]:
    """
    A single supported file, or every supported file in a directory (sorted).
    """
    path = Path(path)
    if not path.exists():
        raise ImportFailed(f"Input not found: {path}")
    if path.is_file():
        if path.suffix.lower() not in SUPPORTED_SUFFIXES:
            raise ImportFailed(f"Unsupported input type: {path.suffix or path.name}")
        return [path]

    files = sorted(
        p for p in path.iterdir()
        if p.is_file() and p.suffix.lower() in SUPPORTED_SUFFIXES
    )
    if not files:
        raise ImportFailed(f"No importable files found in {path}")
    return files


def file_sha256(path: Path) -> str:
    h = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(1 << 16), b""):
                h.update(chunk)
    except OSError as e:
        raise ImportFailed(f"Could not read {path}: {e}") from e
    return h.hexdigest()


def _reader_for(path: Path) -> Tuple[Callable[[Path], List[Paragraph]], Tuple[type, ...]]:
    """The paragraph reader for a file and the exceptions it raises on bad input."""
    suffix = path.suffix.lower()
    if suffix in HTML_SUFFIXES:
        from .html_source import read_html_paragraphs
        return read_html_paragraphs, ()
    if suffix in TABLE_SUFFIXES:
        from .excel_import import READ_ERRORS, read_excel_paragraphs
        return read_excel_paragraphs, READ_ERRORS
    if suffix in PDF_SUFFIXES:
        from .pdf_source import READ_ERRORS, read_pdf_paragraphs
        return read_pdf_paragraphs, READ_ERRORS
    raise ImportFailed(f"No paragraph reader for {path.name}")


def read_paragraphs(path: Path) -> List[Paragraph]:
    reader, read_errors = _reader_for(path)
    try:
        return reader(path)
    except (OSError, ValueError) + read_errors as e:
        raise ImportFailed(f"Could not read {path}: {e}") from e


# ---------- Parsing ----------


def link_entries(
    entries: List[DoctrineEntry],
) -> Tuple[List[DoctrineEntry], Dict[str, List[RefSpan]], List[CrossRef]]:
    """
    Run free-text linking over every entry, then collect each entry's linked
    references and the chapter cross-references.
    """
    linked: List[DoctrineEntry] = []
    refs: Dict[str, List[RefSpan]] = {}
    edges: List[CrossRef] = []
    seen_edges = set()

    for entry in entries:
        if entry.content:
            content, new_refs = link_unlinked_refs(entry.content)
            if new_refs:
                debug(f"{entry.label}: linked {len(new_refs)} free-text reference(s)")
                entry = replace(entry, content=content, word_count=count_words(content))
            spans = extract_linked_refs(entry.content)
            if spans:
                refs[entry.id] = spans

        if entry.chapter_number is not None and entry.content:
            for edge in extract_cross_refs(entry.content, entry.chapter_number):
                key = (edge.source_chapter, edge.target_chapter)
                if key not in seen_edges:
                    seen_edges.add(key)
                    edges.append(edge)

        linked.append(entry)

    return linked, refs, edges


def parse_paragraphs(paragraphs: List[Paragraph]) -> List[DoctrineEntry]:
    return build_outline(classify_paragraphs(paragraphs))


def parse_document(path: Path, sha256: Optional[str] = None) -> ParsedDocument:
    path = Path(path)
    entries = parse_paragraphs(read_paragraphs(path))
    if not entries:
        warn(f"No outline entries found in {path.name}")
    entries, refs, edges = link_entries(entries)
    return ParsedDocument(
        source=path,
        sha256=sha256 or file_sha256(path),
        entries=entries,
        refs=refs,
        cross_refs=edges,
    )


# ---------- Persistence ----------


def persist_document(
    conn: sqlite3.Connection, doc: ParsedDocument, now: str
) -> ImportCounts:
    counts = ImportCounts()
    entries = store.resolve_parts(conn, doc.entries)

    for entry in entries:
        store.upsert_entry(conn, entry, now)
        counts.add_entry(entry.entry_type)
        if entry.entry_type == "chapter" and entry.chapter_number is not None:
            link_chapter_tag(conn, entry.chapter_number, entry.part_number)

    for entry in entries:
        spans = doc.refs.get(entry.id)
        if spans:
            counts.scripture_refs += index_references(conn, entry.id, spans, entry.content, now)

    counts.cross_refs += insert_edges(conn, doc.cross_refs, now)
    return counts


def already_imported(conn: sqlite3.Connection, sha256: str) -> bool:
    row = conn.execute(
        "SELECT 1 FROM import_runs WHERE source_sha256 = ? LIMIT 1;", (sha256,)
    ).fetchone()
    return row is not None


def record_run(
    conn: sqlite3.Connection,
    source: str,
    sha256: str,
    mode: str,
    counts: ImportCounts,
    started_at: str,
) -> None:
    conn.execute(
        """
        INSERT INTO import_runs (
            source, source_sha256, mode, parts, chapters, sections, subsections,
            scripture_refs, cross_refs, started_at, finished_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
        """,
        (
            source,
            sha256,
            mode,
            counts.parts,
            counts.chapters,
            counts.sections,
            counts.subsections,
            counts.scripture_refs,
            counts.cross_refs,
            started_at,
            utc_now_iso(),
        ),
    )


# ---------- JSON bundle ----------


def load_bundle(path: Path) -> dict:
    """
    Load a JSON bundle. A bare list is read as the entry list.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ImportFailed(f"Could not read bundle {path}: {e}") from e

    if isinstance(data, list):
        data = {"systematic_theology": data}
    if not isinstance(data, dict) or not isinstance(data.get("systematic_theology"), list):
        raise ImportFailed(f"Bundle {Path(path).name} has no 'systematic_theology' list")
    return data


def _entry_from_dict(row: dict) -> DoctrineEntry:
    try:
        entry = DoctrineEntry(
            id=str(row["id"]),
            entry_type=row["entry_type"],
            title=row["title"],
            part_number=row.get("part_number"),
            chapter_number=row.get("chapter_number"),
            section_letter=row.get("section_letter"),
            subsection_number=row.get("subsection_number"),
            content=row.get("content") or "",
            summary=row.get("summary"),
            parent_id=row.get("parent_id"),
            sort_order=int(row.get("sort_order") or 0),
            word_count=int(row.get("word_count") or 0),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ImportFailed(f"Malformed bundle entry {row!r}: {e}") from e
    if entry.entry_type not in ENTRY_TYPES:
        raise ImportFailed(f"Unknown entry_type {entry.entry_type!r} in bundle")
    if not entry.word_count and entry.content:
        entry = replace(entry, word_count=count_words(entry.content))
    return entry


def persist_bundle(conn: sqlite3.Connection, data: dict, now: str) -> ImportCounts:
    """
    Restore a bundle. Optional collections that are absent are skipped.
    """
    counts = ImportCounts()
    rank = {t: i for i, t in enumerate(ENTRY_TYPES)}
    entries = [_entry_from_dict(r) for r in data["systematic_theology"]]
    entries.sort(key=lambda e: (rank[e.entry_type], e.sort_order))
    entries = store.resolve_parts(conn, entries)

    for entry in entries:
        store.upsert_entry(conn, entry, now)
        counts.add_entry(entry.entry_type)
    known_ids = {e.id for e in entries}

    for tag in data.get("tags") or []:
        name = tag.get("name")
        if not name:
            continue
        conn.execute(
            """
            INSERT OR IGNORE INTO systematic_tags (id, name, color, sort_order, created_at)
            VALUES (?, ?, ?, ?, ?);
            """,
            (tag.get("id") or tag_id_for(name), name, tag.get("color"),
             tag.get("sort_order") or 0, tag.get("created_at") or now),
        )

    for link in data.get("chapter_tags") or []:
        tag_row = conn.execute(
            "SELECT id FROM systematic_tags WHERE id = ?;", (link.get("tag_id"),)
        ).fetchone()
        if tag_row is None or link.get("chapter_number") is None:
            debug(f"Skipping chapter tag link with unknown tag: {link!r}")
            continue
        conn.execute(
            "INSERT OR IGNORE INTO systematic_chapter_tags (chapter_number, tag_id) VALUES (?, ?);",
            (link["chapter_number"], tag_row["id"]),
        )

    by_entry: Dict[str, List[dict]] = {}
    for row in data.get("scripture_index") or []:
        systematic_id = row.get("systematic_id")
        if systematic_id not in known_ids and store.get_entry(conn, systematic_id or "") is None:
            debug(f"Skipping index row for unknown entry: {systematic_id!r}")
            continue
        if row.get("book") is None or row.get("chapter") is None:
            raise ImportFailed(f"Malformed bundle index row {row!r}: book and chapter are required")
        by_entry.setdefault(systematic_id, []).append(row)

    for systematic_id, rows in by_entry.items():
        stored = indexed_keys(conn, systematic_id)
        for row in rows:
            key = (row["book"], row["chapter"], row.get("start_verse"), row.get("end_verse"))
            if key in stored:
                continue
            stored.add(key)
            conn.execute(
                """
                INSERT INTO systematic_scripture_index (
                    id, systematic_id, book, chapter, start_verse, end_verse,
                    is_primary, context_snippet, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    row.get("id") or new_id(),
                    systematic_id,
                    row["book"],
                    row["chapter"],
                    row.get("start_verse"),
                    row.get("end_verse"),
                    1 if row.get("is_primary") else 0,
                    row.get("context_snippet"),
                    row.get("created_at") or now,
                ),
            )
            counts.scripture_refs += 1

    edges = []
    for r in data.get("related") or []:
        try:
            edges.append(
                CrossRef(
                    source_chapter=int(r["source_chapter"]),
                    target_chapter=int(r["target_chapter"]),
                    note=r.get("note"),
                    relationship_type=r.get("relationship_type") or "see_also",
                )
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ImportFailed(f"Malformed bundle edge {r!r}: {e}") from e
    counts.cross_refs += insert_edges(conn, edges, now)
    return counts


# ---------- Orchestrator ----------


def _merge_counts(total: ImportCounts, part: ImportCounts) -> None:
    for name in ("parts", "chapters", "sections", "subsections", "scripture_refs", "cross_refs"):
        setattr(total, name, getattr(total, name) + getattr(part, name))


def dry_run_counts(doc: ParsedDocument) -> ImportCounts:
    counts = ImportCounts()
    for entry in doc.entries:
        counts.add_entry(entry.entry_type)
    for spans in doc.refs.values():
        counts.scripture_refs += len({ref.key for ref, _, _ in spans})
    counts.cross_refs = len(doc.cross_refs)
    return counts


def print_summary(report: ImportReport) -> None:
    c = report.counts
    label = "Dry run" if report.dry_run else "Import"
    ok(
        f"{label} complete: {c.parts} part(s), {c.chapters} chapter(s), "
        f"{c.sections} section(s), {c.subsections} subsection(s), "
        f"{c.scripture_refs} scripture reference(s), {c.cross_refs} cross reference(s)"
    )
    if report.skipped:
        info(f"Skipped (already imported): {', '.join(report.skipped)}")


class ImportOrchestrator:
    """
    Runs one import invocation against a database.

    Parameters
    ----------
    db_path:
        SQLite file to import into.
    options:
        ImportOptions for this run.
    """

    def __init__(self, db_path: Path, options: Optional[ImportOptions] = None):
        self.db_path = Path(db_path)
        self.options = options or ImportOptions()

    @property
    def mode(self) -> str:
        return "rebuild" if self.options.clear else "merge"

    def _prepare(self, doc: ParsedDocument) -> ParsedDocument:
        if self.options.skip_summaries:
            return doc
        entries = summarize_entries(doc.entries, use_remote=self.options.use_remote_summaries)
        return replace(doc, entries=entries)

    def run(self, path: Path) -> ImportReport:
        sources = collect_sources(path)
        info(f"Importing {len(sources)} file(s) from {path}")
        if self.options.dry_run:
            if self.options.clear:
                info("Dry run: --clear ignored, nothing will be deleted")
            return self._dry_run(sources)
        if self.options.clear and self.options.resume:
            info("--resume ignored with --clear, every file is imported")
        return self._import(sources)

    def _dry_run(self, sources: List[Path]) -> ImportReport:
        report = ImportReport(dry_run=True)
        for source in sources:
            if source.suffix.lower() in BUNDLE_SUFFIXES:
                data = load_bundle(source)
                for row in data["systematic_theology"]:
                    if row.get("entry_type") in ENTRY_TYPES:
                        report.counts.add_entry(row["entry_type"])
                report.counts.scripture_refs += len(data.get("scripture_index") or [])
                report.counts.cross_refs += len(data.get("related") or [])
            else:
                doc = parse_document(source)
                _merge_counts(report.counts, dry_run_counts(doc))
            report.imported.append(source.name)
        print_summary(report)
        return report

    def _import(self, sources: List[Path]) -> ImportReport:
        report = ImportReport()
        resume = self.options.resume and not self.options.clear
        with get_conn(self.db_path) as conn:
            init_schema(conn)
            with transaction(conn):
                if self.options.clear:
                    info("Clearing existing entries, index, edges and tag links")
                    store.clear_all(conn)

                now = utc_now_iso()
                seed_tags(conn, now)

                for source in sources:
                    sha = file_sha256(source)
                    if resume and already_imported(conn, sha):
                        report.skipped.append(source.name)
                        continue

                    started = utc_now_iso()
                    if source.suffix.lower() in BUNDLE_SUFFIXES:
                        counts = persist_bundle(conn, load_bundle(source), now)
                        mode = "bundle"
                    else:
                        doc = self._prepare(parse_document(source, sha256=sha))
                        counts = persist_document(conn, doc, now)
                        mode = self.mode

                    record_run(conn, str(source), sha, mode, counts, started)
                    _merge_counts(report.counts, counts)
                    report.imported.append(source.name)

        print_summary(report)
        return report


def run_import(db_path: Path, path: Path, options: Optional[ImportOptions] = None) -> ImportReport:
    return ImportOrchestrator(db_path, options).run(path)
