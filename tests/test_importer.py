import json
import sqlite3

import pytest

from sti import importer
from sti.db import get_conn
from sti.importer import ImportFailed, ImportOptions, ImportOrchestrator, collect_sources
from sti.model import entry_id_for


def run(db_path, path, **kwargs):
    kwargs.setdefault("skip_summaries", True)
    return ImportOrchestrator(db_path, ImportOptions(**kwargs)).run(path)


def entry_types(db_path):
    with get_conn(db_path, readonly=True) as conn:
        rows = conn.execute(
            "SELECT entry_type, COUNT(*) AS n FROM systematic_theology GROUP BY entry_type"
        ).fetchall()
    return {r["entry_type"]: r["n"] for r in rows}


def count(db_path, table):
    with get_conn(db_path, readonly=True) as conn:
        return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


def test_scenario_a_import(db_path, scenario_a_file):
    report = run(db_path, scenario_a_file)

    assert entry_types(db_path) == {"part": 1, "chapter": 1, "section": 1, "subsection": 1}
    assert report.counts.subsections == 1
    assert report.counts.scripture_refs == 1

    with get_conn(db_path, readonly=True) as conn:
        rows = conn.execute("SELECT * FROM systematic_scripture_index").fetchall()
        subsection = conn.execute(
            "SELECT * FROM systematic_theology WHERE entry_type = 'subsection'"
        ).fetchone()
        section = conn.execute(
            "SELECT * FROM systematic_theology WHERE entry_type = 'section'"
        ).fetchone()

    assert len(rows) == 1
    row = rows[0]
    assert (row["book"], row["chapter"], row["start_verse"], row["end_verse"]) == ("JHN", 1, 1, None)
    assert row["systematic_id"] == subsection["id"]
    assert row["is_primary"] == 1
    assert "John 1:1" in row["context_snippet"]

    assert subsection["parent_id"] == section["id"]
    assert subsection["chapter_number"] == 1
    assert subsection["section_letter"] == "A"
    assert 'data-scripture="JHN.1.1"' in subsection["content"]


def test_scenario_a_chapter_tagged_with_part_tag(db_path, scenario_a_file):
    run(db_path, scenario_a_file)
    with get_conn(db_path, readonly=True) as conn:
        tags = conn.execute(
            """
            SELECT t.name FROM systematic_chapter_tags ct
            JOIN systematic_tags t ON t.id = ct.tag_id
            WHERE ct.chapter_number = 1
            """
        ).fetchall()
    assert [t["name"] for t in tags] == ["doctrine-word"]
    assert count(db_path, "systematic_tags") == 7


def test_scenario_d_edges_not_duplicated(db_path, scenario_d_file):
    run(db_path, scenario_d_file)
    run(db_path, scenario_d_file)

    with get_conn(db_path, readonly=True) as conn:
        edges = conn.execute(
            "SELECT source_chapter, target_chapter FROM systematic_related ORDER BY target_chapter"
        ).fetchall()
    assert [(e["source_chapter"], e["target_chapter"]) for e in edges] == [(31, 32), (31, 33), (31, 34)]


def test_merge_reimport_keeps_ids_and_rows(db_path, scenario_a_file):
    run(db_path, scenario_a_file)
    with get_conn(db_path, readonly=True) as conn:
        before = {r["id"]: r["created_at"] for r in conn.execute("SELECT id, created_at FROM systematic_theology")}

    second = run(db_path, scenario_a_file)

    with get_conn(db_path, readonly=True) as conn:
        after = {r["id"]: r["created_at"] for r in conn.execute("SELECT id, created_at FROM systematic_theology")}
    assert after == before
    assert entry_id_for("chapter:1") in after
    assert count(db_path, "systematic_scripture_index") == 1
    assert second.counts.scripture_refs == 0
    assert count(db_path, "import_runs") == 2


def test_parts_resolved_by_number_across_files(db_path, scenario_a_file, tmp_path):
    other = tmp_path / "chapter2.html"
    other.write_text(
        '<p style="text-align:center">Chapter 2</p>'
        '<p style="text-align:center"><b>The Canon of Scripture</b></p>'
        "<p>Which writings belong in the Bible? This chapter answers that question.</p>",
        encoding="utf-8",
    )
    run(db_path, scenario_a_file)
    run(db_path, other)

    with get_conn(db_path, readonly=True) as conn:
        parts = conn.execute("SELECT id, title FROM systematic_theology WHERE entry_type = 'part'").fetchall()
        chapter2 = conn.execute("SELECT parent_id FROM systematic_theology WHERE chapter_number = 2").fetchone()
    assert len(parts) == 1
    assert parts[0]["title"] == "The Doctrine of the Word of God"
    assert chapter2["parent_id"] == parts[0]["id"]


def test_clear_rebuilds_from_scratch(db_path, scenario_a_file, scenario_d_file):
    run(db_path, scenario_a_file)
    run(db_path, scenario_d_file, clear=True)
    assert entry_types(db_path) == {"part": 1, "chapter": 1}
    assert count(db_path, "systematic_scripture_index") == 0
    assert count(db_path, "systematic_related") == 3


def test_dry_run_writes_nothing(db_path, scenario_a_file):
    report = run(db_path, scenario_a_file, dry_run=True, clear=True)
    assert report.dry_run
    assert report.counts.chapters == 1
    assert report.counts.scripture_refs == 1
    assert not db_path.exists()


def test_failure_rolls_back_everything(db_path, scenario_a_file, scenario_d_file, monkeypatch):
    run(db_path, scenario_a_file)

    def boom(*args, **kwargs):
        raise sqlite3.OperationalError("disk full")

    monkeypatch.setattr(importer, "insert_edges", boom)
    with pytest.raises(sqlite3.OperationalError):
        run(db_path, scenario_d_file, clear=True)

    assert entry_types(db_path) == {"part": 1, "chapter": 1, "section": 1, "subsection": 1}
    assert count(db_path, "systematic_scripture_index") == 1
    assert count(db_path, "import_runs") == 1


def test_resume_skips_imported_files(db_path, scenario_a_file, capsys):
    run(db_path, scenario_a_file, resume=True)
    report = run(db_path, scenario_a_file, resume=True)
    assert report.skipped == [scenario_a_file.name]
    assert report.imported == []
    assert count(db_path, "import_runs") == 1
    assert "Skipped" in capsys.readouterr().out


def test_directory_input(db_path, scenario_a_file, scenario_d_file):
    report = run(db_path, scenario_a_file.parent)
    assert sorted(report.imported) == sorted([scenario_a_file.name, scenario_d_file.name])
    assert entry_types(db_path)["chapter"] == 2


def test_missing_input_raises(tmp_path):
    with pytest.raises(ImportFailed):
        collect_sources(tmp_path / "missing.html")
    (tmp_path / "notes.txt").write_text("x", encoding="utf-8")
    with pytest.raises(ImportFailed):
        collect_sources(tmp_path / "notes.txt")
    empty = tmp_path / "empty"
    empty.mkdir()
    with pytest.raises(ImportFailed):
        collect_sources(empty)


def test_summaries_generated_unless_skipped(db_path, scenario_a_file):
    run(db_path, scenario_a_file, skip_summaries=False)
    with get_conn(db_path, readonly=True) as conn:
        row = conn.execute("SELECT summary FROM systematic_theology WHERE entry_type = 'subsection'").fetchone()
    assert row["summary"]
    assert row["summary"].startswith("1. All Words")


def test_bundle_with_entries_only(db_path, tmp_path):
    bundle = tmp_path / "export.json"
    bundle.write_text(
        json.dumps(
            {
                "systematic_theology": [
                    {"id": "c1", "entry_type": "chapter", "title": "The Word of God",
                     "part_number": 1, "chapter_number": 1, "parent_id": "p1", "sort_order": 1000},
                    {"id": "p1", "entry_type": "part", "title": "The Doctrine of the Word of God",
                     "part_number": 1, "sort_order": 1},
                ]
            }
        ),
        encoding="utf-8",
    )
    report = run(db_path, bundle)
    assert report.counts.parts == 1
    assert report.counts.chapters == 1
    assert entry_types(db_path) == {"part": 1, "chapter": 1}
    with get_conn(db_path, readonly=True) as conn:
        run_row = conn.execute("SELECT mode FROM import_runs").fetchone()
    assert run_row["mode"] == "bundle"


def test_bundle_with_optional_collections(db_path, tmp_path):
    bundle = tmp_path / "export.json"
    bundle.write_text(
        json.dumps(
            {
                "systematic_theology": [
                    {"id": "c32", "entry_type": "chapter", "title": "Election",
                     "part_number": 5, "chapter_number": 32, "sort_order": 32000,
                     "content": "<p>Election text.</p>"},
                ],
                "scripture_index": [
                    {"systematic_id": "c32", "book": "EPH", "chapter": 1, "start_verse": 4,
                     "end_verse": None, "is_primary": 1, "context_snippet": "chose us"},
                    {"systematic_id": "c32", "book": "EPH", "chapter": 1, "start_verse": 4,
                     "end_verse": None, "is_primary": 1, "context_snippet": "dup"},
                    {"systematic_id": "nope", "book": "ROM", "chapter": 8, "start_verse": 29},
                ],
                "tags": [{"id": "t1", "name": "favorite", "color": "#fff"}],
                "chapter_tags": [{"chapter_number": 32, "tag_id": "t1"}, {"chapter_number": 32, "tag_id": "missing"}],
                "related": [{"source_chapter": 32, "target_chapter": 33, "note": "see chapter 33"}],
            }
        ),
        encoding="utf-8",
    )
    report = run(db_path, bundle)
    assert report.counts.scripture_refs == 1
    assert report.counts.cross_refs == 1
    assert count(db_path, "systematic_scripture_index") == 1
    assert count(db_path, "systematic_chapter_tags") == 1


def test_bundle_without_entries_fails(db_path, tmp_path):
    bundle = tmp_path / "bad.json"
    bundle.write_text(json.dumps({"related": []}), encoding="utf-8")
    with pytest.raises(ImportFailed):
        run(db_path, bundle)
    assert entry_types(db_path) == {}


def test_clear_ignores_resume(db_path, scenario_a_file, capsys):
    run(db_path, scenario_a_file)
    report = run(db_path, scenario_a_file, clear=True, resume=True)

    assert report.skipped == []
    assert report.imported == [scenario_a_file.name]
    assert entry_types(db_path) == {"part": 1, "chapter": 1, "section": 1, "subsection": 1}
    assert count(db_path, "systematic_scripture_index") == 1
    assert "--resume ignored" in capsys.readouterr().out


SIX_CITATIONS = "John 3:16, Rom 8:28, Eph 1:4, Gen 1:1, Ps 23:1 and Heb 11:1"


def chapter_file(tmp_path, name, body):
    path = tmp_path / name
    path.write_text(
        '<html><body>\n<p style="text-align:center">Chapter 31</p>\n'
        '<p style="text-align:center"><span style="font-weight:bold">Common Grace</span></p>\n'
        f"<p>{body}</p>\n</body></html>\n",
        encoding="utf-8",
    )
    return path


def primary_by_book(db_path):
    with get_conn(db_path, readonly=True) as conn:
        rows = conn.execute(
            "SELECT book, is_primary FROM systematic_scripture_index WHERE systematic_id = ?",
            (entry_id_for("chapter:31"),),
        ).fetchall()
    return {r["book"]: r["is_primary"] for r in rows}


def test_first_five_references_are_primary(db_path, tmp_path):
    source = chapter_file(tmp_path, "six.html", f"Blessings on all people: {SIX_CITATIONS}.")
    report = run(db_path, source)

    assert report.counts.scripture_refs == 6
    assert primary_by_book(db_path) == {
        "JHN": 1, "ROM": 1, "EPH": 1, "GEN": 1, "PSA": 1, "HEB": 0,
    }


def test_merge_counts_stored_reference_toward_primary_limit(db_path, tmp_path):
    first = chapter_file(tmp_path, "first.html", "God so loved the world, John 3:16.")
    run(db_path, first)
    assert primary_by_book(db_path) == {"JHN": 1}

    second = chapter_file(tmp_path, "second.html", f"Blessings on all people: {SIX_CITATIONS}.")
    report = run(db_path, second)

    assert report.counts.scripture_refs == 5
    assert count(db_path, "systematic_scripture_index") == 6
    assert primary_by_book(db_path) == {
        "JHN": 1, "ROM": 1, "EPH": 1, "GEN": 1, "PSA": 1, "HEB": 0,
    }


def test_bundle_index_row_without_book_fails(db_path, tmp_path):
    bundle = tmp_path / "export.json"
    bundle.write_text(
        json.dumps(
            {
                "systematic_theology": [
                    {"id": "c32", "entry_type": "chapter", "title": "Election",
                     "part_number": 5, "chapter_number": 32, "sort_order": 32000},
                ],
                "scripture_index": [{"systematic_id": "c32", "chapter": 1, "start_verse": 4}],
            }
        ),
        encoding="utf-8",
    )
    with pytest.raises(ImportFailed, match="book and chapter are required"):
        run(db_path, bundle)
    assert entry_types(db_path) == {}


def test_bundle_edge_without_target_fails(db_path, tmp_path):
    bundle = tmp_path / "export.json"
    bundle.write_text(
        json.dumps(
            {
                "systematic_theology": [
                    {"id": "c32", "entry_type": "chapter", "title": "Election",
                     "part_number": 5, "chapter_number": 32, "sort_order": 32000},
                ],
                "related": [{"source_chapter": 32}],
            }
        ),
        encoding="utf-8",
    )
    with pytest.raises(ImportFailed, match="Malformed bundle edge"):
        run(db_path, bundle)
    assert entry_types(db_path) == {}


def test_unreadable_source_raises_import_failed(tmp_path):
    with pytest.raises(ImportFailed):
        importer.file_sha256(tmp_path)

    bad_xlsx = tmp_path / "bad.xlsx"
    bad_xlsx.write_bytes(b"this is not a workbook")
    with pytest.raises(ImportFailed, match="Could not read"):
        importer.read_paragraphs(bad_xlsx)

    bad_pdf = tmp_path / "bad.pdf"
    bad_pdf.write_bytes(b"this is not a pdf")
    with pytest.raises(ImportFailed, match="Could not read"):
        importer.read_paragraphs(bad_pdf)
