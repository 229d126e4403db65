from sti.db import get_conn
from sti.importer import ImportOptions, ImportOrchestrator
from sti.lookup import entries_for_passage, related_chapters, resolve_link
from sti.model import entry_id_for


def imported(db_path, *files):
    for f in files:
        ImportOrchestrator(db_path, ImportOptions(skip_summaries=True)).run(f)
    return get_conn(db_path, readonly=True)


def test_resolve_link(db_path, scenario_a_file):
    with imported(db_path, scenario_a_file) as conn:
        assert resolve_link(conn, "[[ST:Ch1]]") == entry_id_for("chapter:1")
        assert resolve_link(conn, "[[ST:Ch1:A]]") == entry_id_for("section:1:A")
        assert resolve_link(conn, "[[ST:Ch1:A.1]]") == entry_id_for("subsection:1:A:1")
        assert resolve_link(conn, "[[ST:Ch2]]") is None
        assert resolve_link(conn, "Ch1") is None


def test_entries_for_passage(db_path, scenario_a_file):
    with imported(db_path, scenario_a_file) as conn:
        rows = entries_for_passage(conn, "Jn", 1)
        assert [r["id"] for r in rows] == [entry_id_for("subsection:1:A:1")]
        assert rows[0]["is_primary"] == 1
        assert len(entries_for_passage(conn, "John", 1, 1)) == 1
        assert entries_for_passage(conn, "John", 1, 2) == []
        assert entries_for_passage(conn, "Nowhere", 1) == []


def test_related_chapters(db_path, scenario_a_file, scenario_d_file):
    with imported(db_path, scenario_d_file) as conn:
        rows = related_chapters(conn, 31)
        assert [r["target_chapter"] for r in rows] == [32, 33, 34]
        assert all(r["target_title"] is None for r in rows)
        assert related_chapters(conn, 1) == []
