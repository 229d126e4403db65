from sti import store
from sti.db import get_conn
from sti.model import DoctrineEntry, entry_id_for, utc_now_iso
from sti.relink import RelinkMaintenancePass
from sti.schema import init_schema


def seed(db_path, *entries):
    with get_conn(db_path) as conn:
        init_schema(conn)
        now = utc_now_iso()
        for entry in entries:
            store.upsert_entry(conn, entry, now)


def chapter(number, content):
    return DoctrineEntry(
        id=entry_id_for(f"chapter:{number}"),
        entry_type="chapter",
        title=f"Chapter {number}",
        chapter_number=number,
        content=content,
        sort_order=number * 1000,
    )


def index_rows(db_path):
    with get_conn(db_path, readonly=True) as conn:
        return conn.execute(
            "SELECT book, chapter, start_verse, end_verse, is_primary FROM systematic_scripture_index ORDER BY book"
        ).fetchall()


def content_of(db_path, number):
    with get_conn(db_path, readonly=True) as conn:
        return conn.execute(
            "SELECT content FROM systematic_theology WHERE chapter_number = ?", (number,)
        ).fetchone()["content"]


def test_scenario_b_relink_links_and_indexes(db_path):
    seed(db_path, chapter(32, "<p>See Rom. 8:28-30 and also 1 Cor. 13:4</p>"))

    report = RelinkMaintenancePass(db_path).run()

    assert report.processed == 1
    assert report.modified == 1
    assert report.references_linked == 2
    assert report.index_after - report.index_before == 2

    content = content_of(db_path, 32)
    assert 'data-scripture="ROM.8.28-30"' in content
    assert 'data-scripture="1CO.13.4"' in content

    rows = index_rows(db_path)
    assert [(r["book"], r["chapter"], r["start_verse"], r["end_verse"]) for r in rows] == [
        ("1CO", 13, 4, None),
        ("ROM", 8, 28, 30),
    ]
    assert all(r["is_primary"] == 0 for r in rows)


def test_scenario_c_already_linked_content_untouched(db_path):
    linked = '<p>As <a data-scripture="ROM.8.28-30" class="scripture-link">Rom. 8:28-30</a> says.</p>'
    seed(db_path, chapter(32, linked))

    report = RelinkMaintenancePass(db_path).run()

    assert report.modified == 0
    assert report.index_after == report.index_before
    assert content_of(db_path, 32) == linked


def test_relink_is_idempotent(db_path):
    seed(db_path, chapter(32, "<p>See Rom. 8:28-30 and also 1 Cor. 13:4</p>"))
    RelinkMaintenancePass(db_path).run()
    first_content = content_of(db_path, 32)
    first_rows = len(index_rows(db_path))

    second = RelinkMaintenancePass(db_path).run()

    assert second.modified == 0
    assert second.references_linked == 0
    assert content_of(db_path, 32) == first_content
    assert len(index_rows(db_path)) == first_rows


def test_chapter_filter_and_limit(db_path):
    seed(
        db_path,
        chapter(12, "<p>God is spirit (John 4:24).</p>"),
        chapter(13, "<p>God is love (1 John 4:8).</p>"),
    )

    report = RelinkMaintenancePass(db_path, chapter=13).run()
    assert report.processed == 1
    assert "John 4:24" in content_of(db_path, 12)
    assert 'data-scripture="JHN.4.24"' not in content_of(db_path, 12)
    assert 'data-scripture="1JN.4.8"' in content_of(db_path, 13)

    limited = RelinkMaintenancePass(db_path, limit=1).run()
    assert limited.processed == 1
    assert 'data-scripture="JHN.4.24"' in content_of(db_path, 12)


def test_dry_run_reports_without_writing(db_path):
    original = "<p>See Rom. 8:28-30</p>"
    seed(db_path, chapter(32, original))

    report = RelinkMaintenancePass(db_path, dry_run=True, backup=True).run()

    assert report.dry_run
    assert report.modified == 1
    assert report.references_linked == 1
    assert report.backup_path is None
    assert content_of(db_path, 32) == original
    assert index_rows(db_path) == []


def test_backup_written_before_changes(db_path, tmp_path):
    seed(db_path, chapter(32, "<p>See Rom. 8:28-30</p>"))
    backups = tmp_path / "backups"

    report = RelinkMaintenancePass(db_path, backup=True, backup_dir=backups).run()

    assert report.backup_path is not None
    assert report.backup_path.parent == backups
    assert report.backup_path.exists()
    with get_conn(report.backup_path, readonly=True) as conn:
        old = conn.execute("SELECT content FROM systematic_theology").fetchone()["content"]
    assert old == "<p>See Rom. 8:28-30</p>"
