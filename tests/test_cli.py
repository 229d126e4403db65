import theology
from sti.model import entry_id_for


def test_init_schema_and_status(db_path, capsys):
    assert theology.main(["init-schema", "--db", str(db_path)]) == 0
    assert db_path.exists()
    assert theology.main(["status", "--db", str(db_path)]) == 0
    out = capsys.readouterr().out
    assert "chapter: 0" in out


def test_import_missing_file_exits_1(db_path, tmp_path, capsys):
    assert theology.main(["import", str(tmp_path / "missing.html"), "--db", str(db_path)]) == 1
    assert "[error] Input not found" in capsys.readouterr().out


def test_import_then_lookups(db_path, scenario_a_file, capsys):
    assert theology.main(["import", str(scenario_a_file), "--skip-summaries", "--db", str(db_path)]) == 0
    capsys.readouterr()

    assert theology.main(["resolve-link", "[[ST:Ch1:A.1]]", "--db", str(db_path)]) == 0
    assert capsys.readouterr().out.strip() == entry_id_for("subsection:1:A:1")

    assert theology.main(["resolve-link", "[[ST:Ch9]]", "--db", str(db_path)]) == 1

    assert theology.main(["for-passage", "John", "1", "--verse", "1", "--db", str(db_path)]) == 0
    assert "All Words Are God's Words" in capsys.readouterr().out


def test_dry_run_import(db_path, scenario_a_file, capsys):
    assert theology.main(["import", str(scenario_a_file), "--dry-run", "--verbose", "--db", str(db_path)]) == 0
    assert "Dry run complete" in capsys.readouterr().out
    assert not db_path.exists()


def test_relink_requires_database(db_path, capsys):
    assert theology.main(["relink", "--db", str(db_path)]) == 1
    assert "[error] Database not found" in capsys.readouterr().out


def test_relink_runs(db_path, scenario_d_file, capsys):
    theology.main(["import", str(scenario_d_file), "--skip-summaries", "--db", str(db_path)])
    assert theology.main(["relink", "--chapter", "31", "--db", str(db_path)]) == 0
    assert "Relink complete: 1 processed" in capsys.readouterr().out
    assert theology.main(["related", "31", "--db", str(db_path)]) == 0


def test_import_corrupt_workbook_exits_1(db_path, tmp_path, capsys):
    bad = tmp_path / "bad.xlsx"
    bad.write_bytes(b"not a zip archive")
    assert theology.main(["import", str(bad), "--db", str(db_path)]) == 1
    assert "[error] Could not read" in capsys.readouterr().out
