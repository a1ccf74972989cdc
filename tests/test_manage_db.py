from __future__ import annotations

import json
from pathlib import Path

from app.db import REQUIRED_TABLES, connect, schema_status
from tools import export_json, manage_db


def test_migrations_are_idempotent(tmp_path: Path) -> None:
    db = tmp_path / "nested" / "pf.sqlite"
    applied = manage_db.ensure_migrations(db)
    assert applied == ["0001_init", "0002_mosfet_boards", "0003_mobiflight_journal", "0004_overlay_and_psu"]
    assert manage_db.ensure_migrations(db) == []

    con = connect(db)
    try:
        status = schema_status(con)
    finally:
        con.close()
    assert status["missing_tables"] == []
    assert status["missing_columns"] == {}
    assert status["migrations"] == applied
    assert "pin_assignments" in REQUIRED_TABLES


def test_seed_is_rerunnable(db_path: Path) -> None:
    counts = manage_db.seed(db_path)
    assert counts["panel_sections"] == 12
    assert counts["boards"] == 1
    assert counts["component_instances"] == 0
    assert manage_db.seed(db_path) == counts


def test_main_with_seed(tmp_path: Path, capsys) -> None:
    db = tmp_path / "cli.sqlite"
    assert manage_db.main(["--db", str(db), "--seed"]) == 0
    out = capsys.readouterr().out
    assert "Migrations applied: 0001_init" in out
    assert "panel_sections=12" in out

    assert manage_db.main(["--db", str(db)]) == 0
    assert "none (up to date)" in capsys.readouterr().out


def test_export_json_cli(seeded_db_path: Path, tmp_path: Path) -> None:
    out = tmp_path / "out" / "export.json"
    assert export_json.main(["--db", str(seeded_db_path), "--out", str(out)]) == 0
    payload = json.loads(out.read_text(encoding="utf-8"))
    assert len(payload["panel_sections"]) == 12

    assert export_json.main(["--db", str(seeded_db_path), "--import", str(out)]) == 0
    con = connect(seeded_db_path)
    try:
        assert con.execute("SELECT COUNT(*) FROM component_types").fetchone()[0] == 8
    finally:
        con.close()
