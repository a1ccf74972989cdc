from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.db import connect  # noqa: E402
from tools.manage_db import ensure_migrations, seed  # noqa: E402


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    p = tmp_path / "panelforge.sqlite"
    ensure_migrations(p)
    return p


@pytest.fixture()
def seeded_db_path(db_path: Path) -> Path:
    seed(db_path)
    return db_path


@pytest.fixture()
def conn(db_path: Path):
    c = connect(db_path)
    try:
        yield c
    finally:
        c.close()


@pytest.fixture()
def seeded_conn(seeded_db_path: Path):
    c = connect(seeded_db_path)
    try:
        yield c
    finally:
        c.close()


@pytest.fixture()
def client(seeded_db_path: Path):
    from api.server import create_app

    app = create_app(seeded_db_path)
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


def type_id(conn, name: str) -> str:
    return conn.execute("SELECT id FROM component_types WHERE name = ?", (name,)).fetchone()[0]


def section_id(conn, slug: str) -> str:
    return conn.execute("SELECT id FROM panel_sections WHERE slug = ?", (slug,)).fetchone()[0]


def board_id(conn, name: str = "Alpha") -> str:
    return conn.execute("SELECT id FROM boards WHERE name = ?", (name,)).fetchone()[0]
