from __future__ import annotations

import contextlib
import json
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping
from urllib.parse import quote

REQUIRED_TABLES = {
    "panel_sections",
    "component_types",
    "component_instances",
    "boards",
    "pin_assignments",
    "mosfet_boards",
    "mosfet_channels",
    "mobiflight_mappings",
    "journal_entries",
    "psu_config",
}

# Columns added by later migrations; their absence means the DB is behind.
REQUIRED_COLUMNS: dict[str, set[str]] = {
    "panel_sections": {"id", "name", "slug", "build_status", "svg_x", "svg_y", "svg_width", "svg_height"},
    "component_types": {"id", "name", "default_pin_count", "pin_types", "typical_current_ma"},
    "component_instances": {"id", "name", "build_status", "map_x", "map_y", "map_width", "map_height"},
    "pin_assignments": {"id", "board_id", "pin_number", "wiring_status", "mosfet_channel_id"},
}


def _db_uri(db_path: str | Path, read_only: bool) -> str:
    db_abs = Path(db_path).resolve()
    if not read_only:
        return str(db_abs)
    return f"file:{quote(str(db_abs), safe='/')}?mode=ro"


def connect(
    db_path: str | Path, *, read_only: bool = False, check_same_thread: bool = True
) -> sqlite3.Connection:
    db_uri = _db_uri(db_path, read_only)
    conn = sqlite3.connect(db_uri, uri=read_only, check_same_thread=check_same_thread)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


@contextlib.contextmanager
def tx(conn: sqlite3.Connection) -> Iterable[sqlite3.Connection]:
    try:
        conn.execute("BEGIN")
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now_sql() -> str:
    """Same text layout as SQLite's datetime('now')."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def list_tables(conn: sqlite3.Connection) -> set[str]:
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    return {str(r[0]) for r in rows}


def schema_status(conn: sqlite3.Connection) -> dict[str, Any]:
    tables = list_tables(conn)
    missing = sorted(REQUIRED_TABLES - tables)

    missing_columns: dict[str, list[str]] = {}
    for table, cols in REQUIRED_COLUMNS.items():
        if table not in tables:
            continue
        actual = {str(r[1]) for r in conn.execute(f"PRAGMA table_info({table})").fetchall()}
        missing_for_table = sorted(cols - actual)
        if missing_for_table:
            missing_columns[table] = missing_for_table

    has_migrations = "schema_migrations" in tables
    migrations = []
    if has_migrations:
        migrations = [
            str(r[0]) for r in conn.execute("SELECT version FROM schema_migrations ORDER BY version")
        ]
    return {
        "missing_tables": missing,
        "missing_columns": missing_columns,
        "has_migrations": has_migrations,
        "migrations": migrations,
    }


def get_data_version(conn: sqlite3.Connection) -> int:
    return int(conn.execute("PRAGMA data_version").fetchone()[0])


def get_db_mtime(db_path: str | Path) -> float | None:
    try:
        return Path(db_path).stat().st_mtime
    except FileNotFoundError:
        return None


def update_state_after_write(
    state: dict[str, Any], db_path: str | Path, conn: sqlite3.Connection | None = None
) -> None:
    close_conn = False
    if conn is None:
        conn = connect(db_path, read_only=False)
        close_conn = True
    try:
        state["data_version"] = get_data_version(conn)
        state["db_mtime"] = get_db_mtime(db_path)
        state["external_change"] = False
        state["last_write_at"] = datetime.now(timezone.utc).isoformat(timespec="seconds")
    finally:
        if close_conn:
            conn.close()


def count_table(conn: sqlite3.Connection, table: str, where: str = "", params: tuple[Any, ...] = ()) -> int:
    sql = f"SELECT COUNT(*) FROM {table}"
    if where:
        sql += f" WHERE {where}"
    return int(conn.execute(sql, params).fetchone()[0])


def project_counts(conn: sqlite3.Connection) -> dict[str, int]:
    return {
        "panel_sections": count_table(conn, "panel_sections"),
        "component_instances": count_table(conn, "component_instances"),
        "boards": count_table(conn, "boards"),
        "pin_assignments": count_table(conn, "pin_assignments"),
        "mosfet_boards": count_table(conn, "mosfet_boards"),
        "journal_entries": count_table(conn, "journal_entries"),
    }


def placeholders(n: int) -> str:
    return ",".join(["?"] * n)


def _load_json(value: Any, default: Any) -> Any:
    if value is None or value == "":
        return default
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return default


def decode_row(
    row: sqlite3.Row | Mapping[str, Any] | None,
    *,
    json_lists: Iterable[str] = (),
    json_objects: Iterable[str] = (),
    bools: Iterable[str] = (),
) -> dict[str, Any] | None:
    """Row -> dict, decoding JSON text columns and 0/1 flags."""
    if row is None:
        return None
    out = dict(row)
    for key in json_lists:
        if key in out:
            out[key] = _load_json(out[key], [])
    for key in json_objects:
        if key in out:
            out[key] = _load_json(out[key], None)
    for key in bools:
        if key in out and out[key] is not None:
            out[key] = bool(out[key])
    return out


def encode_value(key: str, value: Any, json_fields: Iterable[str]) -> Any:
    if key in json_fields:
        return None if value is None else json.dumps(value, ensure_ascii=False)
    if isinstance(value, bool):
        return int(value)
    return value


def insert_row(
    conn: sqlite3.Connection,
    table: str,
    data: Mapping[str, Any],
    *,
    json_fields: Iterable[str] = (),
) -> None:
    json_fields = set(json_fields)
    cols = list(data.keys())
    values = [encode_value(c, data[c], json_fields) for c in cols]
    conn.execute(
        f"INSERT INTO {table} ({', '.join(cols)}) VALUES ({placeholders(len(cols))})",
        values,
    )


def update_columns(
    conn: sqlite3.Connection,
    table: str,
    row_id: str,
    data: Mapping[str, Any],
    allowed: Iterable[str],
    *,
    json_fields: Iterable[str] = (),
) -> int:
    """Partial UPDATE limited to `allowed` columns; bumps updated_at."""
    json_fields = set(json_fields)
    cols = [c for c in allowed if c in data]
    if not cols:
        return 0
    assignments = ", ".join(f"{c} = ?" for c in cols)
    values = [encode_value(c, data[c], json_fields) for c in cols]
    cur = conn.execute(
        f"UPDATE {table} SET {assignments}, updated_at = datetime('now') WHERE id = ?",
        (*values, row_id),
    )
    return cur.rowcount


def row_exists(conn: sqlite3.Connection, table: str, row_id: str | None) -> bool:
    if not row_id:
        return False
    row = conn.execute(f"SELECT 1 FROM {table} WHERE id = ?", (row_id,)).fetchone()
    return row is not None


def like_needle(text: str) -> str:
    """Substring pattern for `LIKE ? ESCAPE '\\'`; `%` and `_` match literally."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
