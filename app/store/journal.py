from __future__ import annotations

import sqlite3
from datetime import date
from typing import Any, Mapping

from app.db import insert_row, like_needle, new_id, row_exists, tx, update_columns
from app.errors import BadRequestError, NotFoundError, raise_for_errors
from app.validation import validate_journal_entry

JOURNAL_FIELDS = ("title", "body", "panel_section_id", "component_instance_id")

_SELECT = """
SELECT je.*, ps.name AS _section_name, ci.name AS _instance_name
FROM journal_entries je
LEFT JOIN panel_sections ps ON ps.id = je.panel_section_id
LEFT JOIN component_instances ci ON ci.id = je.component_instance_id
"""


def _shape(row: sqlite3.Row) -> dict[str, Any]:
    raw = dict(row)
    entry = {k: v for k, v in raw.items() if not k.startswith("_")}
    entry["panel_section"] = (
        {"id": raw["panel_section_id"], "name": raw["_section_name"]} if raw["panel_section_id"] else None
    )
    entry["component_instance"] = (
        {"id": raw["component_instance_id"], "name": raw["_instance_name"]}
        if raw["component_instance_id"]
        else None
    )
    return entry


def _parse_day(value: str, field: str) -> str:
    try:
        return date.fromisoformat(str(value)[:10]).isoformat()
    except ValueError as exc:
        raise BadRequestError(f"{field} must be an ISO date (YYYY-MM-DD)") from exc


def list_entries(
    conn: sqlite3.Connection,
    *,
    panel_section_id: str | None = None,
    component_instance_id: str | None = None,
    search: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
) -> list[dict[str, Any]]:
    clauses: list[str] = []
    params: list[Any] = []
    if panel_section_id:
        clauses.append("je.panel_section_id = ?")
        params.append(panel_section_id)
    if component_instance_id:
        clauses.append("je.component_instance_id = ?")
        params.append(component_instance_id)
    if search:
        needle = like_needle(search.lower())
        clauses.append("(lower(je.title) LIKE ? ESCAPE '\\' OR lower(je.body) LIKE ? ESCAPE '\\')")
        params.extend([needle, needle])
    if date_from:
        clauses.append("date(je.created_at) >= ?")
        params.append(_parse_day(date_from, "date_from"))
    if date_to:
        clauses.append("date(je.created_at) <= ?")
        params.append(_parse_day(date_to, "date_to"))
    sql = _SELECT
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY je.created_at DESC, je.rowid DESC"
    return [_shape(r) for r in conn.execute(sql, params).fetchall()]


def get_entry(conn: sqlite3.Connection, entry_id: str) -> dict[str, Any]:
    row = conn.execute(_SELECT + " WHERE je.id = ?", (entry_id,)).fetchone()
    if row is None:
        raise NotFoundError("Journal entry not found")
    return _shape(row)


def _check_links(conn: sqlite3.Connection, data: Mapping[str, Any]) -> None:
    if data.get("panel_section_id") and not row_exists(conn, "panel_sections", data["panel_section_id"]):
        raise BadRequestError("Panel section not found")
    if data.get("component_instance_id") and not row_exists(
        conn, "component_instances", data["component_instance_id"]
    ):
        raise BadRequestError("Component instance not found")


def create_entry(conn: sqlite3.Connection, data: Mapping[str, Any]) -> dict[str, Any]:
    raise_for_errors(validate_journal_entry(data))
    _check_links(conn, data)
    entry_id = new_id()
    row = {k: data[k] for k in JOURNAL_FIELDS if k in data}
    row["id"] = entry_id
    with tx(conn):
        insert_row(conn, "journal_entries", row)
    return get_entry(conn, entry_id)


def update_entry(conn: sqlite3.Connection, entry_id: str, data: Mapping[str, Any]) -> dict[str, Any]:
    raise_for_errors(validate_journal_entry(data, partial=True))
    if not row_exists(conn, "journal_entries", entry_id):
        raise NotFoundError("Journal entry not found")
    _check_links(conn, data)
    with tx(conn):
        update_columns(conn, "journal_entries", entry_id, data, JOURNAL_FIELDS)
    return get_entry(conn, entry_id)


def delete_entry(conn: sqlite3.Connection, entry_id: str) -> None:
    if not row_exists(conn, "journal_entries", entry_id):
        raise NotFoundError("Journal entry not found")
    with tx(conn):
        conn.execute("DELETE FROM journal_entries WHERE id = ?", (entry_id,))
