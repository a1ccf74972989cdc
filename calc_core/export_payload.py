from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, Mapping

from app.db import decode_row, insert_row, tx
from app.errors import BadRequestError

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"

# Payload key -> table, parents first. Import deletes in reverse order.
TABLES = (
    ("boards", "boards"),
    ("panel_sections", "panel_sections"),
    ("component_types", "component_types"),
    ("component_instances", "component_instances"),
    ("mosfet_boards", "mosfet_boards"),
    ("mosfet_channels", "mosfet_channels"),
    ("pin_assignments", "pin_assignments"),
    ("mobiflight_mappings", "mobiflight_mappings"),
    ("journal_entries", "journal_entries"),
)
EXPORT_KEYS = tuple(key for key, _ in TABLES)

JSON_LISTS = {
    "boards": ("pwm_pins",),
    "panel_sections": ("lineage_urls",),
    "component_types": ("pin_labels", "pin_types", "pin_power_rails", "pin_mosfet_required"),
}
JSON_OBJECTS = {
    "component_types": ("mobiflight_template",),
    "mobiflight_mappings": ("config_params",),
}
BOOLS = {
    "panel_sections": ("owned",),
    "component_types": ("pwm_required",),
}


def _iso_utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _table_columns(conn: sqlite3.Connection, table: str) -> list[str]:
    return [str(r[1]) for r in conn.execute(f"PRAGMA table_info({table})").fetchall()]


def export_all(conn: sqlite3.Connection) -> dict[str, Any]:
    payload: dict[str, Any] = {"metadata": {"exported_at": _iso_utc_now(), "version": EXPORT_VERSION}}
    for key, table in TABLES:
        rows = conn.execute(f"SELECT * FROM {table} ORDER BY rowid").fetchall()
        payload[key] = [
            decode_row(
                r,
                json_lists=JSON_LISTS.get(table, ()),
                json_objects=JSON_OBJECTS.get(table, ()),
                bools=BOOLS.get(table, ()),
            )
            for r in rows
        ]
    return payload


def validate_payload(data: Any) -> None:
    if not isinstance(data, Mapping):
        raise BadRequestError("Import data must be a JSON object")
    for key in EXPORT_KEYS:
        if not isinstance(data.get(key), list):
            raise BadRequestError(f'Import data missing or invalid "{key}" array')


def _decode_text_json(row: dict[str, Any], fields: tuple[str, ...], key: str) -> None:
    # List columns given as encoded JSON text are decoded before re-encoding.
    for field in fields:
        if isinstance(row.get(field), str):
            try:
                row[field] = json.loads(row[field])
            except json.JSONDecodeError as exc:
                raise BadRequestError(f'Import data "{key}" has invalid JSON in {field}') from exc


def import_all(conn: sqlite3.Connection, data: Mapping[str, Any]) -> dict[str, Any]:
    """Replace every tracked table with the payload contents in one transaction."""
    validate_payload(data)
    counts: dict[str, int] = {}
    try:
        with tx(conn):
            for _, table in reversed(TABLES):
                conn.execute(f"DELETE FROM {table}")
            for key, table in TABLES:
                columns = set(_table_columns(conn, table))
                json_fields = JSON_LISTS.get(table, ()) + JSON_OBJECTS.get(table, ())
                for record in data[key]:
                    if not isinstance(record, Mapping):
                        raise BadRequestError(f'Import data "{key}" must contain objects')
                    row = {k: v for k, v in record.items() if k in columns}
                    if not row.get("id"):
                        raise BadRequestError(f'Import data "{key}" has a record without an id')
                    _decode_text_json(row, JSON_LISTS.get(table, ()), key)
                    insert_row(conn, table, row, json_fields=json_fields)
                counts[key] = len(data[key])
    except sqlite3.IntegrityError as exc:
        raise BadRequestError(f"Import failed: {exc}") from exc
    logger.info("Imported %s", ", ".join(f"{k}={v}" for k, v in counts.items()))
    return {"success": True, "message": "Import completed successfully", "counts": counts}
