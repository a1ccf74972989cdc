from __future__ import annotations

import logging
import sqlite3
from typing import Any, Mapping

from app.db import decode_row, insert_row, new_id, row_exists, tx, update_columns
from app.errors import NotFoundError, raise_for_errors
from app.validation import validate_mobiflight_mapping

logger = logging.getLogger(__name__)

MAPPING_FIELDS = ("variable_name", "variable_type", "event_type", "config_params", "notes")
JSON_FIELDS = ("config_params",)


def get_mapping(conn: sqlite3.Connection, pin_id: str) -> dict[str, Any] | None:
    row = conn.execute(
        "SELECT * FROM mobiflight_mappings WHERE pin_assignment_id = ?", (pin_id,)
    ).fetchone()
    return decode_row(row, json_objects=JSON_FIELDS)


def upsert_mapping(conn: sqlite3.Connection, pin_id: str, data: Mapping[str, Any]) -> dict[str, Any]:
    """Create or replace the single mapping attached to a pin."""
    raise_for_errors(validate_mobiflight_mapping(data))
    if not row_exists(conn, "pin_assignments", pin_id):
        raise NotFoundError("Pin assignment not found")
    current = get_mapping(conn, pin_id)
    row = {
        "variable_name": data["variable_name"],
        "variable_type": data.get("variable_type") or "LVAR",
        "event_type": data.get("event_type") or "INPUT_ACTION",
        "config_params": data.get("config_params"),
        "notes": data.get("notes"),
    }
    with tx(conn):
        if current is None:
            insert_row(
                conn,
                "mobiflight_mappings",
                {"id": new_id(), "pin_assignment_id": pin_id, **row},
                json_fields=JSON_FIELDS,
            )
        else:
            update_columns(
                conn, "mobiflight_mappings", current["id"], row, MAPPING_FIELDS, json_fields=JSON_FIELDS
            )
    return get_mapping(conn, pin_id)


def delete_mapping(conn: sqlite3.Connection, pin_id: str) -> None:
    if get_mapping(conn, pin_id) is None:
        raise NotFoundError("MobiFlight mapping not found")
    with tx(conn):
        conn.execute("DELETE FROM mobiflight_mappings WHERE pin_assignment_id = ?", (pin_id,))
