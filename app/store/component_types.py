from __future__ import annotations

import logging
import sqlite3
from typing import Any, Mapping

from app.db import decode_row, insert_row, new_id, row_exists, tx, update_columns
from app.errors import ConflictError, NotFoundError, raise_for_errors
from app.validation import validate_component_type

logger = logging.getLogger(__name__)

TYPE_FIELDS = (
    "name",
    "description",
    "default_pin_count",
    "pin_labels",
    "pin_types",
    "pin_power_rails",
    "pin_mosfet_required",
    "default_power_rail",
    "default_pin_mode",
    "pwm_required",
    "typical_current_ma",
    "standby_current_ma",
    "mobiflight_template",
    "notes",
)
JSON_LISTS = ("pin_labels", "pin_types", "pin_power_rails", "pin_mosfet_required")
JSON_FIELDS = JSON_LISTS + ("mobiflight_template",)

_SELECT = """
SELECT ct.*, (
  SELECT COUNT(*) FROM component_instances ci WHERE ci.component_type_id = ct.id
) AS usage_count
FROM component_types ct
"""


def decode_type(row: Any) -> dict[str, Any] | None:
    return decode_row(
        row,
        json_lists=JSON_LISTS,
        json_objects=("mobiflight_template",),
        bools=("pwm_required",),
    )


def list_component_types(conn: sqlite3.Connection) -> list[dict[str, Any]]:
    return [decode_type(r) for r in conn.execute(_SELECT + " ORDER BY ct.name").fetchall()]


def get_component_type(conn: sqlite3.Connection, type_id: str) -> dict[str, Any]:
    row = conn.execute(_SELECT + " WHERE ct.id = ?", (type_id,)).fetchone()
    if row is None:
        raise NotFoundError("Component type not found")
    return decode_type(row)


def _check_name_free(conn: sqlite3.Connection, name: str, exclude_id: str | None = None) -> None:
    row = conn.execute(
        "SELECT id FROM component_types WHERE name = ? AND id <> ?", (name, exclude_id or "")
    ).fetchone()
    if row is not None:
        raise ConflictError(f"Component type '{name}' already exists")


def create_component_type(conn: sqlite3.Connection, data: Mapping[str, Any]) -> dict[str, Any]:
    raise_for_errors(validate_component_type(data))
    _check_name_free(conn, data["name"])
    type_id = new_id()
    row = {k: data[k] for k in TYPE_FIELDS if k in data and data[k] is not None}
    row["id"] = type_id
    with tx(conn):
        insert_row(conn, "component_types", row, json_fields=JSON_FIELDS)
    return get_component_type(conn, type_id)


def update_component_type(conn: sqlite3.Connection, type_id: str, data: Mapping[str, Any]) -> dict[str, Any]:
    raise_for_errors(validate_component_type(data, partial=True))
    if not row_exists(conn, "component_types", type_id):
        raise NotFoundError("Component type not found")
    if data.get("name"):
        _check_name_free(conn, data["name"], type_id)
    with tx(conn):
        update_columns(conn, "component_types", type_id, data, TYPE_FIELDS, json_fields=JSON_FIELDS)
    return get_component_type(conn, type_id)


def delete_component_type(conn: sqlite3.Connection, type_id: str) -> None:
    current = get_component_type(conn, type_id)
    if current["usage_count"]:
        raise ConflictError(
            f"Component type is used by {current['usage_count']} instance(s); remove them first"
        )
    with tx(conn):
        conn.execute("DELETE FROM component_types WHERE id = ?", (type_id,))
    logger.info("Deleted component type %s", current["name"])
