from __future__ import annotations

import logging
import sqlite3
from typing import Any, Iterable, Mapping

from app.db import decode_row, insert_row, like_needle, new_id, placeholders, row_exists, tx, update_columns
from app.domain import parse_pin, pin_sort_key, pin_type_for
from app.errors import BadRequestError, ConflictError, NotFoundError, raise_for_errors
from app.validation import validate_bulk_pin_update, validate_pin_assignment, validate_pin_filters, validate_pin_update

logger = logging.getLogger(__name__)

CREATE_FIELDS = (
    "board_id",
    "pin_number",
    "pin_type",
    "pin_mode",
    "component_instance_id",
    "description",
    "power_rail",
    "notes",
)
UPDATE_FIELDS = (
    "pin_mode",
    "component_instance_id",
    "description",
    "power_rail",
    "wiring_status",
    "notes",
    "mosfet_channel_id",
)

_PIN_SELECT = """
SELECT
  pa.*,
  b.name AS _board_name,
  ci.name AS _instance_name,
  ci.build_status AS _instance_build_status,
  ci.panel_section_id AS _section_id,
  ps.name AS _section_name,
  ct.id AS _type_id,
  ct.name AS _type_name,
  mc.channel_number AS _channel_number,
  mc.mosfet_board_id AS _mosfet_board_id,
  mb.name AS _mosfet_board_name,
  mm.id AS _mapping_id,
  mm.variable_name AS _variable_name,
  mm.variable_type AS _variable_type,
  mm.event_type AS _event_type,
  mm.config_params AS _config_params,
  mm.notes AS _mapping_notes
FROM pin_assignments pa
JOIN boards b ON b.id = pa.board_id
LEFT JOIN component_instances ci ON ci.id = pa.component_instance_id
LEFT JOIN panel_sections ps ON ps.id = ci.panel_section_id
LEFT JOIN component_types ct ON ct.id = ci.component_type_id
LEFT JOIN mosfet_channels mc ON mc.id = pa.mosfet_channel_id
LEFT JOIN mosfet_boards mb ON mb.id = mc.mosfet_board_id
LEFT JOIN mobiflight_mappings mm ON mm.pin_assignment_id = pa.id
"""


def _shape(row: sqlite3.Row) -> dict[str, Any]:
    raw = dict(row)
    pin = {k: v for k, v in raw.items() if not k.startswith("_")}
    pin["board"] = {"id": raw["board_id"], "name": raw["_board_name"]}
    if raw["component_instance_id"]:
        pin["component_instance"] = {
            "id": raw["component_instance_id"],
            "name": raw["_instance_name"],
            "build_status": raw["_instance_build_status"],
            "panel_section": {"id": raw["_section_id"], "name": raw["_section_name"]},
            "component_type": {"id": raw["_type_id"], "name": raw["_type_name"]},
        }
    else:
        pin["component_instance"] = None
    if raw["mosfet_channel_id"]:
        pin["mosfet_channel"] = {
            "id": raw["mosfet_channel_id"],
            "channel_number": raw["_channel_number"],
            "mosfet_board": {"id": raw["_mosfet_board_id"], "name": raw["_mosfet_board_name"]},
        }
    else:
        pin["mosfet_channel"] = None
    if raw["_mapping_id"]:
        pin["mobiflight_mapping"] = decode_row(
            {
                "id": raw["_mapping_id"],
                "pin_assignment_id": raw["id"],
                "variable_name": raw["_variable_name"],
                "variable_type": raw["_variable_type"],
                "event_type": raw["_event_type"],
                "config_params": raw["_config_params"],
                "notes": raw["_mapping_notes"],
            },
            json_objects=("config_params",),
        )
    else:
        pin["mobiflight_mapping"] = None
    return pin


def query_pins(conn: sqlite3.Connection, where: str = "", params: Iterable[Any] = ()) -> list[dict[str, Any]]:
    """Pins with board, instance, MOSFET channel and mapping; board name then natural pin order."""
    sql = _PIN_SELECT
    if where:
        sql += f" WHERE {where}"
    pins = [_shape(r) for r in conn.execute(sql, tuple(params)).fetchall()]
    pins.sort(key=lambda p: (p["board"]["name"], p["board_id"], pin_sort_key(p["pin_number"])))
    return pins


def list_pins(conn: sqlite3.Connection, filters: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
    filters = {k: v for k, v in (filters or {}).items() if v not in (None, "")}
    raise_for_errors(validate_pin_filters(filters))

    clauses: list[str] = []
    params: list[Any] = []
    if "board_id" in filters:
        clauses.append("pa.board_id = ?")
        params.append(filters["board_id"])
    if "panel_section_id" in filters:
        clauses.append("ci.panel_section_id = ?")
        params.append(filters["panel_section_id"])
    if "power_rail" in filters:
        clauses.append("pa.power_rail = ?")
        params.append(filters["power_rail"])
    if "wiring_status" in filters:
        clauses.append("pa.wiring_status = ?")
        params.append(filters["wiring_status"])
    if filters.get("assigned") == "true":
        clauses.append("pa.component_instance_id IS NOT NULL")
    elif filters.get("assigned") == "false":
        clauses.append("pa.component_instance_id IS NULL")
    if "search" in filters:
        needle = like_needle(str(filters["search"]).lower())
        clauses.append(
            "(lower(coalesce(pa.description, '')) LIKE ? ESCAPE '\\'"
            " OR lower(coalesce(pa.notes, '')) LIKE ? ESCAPE '\\'"
            " OR lower(coalesce(ci.name, '')) LIKE ? ESCAPE '\\'"
            " OR lower(coalesce(mm.variable_name, '')) LIKE ? ESCAPE '\\')"
        )
        params.extend([needle] * 4)
    return query_pins(conn, " AND ".join(clauses), params)


def get_pin(conn: sqlite3.Connection, pin_id: str) -> dict[str, Any]:
    pins = query_pins(conn, "pa.id = ?", (pin_id,))
    if not pins:
        raise NotFoundError("Pin assignment not found")
    return pins[0]


def pins_for_instances(conn: sqlite3.Connection, instance_ids: list[str]) -> dict[str, list[dict[str, Any]]]:
    out: dict[str, list[dict[str, Any]]] = {i: [] for i in instance_ids}
    if not instance_ids:
        return out
    for pin in query_pins(conn, f"pa.component_instance_id IN ({placeholders(len(instance_ids))})", instance_ids):
        out[pin["component_instance_id"]].append(pin)
    return out


def check_pin_capacity(board: Mapping[str, Any], pin_number: str) -> None:
    parsed = parse_pin(pin_number)
    if parsed is None:
        raise BadRequestError("Pin must be D0-D53 or A0-A15")
    prefix, num = parsed
    if prefix == "D" and num >= int(board["digital_pin_count"]):
        raise BadRequestError(
            f"Pin {pin_number} exceeds board capacity ({board['digital_pin_count']} digital pins)"
        )
    if prefix == "A" and num >= int(board["analog_pin_count"]):
        raise BadRequestError(
            f"Pin {pin_number} exceeds board capacity ({board['analog_pin_count']} analog pins)"
        )


def create_pin(conn: sqlite3.Connection, data: Mapping[str, Any]) -> dict[str, Any]:
    raise_for_errors(validate_pin_assignment(data))
    board = conn.execute("SELECT * FROM boards WHERE id = ?", (data["board_id"],)).fetchone()
    if board is None:
        raise BadRequestError("Board not found")
    pin_number = data["pin_number"]
    check_pin_capacity(board, pin_number)
    if data["pin_type"] != pin_type_for(pin_number):
        raise BadRequestError(f"pin_type {data['pin_type']} does not match pin {pin_number}")
    taken = conn.execute(
        "SELECT 1 FROM pin_assignments WHERE board_id = ? AND pin_number = ?",
        (data["board_id"], pin_number),
    ).fetchone()
    if taken is not None:
        raise ConflictError(f"Pin {pin_number} is already assigned on board {board['name']}")
    instance_id = data.get("component_instance_id")
    if instance_id and not row_exists(conn, "component_instances", instance_id):
        raise BadRequestError("Component instance not found")

    pin_id = new_id()
    row = {k: data[k] for k in CREATE_FIELDS if k in data}
    row["id"] = pin_id
    with tx(conn):
        insert_row(conn, "pin_assignments", row)
    return get_pin(conn, pin_id)


def _check_mosfet_channel(conn: sqlite3.Connection, pin_id: str, channel_id: str | None) -> None:
    if not channel_id:
        return
    if not row_exists(conn, "mosfet_channels", channel_id):
        raise BadRequestError("MOSFET channel not found")
    other = conn.execute(
        "SELECT pin_number FROM pin_assignments WHERE mosfet_channel_id = ? AND id <> ?",
        (channel_id, pin_id),
    ).fetchone()
    if other is not None:
        raise ConflictError(f"MOSFET channel already in use by pin {other['pin_number']}")


def update_pin(conn: sqlite3.Connection, pin_id: str, data: Mapping[str, Any]) -> dict[str, Any]:
    raise_for_errors(validate_pin_update(data))
    if not row_exists(conn, "pin_assignments", pin_id):
        raise NotFoundError("Pin assignment not found")
    instance_id = data.get("component_instance_id")
    if instance_id and not row_exists(conn, "component_instances", instance_id):
        raise BadRequestError("Component instance not found")
    _check_mosfet_channel(conn, pin_id, data.get("mosfet_channel_id"))
    with tx(conn):
        update_columns(conn, "pin_assignments", pin_id, data, UPDATE_FIELDS)
    return get_pin(conn, pin_id)


def bulk_update_pins(conn: sqlite3.Connection, payload: Mapping[str, Any]) -> dict[str, int]:
    raise_for_errors(validate_bulk_pin_update(payload))
    ids = list(dict.fromkeys(payload["ids"]))
    found = {
        str(r[0])
        for r in conn.execute(
            f"SELECT id FROM pin_assignments WHERE id IN ({placeholders(len(ids))})", ids
        ).fetchall()
    }
    missing = [i for i in ids if i not in found]
    if missing:
        raise NotFoundError("Pin assignments not found: " + ", ".join(missing))
    updated = 0
    with tx(conn):
        for pin_id in ids:
            updated += update_columns(
                conn, "pin_assignments", pin_id, payload["data"], ("wiring_status", "power_rail")
            )
    logger.info("Bulk-updated %d pin assignments", updated)
    return {"updated": updated}


def delete_pin(conn: sqlite3.Connection, pin_id: str) -> None:
    if not row_exists(conn, "pin_assignments", pin_id):
        raise NotFoundError("Pin assignment not found")
    with tx(conn):
        conn.execute("DELETE FROM mobiflight_mappings WHERE pin_assignment_id = ?", (pin_id,))
        conn.execute("DELETE FROM pin_assignments WHERE id = ?", (pin_id,))
