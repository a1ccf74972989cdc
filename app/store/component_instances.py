from __future__ import annotations

import logging
import sqlite3
from typing import Any, Mapping

from app.db import insert_row, new_id, row_exists, tx, update_columns
from app.errors import BadRequestError, NotFoundError, raise_for_errors
from app.store.component_types import decode_type
from app.store.pins import pins_for_instances
from app.validation import validate_component_instance

logger = logging.getLogger(__name__)

MAP_FIELDS = ("map_x", "map_y", "map_width", "map_height")
CREATE_FIELDS = (
    "name",
    "component_type_id",
    "panel_section_id",
    "build_status",
    "power_rail",
    "notes",
    "sort_order",
) + MAP_FIELDS
UPDATE_FIELDS = ("name", "build_status", "power_rail", "notes", "sort_order") + MAP_FIELDS

_SELECT = """
SELECT
  ci.*,
  ps.name AS _section_name,
  ps.slug AS _section_slug,
  ps.sort_order AS _section_sort,
  (SELECT COUNT(*) FROM pin_assignments pa WHERE pa.component_instance_id = ci.id) AS pin_count
FROM component_instances ci
JOIN panel_sections ps ON ps.id = ci.panel_section_id
"""
_ORDER = " ORDER BY ps.sort_order, ci.sort_order, ci.name"


def effective_rail(instance_rail: str | None, type_rail: str | None) -> str:
    return instance_rail or type_rail or "NONE"


def _types_by_id(conn: sqlite3.Connection) -> dict[str, dict[str, Any]]:
    return {
        r["id"]: decode_type(r)
        for r in conn.execute("SELECT * FROM component_types").fetchall()
    }


def _shape(row: sqlite3.Row, types: Mapping[str, dict[str, Any]]) -> dict[str, Any]:
    raw = dict(row)
    out = {k: v for k, v in raw.items() if not k.startswith("_")}
    out["component_type"] = types.get(raw["component_type_id"])
    out["panel_section"] = {
        "id": raw["panel_section_id"],
        "name": raw["_section_name"],
        "slug": raw["_section_slug"],
    }
    return out


def list_instances(
    conn: sqlite3.Connection,
    *,
    panel_section_id: str | None = None,
    component_type_id: str | None = None,
    build_status: str | None = None,
    mapped: bool = False,
) -> list[dict[str, Any]]:
    clauses: list[str] = []
    params: list[Any] = []
    if panel_section_id:
        clauses.append("ci.panel_section_id = ?")
        params.append(panel_section_id)
    if component_type_id:
        clauses.append("ci.component_type_id = ?")
        params.append(component_type_id)
    if build_status:
        clauses.append("ci.build_status = ?")
        params.append(build_status)
    if mapped:
        clauses.extend(f"ci.{f} IS NOT NULL" for f in MAP_FIELDS)
    sql = _SELECT
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    types = _types_by_id(conn)
    return [_shape(r, types) for r in conn.execute(sql + _ORDER, params).fetchall()]


def map_data(conn: sqlite3.Connection) -> list[dict[str, Any]]:
    """Lightweight records for the panel overlay: mapped instances only."""
    out = []
    for inst in list_instances(conn, mapped=True):
        ctype = inst["component_type"] or {}
        out.append(
            {
                "id": inst["id"],
                "name": inst["name"],
                "build_status": inst["build_status"],
                "power_rail": effective_rail(inst["power_rail"], ctype.get("default_power_rail")),
                "map_x": inst["map_x"],
                "map_y": inst["map_y"],
                "map_width": inst["map_width"],
                "map_height": inst["map_height"],
                "component_type": {
                    "id": ctype.get("id"),
                    "name": ctype.get("name"),
                    "default_pin_count": ctype.get("default_pin_count"),
                },
                "panel_section": {
                    "id": inst["panel_section"]["id"],
                    "name": inst["panel_section"]["name"],
                },
                "pin_count": inst["pin_count"],
            }
        )
    return out


def get_instance(conn: sqlite3.Connection, instance_id: str) -> dict[str, Any]:
    row = conn.execute(_SELECT + " WHERE ci.id = ?", (instance_id,)).fetchone()
    if row is None:
        raise NotFoundError("Component instance not found")
    inst = _shape(row, _types_by_id(conn))
    inst["pin_assignments"] = pins_for_instances(conn, [instance_id])[instance_id]
    return inst


def create_instance(conn: sqlite3.Connection, data: Mapping[str, Any]) -> dict[str, Any]:
    raise_for_errors(validate_component_instance(data))
    if not row_exists(conn, "component_types", data["component_type_id"]):
        raise BadRequestError("Component type not found")
    if not row_exists(conn, "panel_sections", data["panel_section_id"]):
        raise BadRequestError("Panel section not found")
    instance_id = new_id()
    row = {k: data[k] for k in CREATE_FIELDS if k in data and data[k] is not None}
    row["id"] = instance_id
    with tx(conn):
        insert_row(conn, "component_instances", row)
    logger.info("Created component instance %s (%s)", data["name"], instance_id)
    return get_instance(conn, instance_id)


def update_instance(conn: sqlite3.Connection, instance_id: str, data: Mapping[str, Any]) -> dict[str, Any]:
    raise_for_errors(validate_component_instance(data, partial=True))
    if not row_exists(conn, "component_instances", instance_id):
        raise NotFoundError("Component instance not found")
    with tx(conn):
        update_columns(conn, "component_instances", instance_id, data, UPDATE_FIELDS)
    return get_instance(conn, instance_id)


def delete_instance(conn: sqlite3.Connection, instance_id: str) -> None:
    if not row_exists(conn, "component_instances", instance_id):
        raise NotFoundError("Component instance not found")
    with tx(conn):
        conn.execute(
            """
            DELETE FROM mobiflight_mappings WHERE pin_assignment_id IN (
              SELECT id FROM pin_assignments WHERE component_instance_id = ?
            )
            """,
            (instance_id,),
        )
        removed = conn.execute(
            "DELETE FROM pin_assignments WHERE component_instance_id = ?", (instance_id,)
        ).rowcount
        conn.execute("DELETE FROM component_instances WHERE id = ?", (instance_id,))
    logger.info("Deleted component instance %s and %d pin assignment(s)", instance_id, removed)
