from __future__ import annotations

import logging
import sqlite3
from typing import Any, Mapping

from app.db import decode_row, insert_row, new_id, tx, update_columns, utc_now_sql
from app.domain import BUILD_STATUSES, POWER_RAILS, percent
from app.errors import ConflictError, NotFoundError, raise_for_errors
from app.store.component_instances import list_instances
from app.store.pins import pins_for_instances
from app.validation import validate_panel_section

logger = logging.getLogger(__name__)

SVG_FIELDS = ("svg_x", "svg_y", "svg_width", "svg_height")
SECTION_FIELDS = (
    "name",
    "slug",
    "width_mm",
    "height_mm",
    "dzus_sizes",
    "dimension_notes",
    "build_status",
    "owned",
    "source_msn",
    "aircraft_variant",
    "registration",
    "lineage_notes",
    "lineage_urls",
    "sort_order",
) + SVG_FIELDS
JSON_FIELDS = ("lineage_urls",)


def _decode(row: Any) -> dict[str, Any] | None:
    return decode_row(row, json_lists=JSON_FIELDS, bools=("owned",))


def _fetch(conn: sqlite3.Connection, section_id: str) -> dict[str, Any]:
    section = _decode(conn.execute("SELECT * FROM panel_sections WHERE id = ?", (section_id,)).fetchone())
    if section is None:
        raise NotFoundError("Panel section not found")
    return section


def list_sections(conn: sqlite3.Connection) -> list[dict[str, Any]]:
    sections = [
        _decode(r)
        for r in conn.execute("SELECT * FROM panel_sections ORDER BY sort_order, name").fetchall()
    ]
    breakdown: dict[str, dict[str, int]] = {}
    for r in conn.execute(
        """
        SELECT panel_section_id, build_status, COUNT(*) AS n
        FROM component_instances
        GROUP BY panel_section_id, build_status
        """
    ).fetchall():
        breakdown.setdefault(r["panel_section_id"], {})[r["build_status"]] = int(r["n"])
    for section in sections:
        counts = breakdown.get(section["id"], {})
        section["component_count"] = sum(counts.values())
        section["build_status_breakdown"] = counts
    return sections


def section_summary(conn: sqlite3.Connection) -> list[dict[str, Any]]:
    """Per-section instance counts, pin usage, rail breakdown and build progress."""
    rows = conn.execute(
        """
        SELECT
          ps.id, ps.name, ps.slug, ps.build_status, ps.sort_order,
          COUNT(ci.id) AS component_count,
          COALESCE(SUM(ct.default_pin_count), 0) AS pins_total,
          COALESCE(SUM(CASE WHEN ci.build_status = 'COMPLETE' THEN 1 ELSE 0 END), 0) AS complete
        FROM panel_sections ps
        LEFT JOIN component_instances ci ON ci.panel_section_id = ps.id
        LEFT JOIN component_types ct ON ct.id = ci.component_type_id
        GROUP BY ps.id
        ORDER BY ps.sort_order, ps.name
        """
    ).fetchall()
    rails: dict[str, dict[str, int]] = {}
    for r in conn.execute(
        """
        SELECT ci.panel_section_id AS section_id, pa.power_rail AS rail, COUNT(*) AS n
        FROM pin_assignments pa
        JOIN component_instances ci ON ci.id = pa.component_instance_id
        GROUP BY ci.panel_section_id, pa.power_rail
        """
    ).fetchall():
        rails.setdefault(r["section_id"], {})[r["rail"]] = int(r["n"])

    out = []
    for r in rows:
        by_rail = rails.get(r["id"], {})
        count = int(r["component_count"])
        out.append(
            {
                "id": r["id"],
                "name": r["name"],
                "slug": r["slug"],
                "build_status": r["build_status"],
                "sort_order": r["sort_order"],
                "component_count": count,
                "pin_usage": {"assigned": sum(by_rail.values()), "total": int(r["pins_total"])},
                "power_breakdown": {rail: by_rail.get(rail, 0) for rail in POWER_RAILS},
                "build_progress": percent(int(r["complete"]), count),
            }
        )
    return out


def get_section(conn: sqlite3.Connection, section_id: str) -> dict[str, Any]:
    section = _fetch(conn, section_id)
    instances = list_instances(conn, panel_section_id=section_id)
    pins = pins_for_instances(conn, [i["id"] for i in instances])
    power_breakdown = {rail: 0 for rail in POWER_RAILS if rail != "NONE"}
    pin_count = 0
    for inst in instances:
        inst["pin_assignments"] = pins[inst["id"]]
        for pin in inst["pin_assignments"]:
            pin_count += 1
            if pin["power_rail"] in power_breakdown:
                power_breakdown[pin["power_rail"]] += 1
    section["component_instances"] = instances
    section["pin_count"] = pin_count
    section["power_breakdown"] = power_breakdown
    return section


def _check_slug_free(conn: sqlite3.Connection, slug: str, exclude_id: str | None = None) -> None:
    row = conn.execute(
        "SELECT id FROM panel_sections WHERE slug = ? AND id <> ?", (slug, exclude_id or "")
    ).fetchone()
    if row is not None:
        raise ConflictError(f"Panel section slug '{slug}' already exists")


def _stamp_onboarded(row: dict[str, Any], current_onboarded_at: str | None) -> None:
    status = row.get("build_status")
    if status and status != BUILD_STATUSES[0] and not current_onboarded_at:
        row["onboarded_at"] = utc_now_sql()


def create_section(conn: sqlite3.Connection, data: Mapping[str, Any]) -> dict[str, Any]:
    raise_for_errors(validate_panel_section(data))
    _check_slug_free(conn, data["slug"])
    section_id = new_id()
    row = {k: data[k] for k in SECTION_FIELDS if k in data and data[k] is not None}
    row["id"] = section_id
    _stamp_onboarded(row, None)
    with tx(conn):
        insert_row(conn, "panel_sections", row, json_fields=JSON_FIELDS)
    logger.info("Created panel section %s", data["slug"])
    return get_section(conn, section_id)


def update_section(conn: sqlite3.Connection, section_id: str, data: Mapping[str, Any]) -> dict[str, Any]:
    raise_for_errors(validate_panel_section(data, partial=True))
    current = _fetch(conn, section_id)
    if data.get("slug"):
        _check_slug_free(conn, data["slug"], section_id)
    row = {k: v for k, v in data.items() if k != "onboarded_at"}
    _stamp_onboarded(row, current["onboarded_at"])
    with tx(conn):
        update_columns(
            conn,
            "panel_sections",
            section_id,
            row,
            SECTION_FIELDS + ("onboarded_at",),
            json_fields=JSON_FIELDS,
        )
    return get_section(conn, section_id)


def delete_section(conn: sqlite3.Connection, section_id: str) -> None:
    _fetch(conn, section_id)
    count = int(
        conn.execute(
            "SELECT COUNT(*) FROM component_instances WHERE panel_section_id = ?", (section_id,)
        ).fetchone()[0]
    )
    if count:
        raise ConflictError(f"Panel section still has {count} component instance(s)")
    with tx(conn):
        conn.execute("DELETE FROM panel_sections WHERE id = ?", (section_id,))
    logger.info("Deleted panel section %s", section_id)
