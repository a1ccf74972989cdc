from __future__ import annotations

import logging
import sqlite3
from typing import Any

from app.db import row_exists, tx
from app.domain import BUILD_STATUSES, WIRED_STATUSES, percent
from app.errors import BadRequestError, NotFoundError
from app.store.component_instances import get_instance

logger = logging.getLogger(__name__)

# Build status -> wiring status pushed onto the instance's pins.
# Statuses absent here (HAS_ISSUES, NOT_ONBOARDED) leave the pins untouched.
WIRING_CASCADE = {
    "PLANNED": "PLANNED",
    "IN_PROGRESS": "WIRED",
    "COMPLETE": "COMPLETE",
}


def build_progress(conn: sqlite3.Connection) -> dict[str, Any]:
    sections = conn.execute(
        "SELECT id, name FROM panel_sections ORDER BY sort_order, name"
    ).fetchall()
    status_counts: dict[str, dict[str, int]] = {}
    for r in conn.execute(
        """
        SELECT panel_section_id, build_status, COUNT(*) AS n
        FROM component_instances GROUP BY panel_section_id, build_status
        """
    ).fetchall():
        status_counts.setdefault(r["panel_section_id"], {})[r["build_status"]] = int(r["n"])

    wired_marks = ",".join(f"'{s}'" for s in WIRED_STATUSES)
    pin_counts: dict[str, tuple[int, int]] = {}
    for r in conn.execute(
        f"""
        SELECT
          ci.panel_section_id AS section_id,
          SUM(CASE WHEN pa.wiring_status IN ({wired_marks}) THEN 1 ELSE 0 END) AS wired,
          COUNT(*) AS total
        FROM pin_assignments pa
        JOIN component_instances ci ON ci.id = pa.component_instance_id
        GROUP BY ci.panel_section_id
        """
    ).fetchall():
        pin_counts[r["section_id"]] = (int(r["wired"] or 0), int(r["total"]))

    total_all = completed_all = 0
    out_sections = []
    for s in sections:
        counts = status_counts.get(s["id"], {})
        total = sum(counts.values())
        complete = counts.get("COMPLETE", 0)
        wired, pins_total = pin_counts.get(s["id"], (0, 0))
        total_all += total
        completed_all += complete
        out_sections.append(
            {
                "section_id": s["id"],
                "section_name": s["name"],
                "total": total,
                "planned": counts.get("PLANNED", 0),
                "in_progress": counts.get("IN_PROGRESS", 0),
                "complete": complete,
                "has_issues": counts.get("HAS_ISSUES", 0),
                "percentage": percent(complete, total),
                "pin_stats": {"wired": wired, "total": pins_total},
            }
        )

    return {
        "overall": {
            "total": total_all,
            "completed": completed_all,
            "percentage": percent(completed_all, total_all),
        },
        "sections": out_sections,
    }


def update_component_status(conn: sqlite3.Connection, instance_id: str, status: str) -> dict[str, Any]:
    if status not in BUILD_STATUSES:
        raise BadRequestError(
            "Validation failed: build_status must be one of: " + ", ".join(BUILD_STATUSES)
        )
    if not row_exists(conn, "component_instances", instance_id):
        raise NotFoundError("Component instance not found")
    wiring_status = WIRING_CASCADE.get(status)
    with tx(conn):
        conn.execute(
            "UPDATE component_instances SET build_status = ?, updated_at = datetime('now') WHERE id = ?",
            (status, instance_id),
        )
        cascaded = 0
        if wiring_status is not None:
            cascaded = conn.execute(
                """
                UPDATE pin_assignments SET wiring_status = ?, updated_at = datetime('now')
                WHERE component_instance_id = ?
                """,
                (wiring_status, instance_id),
            ).rowcount
    logger.info("Component %s -> %s (%d pins -> %s)", instance_id, status, cascaded, wiring_status)
    return get_instance(conn, instance_id)
