from __future__ import annotations

import sqlite3
from typing import Any

from app.errors import NotFoundError
from app.store.component_instances import list_instances
from app.store.pins import pins_for_instances


def wiring_diagram(conn: sqlite3.Connection, section_id: str) -> dict[str, Any]:
    """Tabular wiring view: each component of a section with its pins."""
    section = conn.execute("SELECT id, name, slug FROM panel_sections WHERE id = ?", (section_id,)).fetchone()
    if section is None:
        raise NotFoundError("Panel section not found")

    instances = list_instances(conn, panel_section_id=section_id)
    pins = pins_for_instances(conn, [i["id"] for i in instances])
    components = []
    for inst in instances:
        ctype = inst["component_type"] or {}
        components.append(
            {
                "id": inst["id"],
                "name": inst["name"],
                "build_status": inst["build_status"],
                "type_name": ctype.get("name"),
                "pins": [
                    {
                        "id": p["id"],
                        "pin_number": p["pin_number"],
                        "board_id": p["board_id"],
                        "board_name": p["board"]["name"],
                        "pin_mode": p["pin_mode"],
                        "pin_type": p["pin_type"],
                        "power_rail": p["power_rail"],
                        "wiring_status": p["wiring_status"],
                        "description": p["description"],
                        "mosfet_channel": (
                            {
                                "board_name": p["mosfet_channel"]["mosfet_board"]["name"],
                                "channel_number": p["mosfet_channel"]["channel_number"],
                            }
                            if p["mosfet_channel"]
                            else None
                        ),
                    }
                    for p in pins[inst["id"]]
                ],
            }
        )
    return {"section": dict(section), "components": components}
