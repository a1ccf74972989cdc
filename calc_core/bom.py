"""
BOM calculation: allocate free Mega pins to the component instances of one
panel section.

- Components are processed in sort order; pins allocated to an earlier
  component are unavailable to later ones in the same run.
- Boards are scanned by name. PWM-required components take `D<n>` for n in the
  board's pwm_pins; ANALOG takes A0..; DIGITAL takes D0.. (PWM pins included).
- Pins that fit on no board are reported as new boards needed
  (16 analog or 54 digital pins per new board).
- calculate() never writes; apply() writes the result in one transaction and
  refuses with 409 if any pin was taken in the meantime.
"""

from __future__ import annotations

import json
import logging
import math
import sqlite3
from dataclasses import dataclass, field
from typing import Any, Mapping

from app.db import insert_row, new_id, row_exists, tx
from app.domain import MEGA_2560_ANALOG_PINS, MEGA_2560_DIGITAL_PINS, pin_type_for
from app.errors import BadRequestError, ConflictError, NotFoundError
from app.store.component_types import decode_type
from app.store.mosfet import free_channel_count

logger = logging.getLogger(__name__)


@dataclass
class BoardSlots:
    id: str
    name: str
    digital_pin_count: int
    analog_pin_count: int
    pwm_pins: list[int]
    used: set[str] = field(default_factory=set)

    def free_pins(self, pin_type: str, pwm_required: bool, count: int) -> list[str]:
        if pwm_required:
            candidates = [f"D{n}" for n in self.pwm_pins]
        elif pin_type == "ANALOG":
            candidates = [f"A{n}" for n in range(self.analog_pin_count)]
        else:
            candidates = [f"D{n}" for n in range(self.digital_pin_count)]
        result: list[str] = []
        for pin in candidates:
            if len(result) >= count:
                break
            if pin not in self.used:
                result.append(pin)
        return result


def primary_pin_type(pin_types: list[str] | None) -> str:
    for value in pin_types or []:
        if value in ("DIGITAL", "ANALOG"):
            return value
    return "DIGITAL"


def _load_boards(conn: sqlite3.Connection) -> list[BoardSlots]:
    boards = []
    for r in conn.execute("SELECT * FROM boards ORDER BY name").fetchall():
        boards.append(
            BoardSlots(
                id=r["id"],
                name=r["name"],
                digital_pin_count=int(r["digital_pin_count"]),
                analog_pin_count=int(r["analog_pin_count"]),
                pwm_pins=[int(n) for n in json.loads(r["pwm_pins"] or "[]")],
            )
        )
    by_id = {b.id: b for b in boards}
    for r in conn.execute("SELECT board_id, pin_number FROM pin_assignments").fetchall():
        board = by_id.get(r["board_id"])
        if board is not None:
            board.used.add(str(r["pin_number"]))
    return boards


def calculate_bom(conn: sqlite3.Connection, section_id: str) -> dict[str, Any]:
    section = conn.execute("SELECT id, name FROM panel_sections WHERE id = ?", (section_id,)).fetchone()
    if section is None:
        raise NotFoundError("Panel section not found")

    instances = conn.execute(
        """
        SELECT
          ci.id, ci.name, ci.power_rail, ci.component_type_id,
          (SELECT COUNT(*) FROM pin_assignments pa WHERE pa.component_instance_id = ci.id) AS existing
        FROM component_instances ci
        WHERE ci.panel_section_id = ?
        ORDER BY ci.sort_order, ci.name
        """,
        (section_id,),
    ).fetchall()
    types = {r["id"]: decode_type(r) for r in conn.execute("SELECT * FROM component_types").fetchall()}
    boards = _load_boards(conn)

    new_boards_needed = 0
    mosfet_needed = 0
    components: list[dict[str, Any]] = []

    for inst in instances:
        ctype = types[inst["component_type_id"]]
        pins_needed = int(ctype["default_pin_count"]) - int(inst["existing"])
        pin_type = primary_pin_type(ctype["pin_types"])
        pwm_required = bool(ctype["pwm_required"])
        power_rail = inst["power_rail"] or ctype["default_power_rail"]
        entry = {
            "component_instance_id": inst["id"],
            "name": inst["name"],
            "type_name": ctype["name"],
            "pins_needed": max(pins_needed, 0),
            "pin_mode": ctype["default_pin_mode"],
            "pin_type": pin_type,
            "pwm_required": pwm_required,
            "power_rail": power_rail,
            "allocations": [],
        }
        components.append(entry)
        if pins_needed <= 0:
            continue

        if power_rail == "TWENTY_SEVEN_V":
            mosfet_needed += pins_needed

        remaining = pins_needed
        for board in boards:
            if remaining <= 0:
                break
            free = board.free_pins(pin_type, pwm_required, remaining)
            if not free:
                continue
            entry["allocations"].append({"board_id": board.id, "board_name": board.name, "pins": free})
            board.used.update(free)
            remaining -= len(free)

        if remaining > 0:
            per_board = MEGA_2560_ANALOG_PINS if pin_type == "ANALOG" else MEGA_2560_DIGITAL_PINS
            new_boards_needed += math.ceil(remaining / per_board)

    return {
        "section_id": section["id"],
        "section_name": section["name"],
        "components": components,
        "new_boards_needed": new_boards_needed,
        "mosfet_channels_needed": mosfet_needed,
        "mosfet_channels_available": free_channel_count(conn),
    }


def apply_bom(conn: sqlite3.Connection, result: Mapping[str, Any]) -> dict[str, Any]:
    section_id = result.get("section_id")
    if not row_exists(conn, "panel_sections", section_id):
        raise NotFoundError("Panel section not found")
    components = result.get("components")
    if not isinstance(components, list):
        raise BadRequestError("Validation failed: components must be a list")

    created: list[dict[str, str]] = []
    with tx(conn):
        for component in components:
            allocations = component.get("allocations") or []
            if not component.get("pins_needed") or not allocations:
                continue
            instance_id = component.get("component_instance_id")
            if not row_exists(conn, "component_instances", instance_id):
                raise BadRequestError(
                    f'Component instance "{component.get("name")}" ({instance_id}) no longer exists.'
                )
            for allocation in allocations:
                board_id = allocation.get("board_id")
                board_name = allocation.get("board_name")
                if not row_exists(conn, "boards", board_id):
                    raise BadRequestError(f'Board "{board_name}" ({board_id}) no longer exists.')
                for pin_number in allocation.get("pins") or []:
                    taken = conn.execute(
                        "SELECT 1 FROM pin_assignments WHERE board_id = ? AND pin_number = ?",
                        (board_id, pin_number),
                    ).fetchone()
                    if taken is not None:
                        raise ConflictError(
                            f'Pin {pin_number} on board "{board_name}" is already assigned. '
                            "Re-run calculate to get fresh allocations."
                        )
                    insert_row(
                        conn,
                        "pin_assignments",
                        {
                            "id": new_id(),
                            "board_id": board_id,
                            "pin_number": pin_number,
                            "pin_type": pin_type_for(pin_number),
                            "pin_mode": "PWM" if component.get("pwm_required") else component.get("pin_mode", "INPUT"),
                            "component_instance_id": instance_id,
                            "power_rail": component.get("power_rail") or "NONE",
                            "wiring_status": "PLANNED",
                            "description": f"Auto-assigned for {component.get('name')}",
                        },
                    )
                    created.append(
                        {
                            "component_instance_id": instance_id,
                            "component_name": component.get("name"),
                            "board_id": board_id,
                            "board_name": board_name,
                            "pin_number": pin_number,
                        }
                    )

    logger.info("BOM applied to section %s: %d pins created", section_id, len(created))
    return {
        "section_id": section_id,
        "section_name": result.get("section_name"),
        "total_pins_created": len(created),
        "assignments": created,
    }
