"""
MobiFlight device list for one board.

- Only pins carrying a component instance become devices.
- Gauge instances (stepper motors) collapse into one `Stepper` per instance:
  the lowest pin is the device pin, the next one is `paired_pin`.
- Any other pin maps by mode: INPUT -> Button, OUTPUT -> Output, PWM -> LedModule.
"""

from __future__ import annotations

import sqlite3
from typing import Any

from app.domain import device_sort_key
from app.errors import NotFoundError
from app.store.pins import query_pins

STEPPER_TYPE_NAME = "Gauge"

DEVICE_BY_MODE = {
    "INPUT": "Button",
    "OUTPUT": "Output",
    "PWM": "LedModule",
}


def _device(pin: dict[str, Any], device_type: str) -> dict[str, Any]:
    mapping = pin["mobiflight_mapping"] or {}
    instance = pin["component_instance"] or {}
    return {
        "pin_number": pin["pin_number"],
        "device_type": device_type,
        "name": instance.get("name") or pin["description"] or pin["pin_number"],
        "variable_name": mapping.get("variable_name"),
        "variable_type": mapping.get("variable_type"),
        "event_type": mapping.get("event_type"),
        "config_params": mapping.get("config_params"),
    }


def board_devices(conn: sqlite3.Connection, board_id: str) -> dict[str, Any]:
    board = conn.execute("SELECT id, name FROM boards WHERE id = ?", (board_id,)).fetchone()
    if board is None:
        raise NotFoundError("Board not found")

    pins = query_pins(conn, "pa.board_id = ? AND pa.component_instance_id IS NOT NULL", (board_id,))

    steppers: dict[str, list[dict[str, Any]]] = {}
    others: list[dict[str, Any]] = []
    for pin in pins:
        if pin["component_instance"]["component_type"]["name"] == STEPPER_TYPE_NAME:
            steppers.setdefault(pin["component_instance_id"], []).append(pin)
        else:
            others.append(pin)

    devices = []
    for group in steppers.values():
        group.sort(key=lambda p: device_sort_key(p["pin_number"]))
        device = _device(group[0], "Stepper")
        device["paired_pin"] = group[1]["pin_number"] if len(group) > 1 else None
        devices.append(device)
    for pin in others:
        devices.append(_device(pin, DEVICE_BY_MODE.get(pin["pin_mode"], "Button")))

    devices.sort(key=lambda d: device_sort_key(d["pin_number"]))
    return {"board_name": board["name"], "device_count": len(devices), "devices": devices}


def export_board(conn: sqlite3.Connection, board_id: str) -> dict[str, Any]:
    data = board_devices(conn, board_id)
    devices = []
    for device in data["devices"]:
        out = {k: v for k, v in device.items() if k != "paired_pin"}
        if device.get("paired_pin"):
            out["paired_pin"] = device["paired_pin"]
        devices.append(out)
    return {"board_name": data["board_name"], "serial_number": board_id, "devices": devices}
