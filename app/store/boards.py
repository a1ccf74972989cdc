from __future__ import annotations

import logging
import sqlite3
from typing import Any, Mapping

from app.db import decode_row, insert_row, new_id, row_exists, tx, update_columns
from app.domain import MEGA_2560_PWM_PINS
from app.errors import ConflictError, NotFoundError, raise_for_errors
from app.store.pins import query_pins
from app.validation import validate_board

logger = logging.getLogger(__name__)

BOARD_FIELDS = ("name", "board_type", "digital_pin_count", "analog_pin_count", "pwm_pins", "notes")
JSON_FIELDS = ("pwm_pins",)


def _decode(row: Any) -> dict[str, Any] | None:
    return decode_row(row, json_lists=JSON_FIELDS)


def pin_availability(board: Mapping[str, Any], used_pins: list[Mapping[str, Any]]) -> dict[str, int]:
    """Counts pins carrying a component instance against the board's capacity.

    Digital/analog use goes by `pin_type`; PWM use by `pin_mode == "PWM"`.
    """
    digital_used = sum(1 for p in used_pins if p["pin_type"] == "DIGITAL")
    analog_used = sum(1 for p in used_pins if p["pin_type"] == "ANALOG")
    pwm_used = sum(1 for p in used_pins if p["pin_mode"] == "PWM")
    return {
        "digital_used": digital_used,
        "digital_free": int(board["digital_pin_count"]) - digital_used,
        "analog_used": analog_used,
        "analog_free": int(board["analog_pin_count"]) - analog_used,
        "pwm_free": len(board.get("pwm_pins") or []) - pwm_used,
    }


def list_boards(conn: sqlite3.Connection) -> list[dict[str, Any]]:
    boards = [_decode(r) for r in conn.execute("SELECT * FROM boards ORDER BY name").fetchall()]
    used: dict[str, list[dict[str, Any]]] = {}
    for r in conn.execute(
        "SELECT board_id, pin_type, pin_mode FROM pin_assignments WHERE component_instance_id IS NOT NULL"
    ).fetchall():
        used.setdefault(str(r["board_id"]), []).append(dict(r))
    for board in boards:
        board["pin_availability"] = pin_availability(board, used.get(board["id"], []))
    return boards


def get_board(conn: sqlite3.Connection, board_id: str) -> dict[str, Any]:
    board = _decode(conn.execute("SELECT * FROM boards WHERE id = ?", (board_id,)).fetchone())
    if board is None:
        raise NotFoundError("Board not found")
    board["pin_assignments"] = query_pins(conn, "pa.board_id = ?", (board_id,))
    board["pin_availability"] = pin_availability(
        board,
        [p for p in board["pin_assignments"] if p["component_instance_id"]],
    )
    return board


def _check_name_free(conn: sqlite3.Connection, name: str, exclude_id: str | None = None) -> None:
    row = conn.execute(
        "SELECT id FROM boards WHERE name = ? AND id <> ?", (name, exclude_id or "")
    ).fetchone()
    if row is not None:
        raise ConflictError(f"Board '{name}' already exists")


def create_board(conn: sqlite3.Connection, data: Mapping[str, Any]) -> dict[str, Any]:
    raise_for_errors(validate_board(data))
    _check_name_free(conn, data["name"])
    board_id = new_id()
    row = {k: data[k] for k in BOARD_FIELDS if k in data and data[k] is not None}
    row.setdefault("pwm_pins", list(MEGA_2560_PWM_PINS))
    row["id"] = board_id
    with tx(conn):
        insert_row(conn, "boards", row, json_fields=JSON_FIELDS)
    logger.info("Created board %s (%s)", data["name"], board_id)
    return get_board(conn, board_id)


def update_board(conn: sqlite3.Connection, board_id: str, data: Mapping[str, Any]) -> dict[str, Any]:
    raise_for_errors(validate_board(data, partial=True))
    if not row_exists(conn, "boards", board_id):
        raise NotFoundError("Board not found")
    if data.get("name"):
        _check_name_free(conn, data["name"], board_id)
    with tx(conn):
        update_columns(conn, "boards", board_id, data, BOARD_FIELDS, json_fields=JSON_FIELDS)
    return get_board(conn, board_id)


def delete_board(conn: sqlite3.Connection, board_id: str) -> None:
    if not row_exists(conn, "boards", board_id):
        raise NotFoundError("Board not found")
    pins = int(
        conn.execute("SELECT COUNT(*) FROM pin_assignments WHERE board_id = ?", (board_id,)).fetchone()[0]
    )
    if pins:
        raise ConflictError(f"Board has {pins} pin assignment(s); remove them first")
    with tx(conn):
        conn.execute("DELETE FROM boards WHERE id = ?", (board_id,))
    logger.info("Deleted board %s", board_id)
