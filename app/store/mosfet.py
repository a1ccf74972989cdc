from __future__ import annotations

import logging
import sqlite3
from typing import Any, Mapping

from app.db import insert_row, new_id, row_exists, tx, update_columns
from app.domain import MOSFET_DEFAULT_CHANNELS
from app.errors import ConflictError, NotFoundError, raise_for_errors
from app.validation import validate_mosfet_board

logger = logging.getLogger(__name__)

_CHANNEL_SELECT = """
SELECT
  mc.*,
  pa.id AS pin_id,
  pa.pin_number,
  pa.board_id,
  b.name AS board_name,
  ci.id AS instance_id,
  ci.name AS instance_name
FROM mosfet_channels mc
LEFT JOIN pin_assignments pa ON pa.mosfet_channel_id = mc.id
LEFT JOIN boards b ON b.id = pa.board_id
LEFT JOIN component_instances ci ON ci.id = pa.component_instance_id
WHERE mc.mosfet_board_id = ?
ORDER BY mc.channel_number
"""


def _channels(conn: sqlite3.Connection, board_id: str) -> list[dict[str, Any]]:
    out = []
    for r in conn.execute(_CHANNEL_SELECT, (board_id,)).fetchall():
        channel = {
            "id": r["id"],
            "mosfet_board_id": r["mosfet_board_id"],
            "channel_number": r["channel_number"],
            "notes": r["notes"],
            "pin_assignment": None,
        }
        if r["pin_id"]:
            channel["pin_assignment"] = {
                "id": r["pin_id"],
                "pin_number": r["pin_number"],
                "board": {"id": r["board_id"], "name": r["board_name"]},
                "component_instance": (
                    {"id": r["instance_id"], "name": r["instance_name"]} if r["instance_id"] else None
                ),
            }
        out.append(channel)
    return out


def _with_channels(conn: sqlite3.Connection, row: sqlite3.Row) -> dict[str, Any]:
    board = dict(row)
    board["channels"] = _channels(conn, board["id"])
    used = sum(1 for c in board["channels"] if c["pin_assignment"])
    board["used_channels"] = used
    board["free_channels"] = len(board["channels"]) - used
    return board


def list_mosfet_boards(conn: sqlite3.Connection) -> list[dict[str, Any]]:
    return [
        _with_channels(conn, r)
        for r in conn.execute("SELECT * FROM mosfet_boards ORDER BY name").fetchall()
    ]


def get_mosfet_board(conn: sqlite3.Connection, board_id: str) -> dict[str, Any]:
    row = conn.execute("SELECT * FROM mosfet_boards WHERE id = ?", (board_id,)).fetchone()
    if row is None:
        raise NotFoundError("MOSFET board not found")
    return _with_channels(conn, row)


def free_channel_count(conn: sqlite3.Connection) -> int:
    row = conn.execute(
        """
        SELECT COUNT(*) FROM mosfet_channels mc
        WHERE NOT EXISTS (SELECT 1 FROM pin_assignments pa WHERE pa.mosfet_channel_id = mc.id)
        """
    ).fetchone()
    return int(row[0])


def _used_count(conn: sqlite3.Connection, board_id: str) -> int:
    row = conn.execute(
        """
        SELECT COUNT(*) FROM pin_assignments pa
        JOIN mosfet_channels mc ON mc.id = pa.mosfet_channel_id
        WHERE mc.mosfet_board_id = ?
        """,
        (board_id,),
    ).fetchone()
    return int(row[0])


def _create_channels(conn: sqlite3.Connection, board_id: str, count: int) -> None:
    for number in range(1, count + 1):
        insert_row(
            conn,
            "mosfet_channels",
            {"id": new_id(), "mosfet_board_id": board_id, "channel_number": number},
        )


def create_mosfet_board(conn: sqlite3.Connection, data: Mapping[str, Any]) -> dict[str, Any]:
    raise_for_errors(validate_mosfet_board(data))
    board_id = new_id()
    count = int(data.get("channel_count") or MOSFET_DEFAULT_CHANNELS)
    with tx(conn):
        insert_row(
            conn,
            "mosfet_boards",
            {"id": board_id, "name": data["name"], "channel_count": count, "notes": data.get("notes")},
        )
        _create_channels(conn, board_id, count)
    logger.info("Created MOSFET board %s with %d channels", data["name"], count)
    return get_mosfet_board(conn, board_id)


def update_mosfet_board(conn: sqlite3.Connection, board_id: str, data: Mapping[str, Any]) -> dict[str, Any]:
    raise_for_errors(validate_mosfet_board(data, partial=True))
    current = get_mosfet_board(conn, board_id)
    new_count = data.get("channel_count")
    resize = new_count is not None and int(new_count) != int(current["channel_count"])
    if resize and current["used_channels"]:
        raise ConflictError("Cannot change channel count while channels are in use")
    with tx(conn):
        update_columns(conn, "mosfet_boards", board_id, data, ("name", "notes", "channel_count"))
        if resize:
            conn.execute("DELETE FROM mosfet_channels WHERE mosfet_board_id = ?", (board_id,))
            _create_channels(conn, board_id, int(new_count))
    if resize:
        logger.info("Re-created %d channels on MOSFET board %s", int(new_count), board_id)
    return get_mosfet_board(conn, board_id)


def delete_mosfet_board(conn: sqlite3.Connection, board_id: str) -> None:
    if not row_exists(conn, "mosfet_boards", board_id):
        raise NotFoundError("MOSFET board not found")
    used = _used_count(conn, board_id)
    if used:
        raise ConflictError(f"MOSFET board has {used} channel(s) in use; detach pins first")
    with tx(conn):
        conn.execute("DELETE FROM mosfet_boards WHERE id = ?", (board_id,))
    logger.info("Deleted MOSFET board %s", board_id)
