from __future__ import annotations

import sqlite3
from typing import Any, Mapping

from app.db import tx, update_columns
from app.errors import raise_for_errors
from app.validation import validate_psu_config

PSU_ID = "singleton"
PSU_FIELDS = ("name", "capacity_watts", "converter_efficiency", "notes")


def get_psu_config(conn: sqlite3.Connection) -> dict[str, Any]:
    row = conn.execute("SELECT * FROM psu_config WHERE id = ?", (PSU_ID,)).fetchone()
    if row is None:
        # Migration 0004 inserts it; a wiped table gets the column defaults back.
        with tx(conn):
            conn.execute("INSERT INTO psu_config (id) VALUES (?)", (PSU_ID,))
        row = conn.execute("SELECT * FROM psu_config WHERE id = ?", (PSU_ID,)).fetchone()
    return dict(row)


def update_psu_config(conn: sqlite3.Connection, data: Mapping[str, Any]) -> dict[str, Any]:
    raise_for_errors(validate_psu_config(data))
    get_psu_config(conn)
    with tx(conn):
        update_columns(conn, "psu_config", PSU_ID, data, PSU_FIELDS)
    return get_psu_config(conn)
