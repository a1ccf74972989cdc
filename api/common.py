from __future__ import annotations

import sqlite3
from typing import Any

from flask import current_app, g, request

from app.db import connect
from app.errors import BadRequestError


def get_conn() -> sqlite3.Connection:
    """One connection per app context, closed on teardown."""
    if "db" not in g:
        g.db = connect(current_app.config["DB_PATH"])
    return g.db


def close_conn(exc: BaseException | None = None) -> None:
    conn = g.pop("db", None)
    if conn is not None:
        conn.close()


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        if request.get_data(cache=True):
            raise BadRequestError("Malformed JSON body")
        return {}
    if not isinstance(data, dict):
        raise BadRequestError("Request body must be a JSON object")
    return data


def query_args(*names: str) -> dict[str, str]:
    return {n: request.args[n] for n in names if request.args.get(n) not in (None, "")}


def flag(name: str) -> bool:
    return request.args.get(name, "").strip().lower() == "true"
