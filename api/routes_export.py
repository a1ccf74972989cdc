from __future__ import annotations

from flask import jsonify

from api import api_bp
from api.common import get_conn, json_body
from app.db import project_counts, schema_status
from calc_core.export_payload import export_all, import_all


@api_bp.get("/health")
def health():
    conn = get_conn()
    status = schema_status(conn)
    ok = not status["missing_tables"]
    return jsonify({"ok": ok, "schema": status, "counts": project_counts(conn) if ok else {}}), (200 if ok else 503)


@api_bp.get("/export/json")
def export_json():
    return jsonify(export_all(get_conn()))


@api_bp.post("/import/json")
def import_json():
    return jsonify(import_all(get_conn(), json_body()))
