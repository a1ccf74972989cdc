from __future__ import annotations

from flask import jsonify

from api import api_bp
from api.common import get_conn, json_body
from calc_core.build_progress import build_progress, update_component_status


@api_bp.get("/build-progress")
def get_build_progress():
    return jsonify(build_progress(get_conn()))


@api_bp.patch("/build-progress/component/<instance_id>/status")
def patch_component_status(instance_id: str):
    body = json_body()
    return jsonify(update_component_status(get_conn(), instance_id, body.get("build_status")))
