from __future__ import annotations

from flask import jsonify

from api import api_bp
from api.common import get_conn, json_body
from app.errors import BadRequestError
from calc_core.bom import apply_bom, calculate_bom


@api_bp.post("/bom/calculate")
def bom_calculate():
    body = json_body()
    section_id = body.get("section_id")
    if not isinstance(section_id, str) or not section_id:
        raise BadRequestError("Validation failed: section_id is required")
    return jsonify(calculate_bom(get_conn(), section_id))


@api_bp.post("/bom/apply")
def bom_apply():
    return jsonify(apply_bom(get_conn(), json_body())), 201
