from __future__ import annotations

from flask import current_app, jsonify, request

from api import api_bp
from api.common import get_conn
from calc_core.lvar_reference import LvarReference, load_reference


def _reference() -> LvarReference:
    return load_reference(current_app.config["LVAR_FILE"])


@api_bp.get("/lvars")
def search_lvars():
    query = request.args.get("q", "")
    section = request.args.get("section") or None
    return jsonify([e.to_dict() for e in _reference().search(query, section)])


@api_bp.get("/lvars/sections")
def lvar_sections():
    return jsonify(_reference().sections())


@api_bp.get("/lvars/sections/<code>")
def lvar_section(code: str):
    return jsonify([e.to_dict() for e in _reference().section_entries(code)])


@api_bp.get("/lvars/suggest/<pin_id>")
def suggest_lvars(pin_id: str):
    return jsonify([e.to_dict() for e in _reference().suggest_for_pin(get_conn(), pin_id)])
