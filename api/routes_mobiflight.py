from __future__ import annotations

from flask import jsonify

from api import api_bp
from api.common import get_conn, json_body
from app.store import mobiflight as mappings
from calc_core.mobiflight import board_devices, export_board


@api_bp.get("/mobiflight/preview/<board_id>")
def mobiflight_preview(board_id: str):
    return jsonify(board_devices(get_conn(), board_id))


@api_bp.get("/mobiflight/export/<board_id>")
def mobiflight_export(board_id: str):
    return jsonify(export_board(get_conn(), board_id))


@api_bp.put("/mobiflight/mapping/<pin_id>")
def put_mapping(pin_id: str):
    return jsonify(mappings.upsert_mapping(get_conn(), pin_id, json_body()))


@api_bp.delete("/mobiflight/mapping/<pin_id>")
def delete_mapping(pin_id: str):
    mappings.delete_mapping(get_conn(), pin_id)
    return "", 204
