from __future__ import annotations

from flask import jsonify

from api import api_bp
from api.common import get_conn, json_body, query_args
from app.store import pins


@api_bp.get("/pin-assignments")
def list_pins():
    filters = query_args("board_id", "panel_section_id", "power_rail", "wiring_status", "assigned", "search")
    return jsonify(pins.list_pins(get_conn(), filters))


@api_bp.patch("/pin-assignments/bulk")
def bulk_update_pins():
    return jsonify(pins.bulk_update_pins(get_conn(), json_body()))


@api_bp.get("/pin-assignments/<pin_id>")
def get_pin(pin_id: str):
    return jsonify(pins.get_pin(get_conn(), pin_id))


@api_bp.post("/pin-assignments")
def create_pin():
    return jsonify(pins.create_pin(get_conn(), json_body())), 201


@api_bp.patch("/pin-assignments/<pin_id>")
def update_pin(pin_id: str):
    return jsonify(pins.update_pin(get_conn(), pin_id, json_body()))


@api_bp.delete("/pin-assignments/<pin_id>")
def delete_pin(pin_id: str):
    pins.delete_pin(get_conn(), pin_id)
    return "", 204
