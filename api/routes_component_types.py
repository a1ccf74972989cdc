from __future__ import annotations

from flask import jsonify

from api import api_bp
from api.common import get_conn, json_body
from app.store import component_types


@api_bp.get("/component-types")
def list_component_types():
    return jsonify(component_types.list_component_types(get_conn()))


@api_bp.get("/component-types/<type_id>")
def get_component_type(type_id: str):
    return jsonify(component_types.get_component_type(get_conn(), type_id))


@api_bp.post("/component-types")
def create_component_type():
    return jsonify(component_types.create_component_type(get_conn(), json_body())), 201


@api_bp.patch("/component-types/<type_id>")
def update_component_type(type_id: str):
    return jsonify(component_types.update_component_type(get_conn(), type_id, json_body()))


@api_bp.delete("/component-types/<type_id>")
def delete_component_type(type_id: str):
    component_types.delete_component_type(get_conn(), type_id)
    return "", 204
