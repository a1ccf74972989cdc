from __future__ import annotations

from flask import jsonify

from api import api_bp
from api.common import flag, get_conn, json_body, query_args
from app.store import component_instances


@api_bp.get("/component-instances")
def list_instances():
    filters = query_args("panel_section_id", "component_type_id", "build_status")
    return jsonify(component_instances.list_instances(get_conn(), mapped=flag("mapped"), **filters))


@api_bp.get("/component-instances/map-data")
def instance_map_data():
    return jsonify(component_instances.map_data(get_conn()))


@api_bp.get("/component-instances/<instance_id>")
def get_instance(instance_id: str):
    return jsonify(component_instances.get_instance(get_conn(), instance_id))


@api_bp.post("/component-instances")
def create_instance():
    return jsonify(component_instances.create_instance(get_conn(), json_body())), 201


@api_bp.patch("/component-instances/<instance_id>")
def update_instance(instance_id: str):
    return jsonify(component_instances.update_instance(get_conn(), instance_id, json_body()))


@api_bp.delete("/component-instances/<instance_id>")
def delete_instance(instance_id: str):
    component_instances.delete_instance(get_conn(), instance_id)
    return "", 204
