from __future__ import annotations

from flask import jsonify

from api import api_bp
from api.common import get_conn, json_body
from app.store import sections


@api_bp.get("/panel-sections")
def list_sections():
    return jsonify(sections.list_sections(get_conn()))


@api_bp.get("/panel-sections/summary")
def section_summary():
    return jsonify(sections.section_summary(get_conn()))


@api_bp.get("/panel-sections/<section_id>")
def get_section(section_id: str):
    return jsonify(sections.get_section(get_conn(), section_id))


@api_bp.post("/panel-sections")
def create_section():
    return jsonify(sections.create_section(get_conn(), json_body())), 201


@api_bp.patch("/panel-sections/<section_id>")
def update_section(section_id: str):
    return jsonify(sections.update_section(get_conn(), section_id, json_body()))


@api_bp.delete("/panel-sections/<section_id>")
def delete_section(section_id: str):
    sections.delete_section(get_conn(), section_id)
    return "", 204
