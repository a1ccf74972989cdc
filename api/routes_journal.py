from __future__ import annotations

from flask import jsonify

from api import api_bp
from api.common import get_conn, json_body, query_args
from app.store import journal


@api_bp.get("/journal")
def list_journal():
    filters = query_args("panel_section_id", "component_instance_id", "search", "date_from", "date_to")
    return jsonify(journal.list_entries(get_conn(), **filters))


@api_bp.get("/journal/<entry_id>")
def get_journal_entry(entry_id: str):
    return jsonify(journal.get_entry(get_conn(), entry_id))


@api_bp.post("/journal")
def create_journal_entry():
    return jsonify(journal.create_entry(get_conn(), json_body())), 201


@api_bp.patch("/journal/<entry_id>")
def update_journal_entry(entry_id: str):
    return jsonify(journal.update_entry(get_conn(), entry_id, json_body()))


@api_bp.delete("/journal/<entry_id>")
def delete_journal_entry(entry_id: str):
    journal.delete_entry(get_conn(), entry_id)
    return "", 204
