from __future__ import annotations

from flask import jsonify

from api import api_bp
from api.common import get_conn, json_body
from app.store import mosfet


@api_bp.get("/mosfet-boards")
def list_mosfet_boards():
    return jsonify(mosfet.list_mosfet_boards(get_conn()))


@api_bp.get("/mosfet-boards/<board_id>")
def get_mosfet_board(board_id: str):
    return jsonify(mosfet.get_mosfet_board(get_conn(), board_id))


@api_bp.post("/mosfet-boards")
def create_mosfet_board():
    return jsonify(mosfet.create_mosfet_board(get_conn(), json_body())), 201


@api_bp.patch("/mosfet-boards/<board_id>")
def update_mosfet_board(board_id: str):
    return jsonify(mosfet.update_mosfet_board(get_conn(), board_id, json_body()))


@api_bp.delete("/mosfet-boards/<board_id>")
def delete_mosfet_board(board_id: str):
    mosfet.delete_mosfet_board(get_conn(), board_id)
    return "", 204
