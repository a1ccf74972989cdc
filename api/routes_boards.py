from __future__ import annotations

from flask import jsonify

from api import api_bp
from api.common import get_conn, json_body
from app.store import boards


@api_bp.get("/boards")
def list_boards():
    return jsonify(boards.list_boards(get_conn()))


@api_bp.get("/boards/<board_id>")
def get_board(board_id: str):
    return jsonify(boards.get_board(get_conn(), board_id))


@api_bp.post("/boards")
def create_board():
    return jsonify(boards.create_board(get_conn(), json_body())), 201


@api_bp.patch("/boards/<board_id>")
def update_board(board_id: str):
    return jsonify(boards.update_board(get_conn(), board_id, json_body()))


@api_bp.delete("/boards/<board_id>")
def delete_board(board_id: str):
    boards.delete_board(get_conn(), board_id)
    return "", 204
