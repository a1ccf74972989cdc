from __future__ import annotations

from flask import jsonify

from api import api_bp
from api.common import get_conn
from calc_core.wiring import wiring_diagram


@api_bp.get("/wiring-diagram/<section_id>")
def get_wiring_diagram(section_id: str):
    return jsonify(wiring_diagram(get_conn(), section_id))
