from __future__ import annotations

from dataclasses import asdict

from flask import jsonify

from api import api_bp
from api.common import get_conn, json_body
from app.errors import BadRequestError
from app.store import psu
from calc_core.power_budget import SCENARIO_NAMES, connection_budget, evaluate_scenario, power_components


@api_bp.get("/power-budget")
def get_power_budget():
    return jsonify(connection_budget(get_conn()))


@api_bp.get("/power-budget/psu-config")
def get_psu_config():
    return jsonify(psu.get_psu_config(get_conn()))


@api_bp.patch("/power-budget/psu-config")
def patch_psu_config():
    return jsonify(psu.update_psu_config(get_conn(), json_body()))


@api_bp.get("/power-budget/components")
def get_power_components():
    return jsonify([asdict(c) for c in power_components(get_conn())])


@api_bp.post("/power-budget/scenario")
def post_scenario():
    body = json_body()
    name = body.get("scenario", "worst-case")
    if name not in SCENARIO_NAMES:
        raise BadRequestError("Validation failed: scenario must be one of: " + ", ".join(SCENARIO_NAMES))
    toggles = body.get("custom_toggles")
    if toggles is not None and not isinstance(toggles, dict):
        raise BadRequestError("Validation failed: custom_toggles must be an object")
    infra = body.get("infrastructure_current_ma", 0)
    if isinstance(infra, bool) or not isinstance(infra, (int, float)) or infra < 0:
        raise BadRequestError("Validation failed: infrastructure_current_ma must be >= 0")
    conn = get_conn()
    return jsonify(
        evaluate_scenario(
            power_components(conn),
            name,
            psu.get_psu_config(conn),
            custom_toggles=toggles,
            infrastructure_current_ma=float(infra),
        )
    )
