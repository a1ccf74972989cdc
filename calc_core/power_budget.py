"""
Power budget.

Two views over the same data:
- connection_budget(): how many assigned pins sit on each rail, per section,
  plus MOSFET channel usage (read from SQLite).
- scenario math (pure): per-rail current for an operating scenario and the
  resulting PSU demand. The 27V rail is fed directly by the PSU; 5V and 9V go
  through a step-down converter, so their draw is divided by its efficiency.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from app.domain import POWER_RAILS, RAIL_VOLTAGES, rail_label
from app.store.component_instances import effective_rail
from app.store.mosfet import list_mosfet_boards

SCENARIO_NAMES = ("worst-case", "cold-dark", "cruise", "emergency", "custom")

INFRASTRUCTURE_VOLTAGE = 5.0
AMBER_THRESHOLD = 0.7
RED_THRESHOLD = 0.9


@dataclass(frozen=True)
class Scenario:
    name: str
    label: str
    default: float
    by_type_name: Mapping[str, float] = field(default_factory=dict)
    by_rail: Mapping[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class PowerComponent:
    instance_id: str
    instance_name: str
    component_type_name: str
    panel_section_id: str
    panel_section_name: str
    power_rail: str
    typical_current_ma: float
    standby_current_ma: float = 0.0


SCENARIOS: tuple[Scenario, ...] = (
    Scenario("worst-case", "Worst Case", 1.0),
    Scenario(
        "cold-dark",
        "Cold & Dark",
        0.0,
        by_rail={"FIVE_V": 1.0, "NINE_V": 0.0, "TWENTY_SEVEN_V": 0.0},
    ),
    Scenario(
        "cruise",
        "Cruise",
        0.0,
        by_type_name={"Gauge": 1.0, "Annunciator": 0.1, "Illuminated Pushbutton": 1.0},
    ),
    Scenario(
        "emergency",
        "Emergency",
        0.0,
        by_type_name={"Gauge": 1.0, "Annunciator": 0.8, "Illuminated Pushbutton": 1.0},
    ),
    Scenario("custom", "Custom", 0.0),
)


def get_scenario(name: str) -> Scenario:
    for scenario in SCENARIOS:
        if scenario.name == name:
            return scenario
    raise ValueError(f"Unknown scenario: {name}")


def activation(
    component: PowerComponent,
    scenario: Scenario,
    custom_toggles: Mapping[str, bool] | None = None,
) -> float:
    if scenario.name == "custom" and custom_toggles is not None:
        return 1.0 if custom_toggles.get(component.panel_section_id) else 0.0
    if component.component_type_name in scenario.by_type_name:
        return scenario.by_type_name[component.component_type_name]
    if component.power_rail in scenario.by_rail:
        return scenario.by_rail[component.power_rail]
    return scenario.default


def rail_currents_ma(
    components: Iterable[PowerComponent],
    scenario: Scenario,
    custom_toggles: Mapping[str, bool] | None = None,
) -> dict[str, float]:
    currents: dict[str, float] = {}
    for comp in components:
        if comp.power_rail == "NONE" or not comp.typical_current_ma:
            continue
        current = comp.typical_current_ma * activation(comp, scenario, custom_toggles)
        currents[comp.power_rail] = currents.get(comp.power_rail, 0.0) + current
    return currents


def psu_demand(
    rail_currents: Mapping[str, float],
    efficiency: float,
    infrastructure_current_ma: float = 0.0,
) -> dict[str, Any]:
    per_rail: dict[str, dict[str, float]] = {}
    total = 0.0
    for rail, current_ma in rail_currents.items():
        voltage = RAIL_VOLTAGES.get(rail, 0.0)
        watts = current_ma * voltage / 1000
        psu_draw = watts if rail == "TWENTY_SEVEN_V" else watts / efficiency
        per_rail[rail] = {
            "watts": watts,
            "current_ma": current_ma,
            "voltage": voltage,
            "psu_draw_watts": psu_draw,
        }
        total += psu_draw
    if infrastructure_current_ma > 0:
        total += (infrastructure_current_ma * INFRASTRUCTURE_VOLTAGE / 1000) / efficiency
    return {"total_watts": total, "per_rail": per_rail}


def utilization_level(demand_watts: float, capacity_watts: float) -> str:
    if capacity_watts <= 0:
        return "red"
    ratio = demand_watts / capacity_watts
    if ratio > RED_THRESHOLD:
        return "red"
    if ratio >= AMBER_THRESHOLD:
        return "amber"
    return "green"


def evaluate_scenario(
    components: Iterable[PowerComponent],
    scenario_name: str,
    psu: Mapping[str, Any],
    *,
    custom_toggles: Mapping[str, bool] | None = None,
    infrastructure_current_ma: float = 0.0,
) -> dict[str, Any]:
    """Rail currents, PSU demand and utilization for one scenario in one call."""
    scenario = get_scenario(scenario_name)
    currents = rail_currents_ma(components, scenario, custom_toggles)
    demand = psu_demand(currents, float(psu["converter_efficiency"]), infrastructure_current_ma)
    capacity = float(psu["capacity_watts"])
    return {
        "scenario": scenario.name,
        "label": scenario.label,
        "rail_currents_ma": currents,
        "total_watts": demand["total_watts"],
        "per_rail": demand["per_rail"],
        "capacity_watts": capacity,
        "utilization": demand["total_watts"] / capacity if capacity > 0 else None,
        "level": utilization_level(demand["total_watts"], capacity),
    }


def power_components(conn: sqlite3.Connection) -> list[PowerComponent]:
    rows = conn.execute(
        """
        SELECT
          ci.id, ci.name, ci.power_rail, ci.panel_section_id,
          ps.name AS section_name,
          ct.name AS type_name, ct.default_power_rail,
          ct.typical_current_ma, ct.standby_current_ma
        FROM component_instances ci
        JOIN component_types ct ON ct.id = ci.component_type_id
        JOIN panel_sections ps ON ps.id = ci.panel_section_id
        ORDER BY ps.sort_order, ci.sort_order, ci.name
        """
    ).fetchall()
    return [
        PowerComponent(
            instance_id=r["id"],
            instance_name=r["name"],
            component_type_name=r["type_name"],
            panel_section_id=r["panel_section_id"],
            panel_section_name=r["section_name"],
            power_rail=effective_rail(r["power_rail"], r["default_power_rail"]),
            typical_current_ma=float(r["typical_current_ma"] or 0),
            standby_current_ma=float(r["standby_current_ma"] or 0),
        )
        for r in rows
    ]


def connection_budget(conn: sqlite3.Connection) -> dict[str, Any]:
    rails: dict[str, dict[str, Any]] = {rail: {"total": 0, "by_section": {}} for rail in POWER_RAILS}
    rows = conn.execute(
        """
        SELECT pa.power_rail, ci.panel_section_id AS section_id, ps.name AS section_name
        FROM pin_assignments pa
        JOIN component_instances ci ON ci.id = pa.component_instance_id
        JOIN panel_sections ps ON ps.id = ci.panel_section_id
        """
    ).fetchall()
    for r in rows:
        bucket = rails[r["power_rail"]]
        bucket["total"] += 1
        section = bucket["by_section"].setdefault(
            r["section_id"],
            {"section_id": r["section_id"], "section_name": r["section_name"], "count": 0},
        )
        section["count"] += 1

    mosfet_boards = []
    for board in list_mosfet_boards(conn):
        mosfet_boards.append(
            {
                "id": board["id"],
                "name": board["name"],
                "channel_count": board["channel_count"],
                "used_channels": board["used_channels"],
                "free_channels": board["channel_count"] - board["used_channels"],
                "channels": [
                    {
                        "channel_number": ch["channel_number"],
                        "pin_assignment": (
                            {
                                "pin_number": ch["pin_assignment"]["pin_number"],
                                "component_name": (ch["pin_assignment"]["component_instance"] or {}).get("name"),
                            }
                            if ch["pin_assignment"]
                            else None
                        ),
                    }
                    for ch in board["channels"]
                ],
            }
        )

    return {
        "rails": [
            {
                "rail": rail,
                "label": rail_label(rail),
                "total_connections": data["total"],
                "by_section": list(data["by_section"].values()),
            }
            for rail, data in rails.items()
        ],
        "mosfet_boards": mosfet_boards,
    }
