from __future__ import annotations

import pytest

from app.errors import BadRequestError
from app.store.component_instances import create_instance
from app.store.mosfet import create_mosfet_board
from app.store.pins import create_pin, update_pin
from app.store.psu import get_psu_config, update_psu_config
from calc_core.power_budget import (
    PowerComponent,
    activation,
    connection_budget,
    evaluate_scenario,
    get_scenario,
    power_components,
    psu_demand,
    rail_currents_ma,
    utilization_level,
)
from conftest import board_id, section_id, type_id


def _comp(type_name: str, rail: str, current: float, section: str = "s1") -> PowerComponent:
    return PowerComponent(
        instance_id=f"{type_name}-{section}",
        instance_name=type_name,
        component_type_name=type_name,
        panel_section_id=section,
        panel_section_name=section,
        power_rail=rail,
        typical_current_ma=current,
    )


GAUGE = _comp("Gauge", "NINE_V", 20)
ANNUNCIATOR = _comp("Annunciator", "TWENTY_SEVEN_V", 80, section="s2")
BUTTON = _comp("Illuminated Pushbutton", "FIVE_V", 25)


def test_activation_rules() -> None:
    cruise = get_scenario("cruise")
    assert activation(ANNUNCIATOR, cruise) == 0.1
    assert activation(_comp("Toggle Switch", "NONE", 0), cruise) == 0.0
    cold = get_scenario("cold-dark")
    assert activation(BUTTON, cold) == 1.0
    assert activation(GAUGE, cold) == 0.0
    assert activation(GAUGE, get_scenario("worst-case")) == 1.0
    custom = get_scenario("custom")
    assert activation(GAUGE, custom, {"s1": True}) == 1.0
    assert activation(ANNUNCIATOR, custom, {"s1": True}) == 0.0


def test_unknown_scenario() -> None:
    with pytest.raises(ValueError):
        get_scenario("takeoff")


def test_rail_currents_skip_none_rail() -> None:
    comps = [GAUGE, ANNUNCIATOR, BUTTON, _comp("Toggle Switch", "NONE", 10)]
    currents = rail_currents_ma(comps, get_scenario("worst-case"))
    assert currents == {"NINE_V": 20, "TWENTY_SEVEN_V": 80, "FIVE_V": 25}


def test_psu_demand_applies_converter_efficiency() -> None:
    demand = psu_demand({"NINE_V": 1000, "TWENTY_SEVEN_V": 1000}, 0.9, infrastructure_current_ma=900)
    assert demand["per_rail"]["NINE_V"]["watts"] == pytest.approx(9.0)
    assert demand["per_rail"]["NINE_V"]["psu_draw_watts"] == pytest.approx(10.0)
    assert demand["per_rail"]["TWENTY_SEVEN_V"]["psu_draw_watts"] == pytest.approx(28.0)
    assert demand["total_watts"] == pytest.approx(10.0 + 28.0 + 5.0)


def test_utilization_levels() -> None:
    assert utilization_level(10, 100) == "green"
    assert utilization_level(70, 100) == "amber"
    assert utilization_level(90, 100) == "amber"
    assert utilization_level(91, 100) == "red"
    assert utilization_level(1, 0) == "red"


def test_evaluate_scenario() -> None:
    result = evaluate_scenario([GAUGE, ANNUNCIATOR], "cruise", {"capacity_watts": 100, "converter_efficiency": 1.0})
    assert result["rail_currents_ma"] == {"NINE_V": 20, "TWENTY_SEVEN_V": pytest.approx(8.0)}
    assert result["total_watts"] == pytest.approx(0.18 + 0.224)
    assert result["level"] == "green"
    assert result["utilization"] == pytest.approx(result["total_watts"] / 100)


def test_power_components_use_effective_rail(seeded_conn) -> None:
    fuel = section_id(seeded_conn, "fuel")
    create_instance(
        seeded_conn, {"name": "Fuel Qty", "component_type_id": type_id(seeded_conn, "Gauge"), "panel_section_id": fuel}
    )
    create_instance(
        seeded_conn,
        {
            "name": "Dim Gauge",
            "component_type_id": type_id(seeded_conn, "Gauge"),
            "panel_section_id": fuel,
            "power_rail": "FIVE_V",
        },
    )
    comps = {c.instance_name: c for c in power_components(seeded_conn)}
    assert comps["Fuel Qty"].power_rail == "NINE_V"
    assert comps["Dim Gauge"].power_rail == "FIVE_V"
    assert comps["Fuel Qty"].typical_current_ma == 20


def test_connection_budget(seeded_conn) -> None:
    fuel = section_id(seeded_conn, "fuel")
    inst = create_instance(
        seeded_conn,
        {"name": "Low Press", "component_type_id": type_id(seeded_conn, "Annunciator"), "panel_section_id": fuel},
    )
    pin = create_pin(
        seeded_conn,
        {
            "board_id": board_id(seeded_conn),
            "pin_number": "D4",
            "pin_type": "DIGITAL",
            "component_instance_id": inst["id"],
            "power_rail": "TWENTY_SEVEN_V",
        },
    )
    mb = create_mosfet_board(seeded_conn, {"name": "MOSFET A", "channel_count": 2})
    update_pin(seeded_conn, pin["id"], {"mosfet_channel_id": mb["channels"][1]["id"]})

    budget = connection_budget(seeded_conn)
    rails = {r["rail"]: r for r in budget["rails"]}
    assert rails["TWENTY_SEVEN_V"]["total_connections"] == 1
    assert rails["TWENTY_SEVEN_V"]["by_section"] == [{"section_id": fuel, "section_name": "Fuel", "count": 1}]
    assert rails["FIVE_V"]["total_connections"] == 0
    board = budget["mosfet_boards"][0]
    assert board["used_channels"] == 1
    assert board["free_channels"] == 1
    assert board["channels"][1]["pin_assignment"] == {"pin_number": "D4", "component_name": "Low Press"}


def test_psu_config_update(seeded_conn) -> None:
    assert get_psu_config(seeded_conn)["capacity_watts"] == 350
    updated = update_psu_config(seeded_conn, {"capacity_watts": 500, "converter_efficiency": 0.9})
    assert updated["capacity_watts"] == 500
    assert updated["converter_efficiency"] == 0.9
    with pytest.raises(BadRequestError):
        update_psu_config(seeded_conn, {"converter_efficiency": 1.5})
