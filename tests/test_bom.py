from __future__ import annotations

import pytest

from app.errors import ConflictError, NotFoundError
from app.store.component_instances import create_instance
from app.store.mosfet import create_mosfet_board
from app.store.pins import create_pin, list_pins
from calc_core.bom import BoardSlots, apply_bom, calculate_bom, primary_pin_type
from conftest import board_id, section_id, type_id


def _fuel_panel(conn) -> str:
    fuel = section_id(conn, "fuel")
    for name, type_name in (("Fuel Qty", "Gauge"), ("Low Press", "Annunciator"), ("Trim Pot", "Potentiometer")):
        create_instance(
            conn, {"name": name, "component_type_id": type_id(conn, type_name), "panel_section_id": fuel}
        )
    return fuel


def _allocated(result) -> dict[str, list[str]]:
    return {
        c["name"]: [pin for a in c["allocations"] for pin in a["pins"]]
        for c in result["components"]
    }


def test_primary_pin_type() -> None:
    assert primary_pin_type(["ANY", "ANALOG"]) == "ANALOG"
    assert primary_pin_type(["ANY"]) == "DIGITAL"
    assert primary_pin_type(None) == "DIGITAL"


def test_board_slots_skip_used_pins() -> None:
    board = BoardSlots("b1", "Alpha", 54, 16, [2, 3, 4], used={"D0", "D2", "A0"})
    assert board.free_pins("DIGITAL", False, 2) == ["D1", "D3"]
    assert board.free_pins("DIGITAL", True, 5) == ["D3", "D4"]
    assert board.free_pins("ANALOG", False, 1) == ["A1"]


def test_calculate_allocates_in_sort_order(seeded_conn) -> None:
    fuel = _fuel_panel(seeded_conn)
    result = calculate_bom(seeded_conn, fuel)
    assert result["section_name"] == "Fuel"
    assert _allocated(result) == {"Fuel Qty": ["D0", "D1"], "Low Press": ["D2"], "Trim Pot": ["A0"]}
    assert result["new_boards_needed"] == 0
    assert result["mosfet_channels_needed"] == 1
    assert result["mosfet_channels_available"] == 0
    assert list_pins(seeded_conn) == []


def test_calculate_skips_taken_pins_and_counts_mosfets(seeded_conn) -> None:
    fuel = _fuel_panel(seeded_conn)
    create_pin(seeded_conn, {"board_id": board_id(seeded_conn), "pin_number": "D0", "pin_type": "DIGITAL"})
    create_mosfet_board(seeded_conn, {"name": "MOSFET A", "channel_count": 4})
    result = calculate_bom(seeded_conn, fuel)
    assert _allocated(result)["Fuel Qty"] == ["D1", "D2"]
    assert result["mosfet_channels_available"] == 4


def test_calculate_reports_new_boards(seeded_conn) -> None:
    seeded_conn.execute("UPDATE boards SET analog_pin_count = 0")
    seeded_conn.commit()
    fuel = _fuel_panel(seeded_conn)
    result = calculate_bom(seeded_conn, fuel)
    assert _allocated(result)["Trim Pot"] == []
    assert result["new_boards_needed"] == 1


def test_calculate_unknown_section(seeded_conn) -> None:
    with pytest.raises(NotFoundError):
        calculate_bom(seeded_conn, "missing")


def test_apply_creates_planned_pins(seeded_conn) -> None:
    fuel = _fuel_panel(seeded_conn)
    result = calculate_bom(seeded_conn, fuel)
    applied = apply_bom(seeded_conn, result)
    assert applied["total_pins_created"] == 4
    pins = {p["pin_number"]: p for p in list_pins(seeded_conn)}
    assert set(pins) == {"D0", "D1", "D2", "A0"}
    assert pins["D0"]["wiring_status"] == "PLANNED"
    assert pins["D0"]["pin_mode"] == "OUTPUT"
    assert pins["D0"]["power_rail"] == "NINE_V"
    assert pins["D0"]["description"] == "Auto-assigned for Fuel Qty"
    assert pins["D2"]["power_rail"] == "TWENTY_SEVEN_V"
    assert pins["A0"]["pin_type"] == "ANALOG"

    again = calculate_bom(seeded_conn, fuel)
    assert all(c["pins_needed"] == 0 for c in again["components"])


def test_apply_stale_result_conflicts(seeded_conn) -> None:
    fuel = _fuel_panel(seeded_conn)
    result = calculate_bom(seeded_conn, fuel)
    apply_bom(seeded_conn, result)
    with pytest.raises(ConflictError):
        apply_bom(seeded_conn, result)
    assert len(list_pins(seeded_conn)) == 4
