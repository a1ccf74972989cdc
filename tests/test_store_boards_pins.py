from __future__ import annotations

import pytest

from app.errors import BadRequestError, ConflictError, NotFoundError
from app.store.boards import create_board, delete_board, get_board, list_boards, pin_availability
from app.store.component_instances import create_instance
from app.store.mosfet import create_mosfet_board, delete_mosfet_board, get_mosfet_board, update_mosfet_board
from app.store.pins import bulk_update_pins, create_pin, delete_pin, get_pin, list_pins, update_pin
from conftest import board_id, section_id, type_id


def _pin(conn, number: str, **extra):
    data = {
        "board_id": board_id(conn),
        "pin_number": number,
        "pin_type": "ANALOG" if number.startswith("A") else "DIGITAL",
    }
    data.update(extra)
    return create_pin(conn, data)


def _instance(conn, name: str, type_name: str = "Toggle Switch", slug: str = "fuel"):
    return create_instance(
        conn,
        {"name": name, "component_type_id": type_id(conn, type_name), "panel_section_id": section_id(conn, slug)},
    )


def test_pin_availability_counts() -> None:
    board = {"digital_pin_count": 54, "analog_pin_count": 16, "pwm_pins": [2, 3]}
    used = [
        {"pin_type": "DIGITAL", "pin_mode": "INPUT"},
        {"pin_type": "DIGITAL", "pin_mode": "PWM"},
        {"pin_type": "ANALOG", "pin_mode": "INPUT"},
    ]
    assert pin_availability(board, used) == {
        "digital_used": 2,
        "digital_free": 52,
        "analog_used": 1,
        "analog_free": 15,
        "pwm_free": 1,
    }


def test_board_defaults_and_name_conflict(conn) -> None:
    board = create_board(conn, {"name": "Beta"})
    assert board["digital_pin_count"] == 54
    assert board["analog_pin_count"] == 16
    assert board["pwm_pins"] == list(range(2, 14))
    with pytest.raises(ConflictError):
        create_board(conn, {"name": "Beta"})


def test_create_pin_and_natural_order(seeded_conn) -> None:
    for number in ("A1", "D10", "D2"):
        _pin(seeded_conn, number)
    pins = list_pins(seeded_conn)
    assert [p["pin_number"] for p in pins] == ["D2", "D10", "A1"]
    assert pins[0]["board"]["name"] == "Alpha"
    assert pins[0]["component_instance"] is None
    assert pins[0]["wiring_status"] == "UNASSIGNED"


def test_duplicate_pin_conflicts(seeded_conn) -> None:
    _pin(seeded_conn, "D5")
    with pytest.raises(ConflictError) as exc:
        _pin(seeded_conn, "D5")
    assert exc.value.message == "Pin D5 is already assigned on board Alpha"


def test_pin_beyond_board_capacity(seeded_conn) -> None:
    with pytest.raises(BadRequestError) as exc:
        _pin(seeded_conn, "D60")
    assert exc.value.message == "Pin D60 exceeds board capacity (54 digital pins)"


def test_pin_type_must_match_prefix(seeded_conn) -> None:
    with pytest.raises(BadRequestError):
        _pin(seeded_conn, "D7", pin_type="ANALOG")


def test_pin_unknown_instance(seeded_conn) -> None:
    with pytest.raises(BadRequestError):
        _pin(seeded_conn, "D7", component_instance_id="missing")


def test_list_pins_filters(seeded_conn) -> None:
    inst = _instance(seeded_conn, "Crossfeed Switch")
    _pin(seeded_conn, "D22", component_instance_id=inst["id"], power_rail="FIVE_V", description="crossfeed")
    _pin(seeded_conn, "D23")
    assert [p["pin_number"] for p in list_pins(seeded_conn, {"assigned": "true"})] == ["D22"]
    assert [p["pin_number"] for p in list_pins(seeded_conn, {"assigned": "false"})] == ["D23"]
    assert [p["pin_number"] for p in list_pins(seeded_conn, {"power_rail": "FIVE_V"})] == ["D22"]
    assert [p["pin_number"] for p in list_pins(seeded_conn, {"search": "CROSSFEED"})] == ["D22"]
    assert [
        p["pin_number"] for p in list_pins(seeded_conn, {"panel_section_id": section_id(seeded_conn, "fuel")})
    ] == ["D22"]
    with pytest.raises(BadRequestError):
        list_pins(seeded_conn, {"wiring_status": "DONE"})


def test_list_pins_search_is_literal(seeded_conn) -> None:
    _pin(seeded_conn, "D24", description="spare_1")
    _pin(seeded_conn, "D25", description="spare 100%")
    _pin(seeded_conn, "D26", description="spare")
    assert [p["pin_number"] for p in list_pins(seeded_conn, {"search": "_"})] == ["D24"]
    assert [p["pin_number"] for p in list_pins(seeded_conn, {"search": "%"})] == ["D25"]
    assert [p["pin_number"] for p in list_pins(seeded_conn, {"search": "spare"})] == ["D24", "D25", "D26"]


def test_board_availability_counts_assigned_pins(seeded_conn) -> None:
    inst = _instance(seeded_conn, "Crossfeed Switch")
    _pin(seeded_conn, "D3", component_instance_id=inst["id"])
    _pin(seeded_conn, "D40")
    board = get_board(seeded_conn, board_id(seeded_conn))
    assert board["pin_availability"]["digital_used"] == 1
    assert board["pin_availability"]["pwm_free"] == 12
    assert len(board["pin_assignments"]) == 2
    assert list_boards(seeded_conn)[0]["pin_availability"]["digital_free"] == 53

    _pin(seeded_conn, "D5", component_instance_id=inst["id"], pin_mode="PWM")
    avail = list_boards(seeded_conn)[0]["pin_availability"]
    assert avail["pwm_free"] == 11
    assert avail["digital_used"] == 2


def test_board_delete_blocked_by_pins(seeded_conn) -> None:
    pin = _pin(seeded_conn, "D9")
    with pytest.raises(ConflictError):
        delete_board(seeded_conn, board_id(seeded_conn))
    delete_pin(seeded_conn, pin["id"])
    delete_board(seeded_conn, board_id(seeded_conn))
    with pytest.raises(NotFoundError):
        get_board(seeded_conn, pin["board_id"])


def test_bulk_update(seeded_conn) -> None:
    ids = [_pin(seeded_conn, n)["id"] for n in ("D30", "D31")]
    assert bulk_update_pins(seeded_conn, {"ids": ids, "data": {"wiring_status": "TESTED"}}) == {"updated": 2}
    assert {get_pin(seeded_conn, i)["wiring_status"] for i in ids} == {"TESTED"}
    with pytest.raises(NotFoundError) as exc:
        bulk_update_pins(seeded_conn, {"ids": [ids[0], "nope"], "data": {"wiring_status": "WIRED"}})
    assert exc.value.message == "Pin assignments not found: nope"


def test_mosfet_channel_exclusive(seeded_conn) -> None:
    mb = create_mosfet_board(seeded_conn, {"name": "MOSFET A", "channel_count": 4})
    assert [c["channel_number"] for c in mb["channels"]] == [1, 2, 3, 4]
    channel_id = mb["channels"][0]["id"]

    first = _pin(seeded_conn, "D44")
    second = _pin(seeded_conn, "D45")
    updated = update_pin(seeded_conn, first["id"], {"mosfet_channel_id": channel_id})
    assert updated["mosfet_channel"]["channel_number"] == 1
    assert updated["mosfet_channel"]["mosfet_board"]["name"] == "MOSFET A"
    with pytest.raises(ConflictError):
        update_pin(seeded_conn, second["id"], {"mosfet_channel_id": channel_id})
    with pytest.raises(BadRequestError):
        update_pin(seeded_conn, second["id"], {"mosfet_channel_id": "missing"})

    board = get_mosfet_board(seeded_conn, mb["id"])
    assert board["used_channels"] == 1
    assert board["free_channels"] == 3
    assert board["channels"][0]["pin_assignment"]["pin_number"] == "D44"


def test_mosfet_resize_and_delete_rules(seeded_conn) -> None:
    mb = create_mosfet_board(seeded_conn, {"name": "MOSFET B"})
    assert len(mb["channels"]) == 8
    resized = update_mosfet_board(seeded_conn, mb["id"], {"channel_count": 6})
    assert [c["channel_number"] for c in resized["channels"]] == [1, 2, 3, 4, 5, 6]

    pin = _pin(seeded_conn, "D46")
    update_pin(seeded_conn, pin["id"], {"mosfet_channel_id": resized["channels"][0]["id"]})
    with pytest.raises(ConflictError):
        update_mosfet_board(seeded_conn, mb["id"], {"channel_count": 8})
    with pytest.raises(ConflictError):
        delete_mosfet_board(seeded_conn, mb["id"])
    assert update_mosfet_board(seeded_conn, mb["id"], {"name": "MOSFET B2"})["name"] == "MOSFET B2"

    update_pin(seeded_conn, pin["id"], {"mosfet_channel_id": None})
    delete_mosfet_board(seeded_conn, mb["id"])
    with pytest.raises(NotFoundError):
        get_mosfet_board(seeded_conn, mb["id"])
