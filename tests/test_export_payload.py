from __future__ import annotations

import json

import pytest

from app.db import connect
from app.errors import BadRequestError
from app.store.component_instances import create_instance
from app.store.mobiflight import upsert_mapping
from app.store.mosfet import create_mosfet_board
from app.store.pins import create_pin, list_pins, update_pin
from app.store.sections import get_section
from calc_core.export_payload import EXPORT_KEYS, export_all, import_all, validate_payload
from conftest import board_id, section_id, type_id
from tools.manage_db import ensure_migrations


@pytest.fixture()
def empty_conn(tmp_path):
    path = tmp_path / "restore.sqlite"
    ensure_migrations(path)
    c = connect(path)
    try:
        yield c
    finally:
        c.close()


def _populate(conn) -> None:
    fuel = section_id(conn, "fuel")
    inst = create_instance(
        conn, {"name": "Low Press", "component_type_id": type_id(conn, "Annunciator"), "panel_section_id": fuel}
    )
    pin = create_pin(
        conn,
        {
            "board_id": board_id(conn),
            "pin_number": "D6",
            "pin_type": "DIGITAL",
            "component_instance_id": inst["id"],
            "power_rail": "TWENTY_SEVEN_V",
        },
    )
    mb = create_mosfet_board(conn, {"name": "MOSFET A", "channel_count": 2})
    update_pin(conn, pin["id"], {"mosfet_channel_id": mb["channels"][0]["id"]})
    upsert_mapping(conn, pin["id"], {"variable_name": "146_FUEL_LOW_PRESS_LIGHT", "config_params": {"on": 1}})


def test_export_shape(seeded_conn) -> None:
    _populate(seeded_conn)
    payload = export_all(seeded_conn)
    assert payload["metadata"]["version"] == "1.0"
    assert set(EXPORT_KEYS) <= set(payload)
    assert len(payload["panel_sections"]) == 12
    assert payload["boards"][0]["pwm_pins"] == list(range(2, 14))
    assert payload["panel_sections"][0]["owned"] is False
    assert payload["mobiflight_mappings"][0]["config_params"] == {"on": 1}
    json.dumps(payload)


def test_import_restores_everything(seeded_conn, empty_conn) -> None:
    _populate(seeded_conn)
    payload = json.loads(json.dumps(export_all(seeded_conn)))

    result = import_all(empty_conn, payload)
    assert result["success"] is True
    assert result["counts"]["panel_sections"] == 12
    assert result["counts"]["pin_assignments"] == 1
    assert result["counts"]["mosfet_channels"] == 2

    pins = list_pins(empty_conn)
    assert pins[0]["pin_number"] == "D6"
    assert pins[0]["mosfet_channel"]["mosfet_board"]["name"] == "MOSFET A"
    assert pins[0]["mobiflight_mapping"]["config_params"] == {"on": 1}
    assert get_section(empty_conn, section_id(empty_conn, "fuel"))["component_instances"][0]["name"] == "Low Press"


def test_import_replaces_existing_rows(seeded_conn) -> None:
    payload = export_all(seeded_conn)
    _populate(seeded_conn)
    import_all(seeded_conn, payload)
    assert list_pins(seeded_conn) == []
    assert seeded_conn.execute("SELECT COUNT(*) FROM mosfet_boards").fetchone()[0] == 0


def test_import_accepts_json_text_lists(conn) -> None:
    payload = {key: [] for key in EXPORT_KEYS}
    payload["boards"] = [{"id": "b1", "name": "Alpha", "pwm_pins": "[2, 3]"}]
    import_all(conn, payload)
    assert export_all(conn)["boards"][0]["pwm_pins"] == [2, 3]


def test_validate_payload() -> None:
    with pytest.raises(BadRequestError):
        validate_payload([])
    payload = {key: [] for key in EXPORT_KEYS}
    validate_payload(payload)
    del payload["journal_entries"]
    with pytest.raises(BadRequestError) as exc:
        validate_payload(payload)
    assert exc.value.message == 'Import data missing or invalid "journal_entries" array'


def test_import_integrity_error_rolls_back(seeded_conn) -> None:
    payload = {key: [] for key in EXPORT_KEYS}
    payload["pin_assignments"] = [{"id": "p1", "board_id": "missing", "pin_number": "D1", "pin_type": "DIGITAL"}]
    with pytest.raises(BadRequestError):
        import_all(seeded_conn, payload)
    assert seeded_conn.execute("SELECT COUNT(*) FROM panel_sections").fetchone()[0] == 12


@pytest.mark.parametrize("record", [{}, {"name": "Beta"}, {"id": ""}])
def test_import_rejects_records_without_id(seeded_conn, record) -> None:
    payload = {key: [] for key in EXPORT_KEYS}
    payload["boards"] = [record]
    with pytest.raises(BadRequestError) as exc:
        import_all(seeded_conn, payload)
    assert exc.value.message == 'Import data "boards" has a record without an id'
    assert seeded_conn.execute("SELECT COUNT(*) FROM boards").fetchone()[0] == 1
