from __future__ import annotations

from pathlib import Path

import pytest

from app.errors import NotFoundError
from app.store.component_instances import create_instance
from app.store.pins import create_pin
from calc_core.lvar_reference import LvarReference, load_reference, tokenize
from conftest import board_id, section_id, type_id

LVAR_FILE = Path(__file__).resolve().parents[1] / "data" / "bae146_ovhd_lvars.json"


@pytest.fixture()
def ref() -> LvarReference:
    return load_reference(LVAR_FILE)


def test_tokenize() -> None:
    assert tokenize("Fuel Pump L-Inner") == ["fuel", "pump", "inner"]


def test_sections_skip_metadata(ref: LvarReference) -> None:
    sections = ref.sections()
    assert len(sections) == 10
    assert sum(s["count"] for s in sections) == 62
    assert {"code": "overhead_fuel", "label": "Fuel", "count": 8} in sections


def test_search(ref: LvarReference) -> None:
    names = [e.name for e in ref.search("xfeed")]
    assert names == ["146_FUEL_XFEED_VALVE", "146_FUEL_XFEED_LIGHT"]
    assert ref.search("") == []
    assert [e.name for e in ref.search("master", "overhead_apu")] == ["146_APU_MASTER_SWITCH"]


def test_suggest_ranks_by_token_hits(ref: LvarReference) -> None:
    names = [e.name for e in ref.suggest("Xfeed Light", "fuel")]
    assert names == ["146_FUEL_XFEED_LIGHT", "146_FUEL_XFEED_VALVE", "146_FUEL_LOW_PRESS_LIGHT"]


def test_suggest_fallbacks(ref: LvarReference) -> None:
    assert len(ref.suggest("X", "fuel")) == 8
    assert len(ref.suggest("?", "fan")) == 10
    assert all(e.section_code == "overhead_apu" for e in ref.suggest("APU master", "apu"))


def test_inline_reference() -> None:
    ref = LvarReference({"_metadata": {}, "a": {"label": "A", "lvars": ["X_ONE", "X_TWO"]}})
    assert [e.to_dict() for e in ref.section_entries("a")][0] == {
        "name": "X_ONE",
        "section_code": "a",
        "section_label": "A",
    }
    assert ref.section_entries("b") == []


def test_suggest_for_pin(seeded_conn, ref: LvarReference) -> None:
    inst = create_instance(
        seeded_conn,
        {
            "name": "Xfeed Light",
            "component_type_id": type_id(seeded_conn, "Annunciator"),
            "panel_section_id": section_id(seeded_conn, "fuel"),
        },
    )
    pin = create_pin(
        seeded_conn,
        {"board_id": board_id(seeded_conn), "pin_number": "D7", "pin_type": "DIGITAL", "component_instance_id": inst["id"]},
    )
    spare = create_pin(seeded_conn, {"board_id": board_id(seeded_conn), "pin_number": "D8", "pin_type": "DIGITAL"})
    assert ref.suggest_for_pin(seeded_conn, pin["id"])[0].name == "146_FUEL_XFEED_LIGHT"
    assert ref.suggest_for_pin(seeded_conn, spare["id"]) == []
    with pytest.raises(NotFoundError):
        ref.suggest_for_pin(seeded_conn, "missing")
