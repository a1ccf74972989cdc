"""Payload validators: message text and grid row checks."""
from __future__ import annotations

import pandas as pd
import pytest

from app.errors import BadRequestError, raise_for_errors
from app.validation import (
    validate_board,
    validate_bulk_pin_update,
    validate_component_instance,
    validate_component_type,
    validate_panel_section,
    validate_pin_assignment,
    validate_pin_filters,
    validate_pin_rows,
    validate_psu_config,
)


def test_board_requires_name() -> None:
    assert validate_board({}) == ["name is required"]
    assert validate_board({"name": "Beta"}) == []


def test_board_partial_skips_required() -> None:
    assert validate_board({"notes": "spare"}, partial=True) == []


def test_pin_number_format() -> None:
    errors = validate_pin_assignment({"board_id": "b1", "pin_number": "X5", "pin_type": "DIGITAL"})
    assert "Pin must be D0-D53 or A0-A15" in errors
    assert validate_pin_assignment({"board_id": "b1", "pin_number": "A15", "pin_type": "ANALOG"}) == []


def test_pin_type_choice() -> None:
    errors = validate_pin_assignment({"board_id": "b1", "pin_number": "D2", "pin_type": "SERIAL"})
    assert errors == ["pin_type must be one of: DIGITAL, ANALOG"]


def test_section_slug_format() -> None:
    errors = validate_panel_section({"name": "Fuel", "slug": "Fuel Panel"})
    assert errors == ["slug must contain only lowercase letters, digits and hyphens"]


def test_section_lineage_urls() -> None:
    errors = validate_panel_section(
        {"name": "Fuel", "slug": "fuel", "lineage_urls": ["https://example.org/e3232", "ftp://x"]}
    )
    assert errors == ["lineage_urls must contain valid http(s) URLs"]


def test_section_region_bounds() -> None:
    errors = validate_panel_section({"svg_x": 120}, partial=True)
    assert errors == ["svg_x must be between 0 and 100"]


def test_component_type_lists() -> None:
    errors = validate_component_type(
        {"name": "Gauge", "default_pin_count": 2, "pin_types": ["DIGITAL", "SERIAL"]}
    )
    assert errors == ["pin_types must be one of: DIGITAL, ANALOG, ANY"]
    assert validate_component_type({"name": "Gauge", "default_pin_count": 0}) == [
        "default_pin_count must be between 1 and 20"
    ]


def test_component_instance_requires_links() -> None:
    errors = validate_component_instance({"name": "Fuel Pump L"})
    assert "component_type_id is required" in errors
    assert "panel_section_id is required" in errors


def test_bulk_update_needs_ids() -> None:
    errors = validate_bulk_pin_update({"ids": [], "data": {"wiring_status": "WIRED"}})
    assert errors == ["ids must be a non-empty list of ids"]
    assert validate_bulk_pin_update({"ids": ["p1"], "data": {"wiring_status": "DONE"}}) == [
        "wiring_status must be one of: UNASSIGNED, PLANNED, WIRED, TESTED, COMPLETE"
    ]


def test_pin_filters_assigned_flag() -> None:
    assert validate_pin_filters({"assigned": "yes"}) == ["assigned must be 'true' or 'false'"]
    assert validate_pin_filters({"assigned": "false", "power_rail": "NINE_V"}) == []


def test_psu_efficiency_range() -> None:
    assert validate_psu_config({"converter_efficiency": 0.3}) == [
        "converter_efficiency must be between 0.5 and 1.0"
    ]
    assert validate_psu_config({"capacity_watts": 0}) == ["capacity_watts must be > 0"]


def test_translator_is_used() -> None:
    errors = validate_board({}, translator=lambda key, **kw: f"<{key}:{kw['field']}>")
    assert errors == ["<validation.field_required:name>"]


def test_raise_for_errors_joins_messages() -> None:
    with pytest.raises(BadRequestError) as exc:
        raise_for_errors(["name is required", "slug is required"])
    assert exc.value.message == "Validation failed: name is required, slug is required"
    assert exc.value.status_code == 400
    raise_for_errors([])


def test_pin_rows_flags_invalid_and_warns() -> None:
    df = pd.DataFrame(
        [
            {"id": "p1", "pin_number": "D2", "pin_mode": "OUTPUT", "power_rail": "NINE_V",
             "wiring_status": "WIRED", "description": "Step", "notes": None},
            {"id": "p2", "pin_number": "D3", "pin_mode": "BLINK", "power_rail": "NONE",
             "wiring_status": "PLANNED", "description": None, "notes": None},
            {"id": "p3", "pin_number": "D4", "pin_mode": "INPUT", "power_rail": "TWENTY_SEVEN_V",
             "wiring_status": "PLANNED", "description": None, "notes": None},
        ]
    )
    result = validate_pin_rows(df)
    assert result.has_errors
    assert result.errors == ["D3: pin_mode must be one of: INPUT, OUTPUT, PWM"]
    assert result.row_status == {0: "OK", 1: "INVALID", 2: "OK"}
    assert len(result.warnings) == 1
    assert result.warnings[0].startswith("D4:")
