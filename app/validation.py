from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping
from urllib.parse import urlparse

import pandas as pd

from app.domain import (
    BUILD_STATUSES,
    COMPONENT_PIN_TYPES,
    EVENT_TYPES,
    PIN_FORMAT_RE,
    PIN_MODES,
    PIN_TYPES,
    POWER_RAILS,
    SLUG_RE,
    VARIABLE_TYPES,
    WIRING_STATUSES,
)

Translator = Callable[..., str]

# Default English strings when translator is not provided.
_VALIDATION_EN = {
    "validation.field_required": "{field} is required",
    "validation.field_string": "{field} must be a string",
    "validation.field_max_len": "{field} must be at most {max} characters",
    "validation.field_integer": "{field} must be an integer",
    "validation.field_number": "{field} must be a number",
    "validation.field_range": "{field} must be between {min} and {max}",
    "validation.field_gte": "{field} must be >= {min}",
    "validation.field_positive": "{field} must be > 0",
    "validation.field_choice": "{field} must be one of: {choices}",
    "validation.field_boolean": "{field} must be a boolean",
    "validation.field_list": "{field} must be a list",
    "validation.field_object": "{field} must be an object",
    "validation.field_url": "{field} must contain valid http(s) URLs",
    "validation.pin_format": "Pin must be D0-D53 or A0-A15",
    "validation.slug_format": "slug must contain only lowercase letters, digits and hyphens",
    "validation.ids_required": "ids must be a non-empty list of ids",
    "validation.assigned_flag": "assigned must be 'true' or 'false'",
}


def _tr(translator: Translator | None, key: str, **kwargs: Any) -> str:
    if translator is None:
        raw = _VALIDATION_EN.get(key, key)
        return raw.format(**kwargs) if kwargs else raw
    return translator(key, **kwargs)


@dataclass(frozen=True)
class ValidationResult:
    errors: list[str]
    warnings: list[str]
    row_status: dict[int, str]

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


def is_finite(value: Any) -> bool:
    try:
        num = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(num)


class _Checker:
    """Accumulates messages for one payload; `partial` skips required checks."""

    def __init__(self, data: Mapping[str, Any], *, partial: bool, translator: Translator | None) -> None:
        self.data = data
        self.partial = partial
        self.translator = translator
        self.errors: list[str] = []

    def _err(self, key: str, **kwargs: Any) -> None:
        self.errors.append(_tr(self.translator, key, **kwargs))

    def _present(self, field: str, required: bool) -> bool:
        if field not in self.data:
            if required and not self.partial:
                self._err("validation.field_required", field=field)
            return False
        return True

    def text(
        self,
        field: str,
        *,
        required: bool = False,
        nullable: bool = True,
        min_len: int = 0,
        max_len: int | None = None,
    ) -> None:
        if not self._present(field, required):
            return
        value = self.data[field]
        if value is None:
            if required or not nullable:
                self._err("validation.field_required", field=field)
            return
        if not isinstance(value, str):
            self._err("validation.field_string", field=field)
            return
        if len(value.strip()) < min_len:
            self._err("validation.field_required", field=field)
        elif max_len is not None and len(value) > max_len:
            self._err("validation.field_max_len", field=field, max=max_len)

    def integer(
        self,
        field: str,
        *,
        required: bool = False,
        min_value: int | None = None,
        max_value: int | None = None,
    ) -> None:
        if not self._present(field, required):
            return
        value = self.data[field]
        if isinstance(value, bool) or not isinstance(value, int):
            if isinstance(value, float) and value.is_integer():
                value = int(value)
            else:
                self._err("validation.field_integer", field=field)
                return
        self._range(field, value, min_value, max_value)

    def number(
        self,
        field: str,
        *,
        required: bool = False,
        nullable: bool = False,
        min_value: float | None = None,
        max_value: float | None = None,
        positive: bool = False,
    ) -> None:
        if not self._present(field, required):
            return
        value = self.data[field]
        if value is None:
            if not nullable:
                self._err("validation.field_number", field=field)
            return
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not is_finite(value):
            self._err("validation.field_number", field=field)
            return
        if positive and value <= 0:
            self._err("validation.field_positive", field=field)
            return
        self._range(field, value, min_value, max_value)

    def _range(self, field: str, value: float, min_value: float | None, max_value: float | None) -> None:
        if min_value is not None and max_value is not None:
            if value < min_value or value > max_value:
                self._err("validation.field_range", field=field, min=min_value, max=max_value)
        elif min_value is not None and value < min_value:
            self._err("validation.field_gte", field=field, min=min_value)
        elif max_value is not None and value > max_value:
            self._err("validation.field_range", field=field, min="-inf", max=max_value)

    def choice(self, field: str, choices: Iterable[str], *, required: bool = False, nullable: bool = False) -> None:
        if not self._present(field, required):
            return
        value = self.data[field]
        if value is None and nullable:
            return
        choices = tuple(choices)
        if value not in choices:
            self._err("validation.field_choice", field=field, choices=", ".join(choices))

    def boolean(self, field: str) -> None:
        if not self._present(field, False):
            return
        if not isinstance(self.data[field], bool):
            self._err("validation.field_boolean", field=field)

    def listing(self, field: str, item_ok: Callable[[Any], bool], item_key: str, **item_kwargs: Any) -> None:
        if not self._present(field, False):
            return
        value = self.data[field]
        if not isinstance(value, list):
            self._err("validation.field_list", field=field)
            return
        if not all(item_ok(item) for item in value):
            self._err(item_key, field=field, **item_kwargs)


def _is_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def validate_board(
    data: Mapping[str, Any], *, partial: bool = False, translator: Translator | None = None
) -> list[str]:
    c = _Checker(data, partial=partial, translator=translator)
    c.text("name", required=True, nullable=False, min_len=1, max_len=50)
    c.text("board_type", nullable=False, min_len=1, max_len=100)
    c.integer("digital_pin_count", min_value=1, max_value=100)
    c.integer("analog_pin_count", min_value=0, max_value=100)
    c.listing(
        "pwm_pins",
        lambda v: isinstance(v, int) and not isinstance(v, bool) and v >= 0,
        "validation.field_list",
    )
    c.text("notes")
    return c.errors


def validate_component_type(
    data: Mapping[str, Any], *, partial: bool = False, translator: Translator | None = None
) -> list[str]:
    c = _Checker(data, partial=partial, translator=translator)
    c.text("name", required=True, nullable=False, min_len=1, max_len=100)
    c.text("description")
    c.integer("default_pin_count", required=True, min_value=1, max_value=20)
    c.listing(
        "pin_labels",
        lambda v: isinstance(v, str) and len(v) <= 50,
        "validation.field_max_len",
        max=50,
    )
    c.listing(
        "pin_types",
        lambda v: v in COMPONENT_PIN_TYPES,
        "validation.field_choice",
        choices=", ".join(COMPONENT_PIN_TYPES),
    )
    c.listing(
        "pin_power_rails",
        lambda v: v in POWER_RAILS,
        "validation.field_choice",
        choices=", ".join(POWER_RAILS),
    )
    c.listing("pin_mosfet_required", lambda v: isinstance(v, bool), "validation.field_boolean")
    c.choice("default_power_rail", POWER_RAILS)
    c.choice("default_pin_mode", PIN_MODES)
    c.boolean("pwm_required")
    c.integer("typical_current_ma", min_value=0)
    c.integer("standby_current_ma", min_value=0)
    c.text("notes")
    return c.errors


def validate_component_instance(
    data: Mapping[str, Any], *, partial: bool = False, translator: Translator | None = None
) -> list[str]:
    c = _Checker(data, partial=partial, translator=translator)
    c.text("name", required=True, nullable=False, min_len=1, max_len=200)
    if not partial:
        c.text("component_type_id", required=True, nullable=False, min_len=1)
        c.text("panel_section_id", required=True, nullable=False, min_len=1)
    c.choice("build_status", BUILD_STATUSES)
    c.choice("power_rail", POWER_RAILS, nullable=partial)
    c.text("notes")
    c.integer("sort_order")
    for field in ("map_x", "map_y", "map_width", "map_height"):
        c.number(field, nullable=partial, min_value=0, max_value=100)
    return c.errors


def validate_panel_section(
    data: Mapping[str, Any], *, partial: bool = False, translator: Translator | None = None
) -> list[str]:
    c = _Checker(data, partial=partial, translator=translator)
    c.text("name", required=True, nullable=False, min_len=1, max_len=100)
    c.text("slug", required=True, nullable=False, min_len=1, max_len=100)
    slug = data.get("slug")
    if isinstance(slug, str) and slug and not SLUG_RE.match(slug):
        c._err("validation.slug_format")
    c.number("width_mm", nullable=True, positive=True)
    c.number("height_mm", nullable=True, positive=True)
    for field in ("dzus_sizes", "dimension_notes", "source_msn", "aircraft_variant", "registration", "lineage_notes"):
        c.text(field)
    c.boolean("owned")
    c.integer("sort_order")
    c.choice("build_status", BUILD_STATUSES)
    c.listing("lineage_urls", _is_url, "validation.field_url")
    for field in ("svg_x", "svg_y", "svg_width", "svg_height"):
        c.number(field, nullable=True, min_value=0, max_value=100)
    return c.errors


def validate_pin_assignment(data: Mapping[str, Any], *, translator: Translator | None = None) -> list[str]:
    c = _Checker(data, partial=False, translator=translator)
    c.text("board_id", required=True, nullable=False, min_len=1)
    c.text("pin_number", required=True, nullable=False, min_len=1)
    pin_number = data.get("pin_number")
    if isinstance(pin_number, str) and pin_number and not PIN_FORMAT_RE.match(pin_number):
        c._err("validation.pin_format")
    c.choice("pin_type", PIN_TYPES, required=True)
    c.choice("pin_mode", PIN_MODES)
    c.text("component_instance_id")
    c.text("description")
    c.choice("power_rail", POWER_RAILS)
    c.text("notes")
    return c.errors


def validate_pin_update(data: Mapping[str, Any], *, translator: Translator | None = None) -> list[str]:
    c = _Checker(data, partial=True, translator=translator)
    c.choice("pin_mode", PIN_MODES)
    c.text("component_instance_id")
    c.text("description")
    c.choice("power_rail", POWER_RAILS)
    c.choice("wiring_status", WIRING_STATUSES)
    c.text("notes")
    c.text("mosfet_channel_id")
    return c.errors


def validate_bulk_pin_update(payload: Mapping[str, Any], *, translator: Translator | None = None) -> list[str]:
    errors: list[str] = []
    ids = payload.get("ids")
    if not isinstance(ids, list) or not ids or not all(isinstance(i, str) and i for i in ids):
        errors.append(_tr(translator, "validation.ids_required"))
    data = payload.get("data")
    if not isinstance(data, dict):
        errors.append(_tr(translator, "validation.field_object", field="data"))
        return errors
    c = _Checker(data, partial=True, translator=translator)
    c.choice("wiring_status", WIRING_STATUSES)
    c.choice("power_rail", POWER_RAILS)
    return errors + c.errors


def validate_pin_filters(args: Mapping[str, Any], *, translator: Translator | None = None) -> list[str]:
    c = _Checker(args, partial=True, translator=translator)
    c.choice("power_rail", POWER_RAILS)
    c.choice("wiring_status", WIRING_STATUSES)
    if "assigned" in args and args["assigned"] not in ("true", "false"):
        c._err("validation.assigned_flag")
    return c.errors


def validate_mosfet_board(
    data: Mapping[str, Any], *, partial: bool = False, translator: Translator | None = None
) -> list[str]:
    c = _Checker(data, partial=partial, translator=translator)
    c.text("name", required=True, nullable=False, min_len=1, max_len=50)
    c.integer("channel_count", min_value=1, max_value=64)
    c.text("notes")
    return c.errors


def validate_mobiflight_mapping(
    data: Mapping[str, Any], *, partial: bool = False, translator: Translator | None = None
) -> list[str]:
    c = _Checker(data, partial=partial, translator=translator)
    c.text("variable_name", required=True, nullable=False, min_len=1)
    c.choice("variable_type", VARIABLE_TYPES)
    c.choice("event_type", EVENT_TYPES)
    c.text("notes")
    return c.errors


def validate_journal_entry(
    data: Mapping[str, Any], *, partial: bool = False, translator: Translator | None = None
) -> list[str]:
    c = _Checker(data, partial=partial, translator=translator)
    c.text("title", required=True, nullable=False, min_len=1, max_len=200)
    c.text("body", required=True, nullable=False, min_len=1)
    c.text("panel_section_id")
    c.text("component_instance_id")
    return c.errors


def validate_psu_config(data: Mapping[str, Any], *, translator: Translator | None = None) -> list[str]:
    c = _Checker(data, partial=True, translator=translator)
    c.text("name", nullable=False, min_len=1, max_len=100)
    c.number("capacity_watts", positive=True, max_value=5000)
    c.number("converter_efficiency", min_value=0.5, max_value=1.0)
    c.text("notes")
    return c.errors


def validate_pin_rows(df: pd.DataFrame, *, translator: Translator | None = None) -> ValidationResult:
    """
    Validates edited rows from the Pin Manager grid.

    Expects DataFrame with columns:
    id, pin_number, pin_mode, power_rail, wiring_status, description, notes
    """
    errors: list[str] = []
    warnings: list[str] = []
    statuses: dict[int, str] = {}

    for idx, row in df.iterrows():
        label = str(row.get("pin_number") or row.get("id") or f"row#{idx}")
        data: dict[str, Any] = {}
        for col in ("pin_mode", "power_rail", "wiring_status"):
            val = row.get(col)
            if val is not None and not (isinstance(val, float) and pd.isna(val)):
                data[col] = str(val).strip().upper()
        for col in ("description", "notes"):
            val = row.get(col)
            if val is None or (isinstance(val, float) and pd.isna(val)):
                data[col] = None
            else:
                data[col] = str(val)
        row_errors = validate_pin_update(data, translator=translator)
        if row_errors:
            errors.append(f"{label}: " + "; ".join(row_errors))
            statuses[idx] = "INVALID"
        else:
            statuses[idx] = "OK"
        if data.get("power_rail") == "TWENTY_SEVEN_V" and data.get("pin_mode") == "INPUT":
            warnings.append(f"{label}: 27V rail on an INPUT pin usually needs a MOSFET channel")

    return ValidationResult(errors=errors, warnings=warnings, row_status=statuses)
