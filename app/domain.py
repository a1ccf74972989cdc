from __future__ import annotations

import math
import re

PIN_MODES = ("INPUT", "OUTPUT", "PWM")
PIN_TYPES = ("DIGITAL", "ANALOG")
COMPONENT_PIN_TYPES = ("DIGITAL", "ANALOG", "ANY")
POWER_RAILS = ("FIVE_V", "NINE_V", "TWENTY_SEVEN_V", "NONE")
WIRING_STATUSES = ("UNASSIGNED", "PLANNED", "WIRED", "TESTED", "COMPLETE")
BUILD_STATUSES = ("NOT_ONBOARDED", "PLANNED", "IN_PROGRESS", "COMPLETE", "HAS_ISSUES")
VARIABLE_TYPES = ("SIMVAR", "LVAR", "HVAR")
EVENT_TYPES = ("INPUT_ACTION", "OUTPUT_CONDITION", "STEPPER_GAUGE", "LED_PWM")

RAIL_LABELS = {
    "FIVE_V": "5V",
    "NINE_V": "9V",
    "TWENTY_SEVEN_V": "27V",
    "NONE": "None / Unassigned",
}

# Actual supply voltages; the "27V" rail is fed at 28V.
RAIL_VOLTAGES = {
    "FIVE_V": 5.0,
    "NINE_V": 9.0,
    "TWENTY_SEVEN_V": 28.0,
}

# Pins counted as physically wired for progress reporting.
WIRED_STATUSES = ("WIRED", "TESTED", "COMPLETE")

MEGA_2560_DIGITAL_PINS = 54
MEGA_2560_ANALOG_PINS = 16
MEGA_2560_PWM_PINS = (2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12, 13)
MEGA_2560_RESERVED_PINS = ("D0", "D1")

MOSFET_DEFAULT_CHANNELS = 8

_PIN_RE = re.compile(r"^(D|A)(\d+)$")
PIN_FORMAT_RE = re.compile(r"^(D\d{1,2}|A\d{1,2})$")
SLUG_RE = re.compile(r"^[a-z0-9-]+$")


def parse_pin(pin_number: str) -> tuple[str, int] | None:
    """Split "D13" into ("D", 13); None when the label is not a Mega pin."""
    match = _PIN_RE.match(str(pin_number or "").strip())
    if not match:
        return None
    return match.group(1), int(match.group(2))


def pin_type_for(pin_number: str) -> str:
    return "ANALOG" if str(pin_number).startswith("A") else "DIGITAL"


def pin_sort_key(pin_number: str) -> tuple[int, int, str]:
    """Natural order: D0, D1, ..., D53, then A0..A15, then anything else."""
    parsed = parse_pin(pin_number)
    if parsed is None:
        return (2, 0, str(pin_number))
    prefix, num = parsed
    return (0 if prefix == "D" else 1, num, "")


def device_sort_key(pin_number: str) -> tuple[int, str, int, str]:
    """Prefix alphabetically, then numerically: A3 before D2 before D30."""
    parsed = parse_pin(pin_number)
    if parsed is None:
        return (1, "", 0, str(pin_number))
    prefix, num = parsed
    return (0, prefix, num, "")


def percent(part: int, whole: int) -> int:
    """Whole-number share of `whole`, halves rounded up (1 of 8 -> 13)."""
    return math.floor(100 * part / whole + 0.5) if whole else 0


def rail_label(rail: str | None) -> str:
    if not rail:
        return RAIL_LABELS["NONE"]
    return RAIL_LABELS.get(rail, rail)
