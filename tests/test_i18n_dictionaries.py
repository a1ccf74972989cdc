"""i18n dictionary: EN loads, required keys exist, validation keys are covered."""
from __future__ import annotations

import json
import re
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]


def _load_json(path: Path) -> dict:
    with path.open(encoding="utf-8") as f:
        return json.load(f)


def test_en_values_are_strings() -> None:
    en = _load_json(REPO_ROOT / "app" / "i18n" / "en.json")
    assert en
    assert all(isinstance(v, str) and v for v in en.values())


def test_required_keys_present() -> None:
    """Keys the app shell renders before any page loads."""
    en = _load_json(REPO_ROOT / "app" / "i18n" / "en.json")
    required = {
        "app.title",
        "sidebar.db_path",
        "nav.db_connect",
        "access_mode.read_only",
        "access_mode.edit",
    }
    missing = required - set(en.keys())
    assert not missing, f"EN missing keys: {missing}"


def test_validation_messages_present() -> None:
    """Every validation.* message key used by the validators exists in EN."""
    en = _load_json(REPO_ROOT / "app" / "i18n" / "en.json")
    content = (REPO_ROOT / "app" / "validation.py").read_text(encoding="utf-8")
    used = set(re.findall(r'["\'](validation\.[a-z_]+)["\']', content))
    assert used
    missing = used - set(en.keys())
    assert not missing, f"Validation keys missing in EN: {sorted(missing)}"


def test_translate_formats_and_falls_back() -> None:
    from app.i18n import translate

    assert translate("EN", "no.such.key") == "no.such.key"
    assert translate("EN", "validation.field_required", field="name") == "name is required"
    assert translate("DE", "app.title") == translate("EN", "app.title")
    assert translate("EN", "validation.field_required", other=1) == translate("EN", "validation.field_required")


def test_ui_component_messages_are_translated() -> None:
    from app.i18n import translate

    assert translate("EN", "common.write_failed", error="disk I/O error") == "Write failed: disk I/O error"
    assert translate("EN", "panel_map.image_missing") == "Panel image not found"

    source = (Path(__file__).resolve().parents[1] / "app" / "ui_components.py").read_text(encoding="utf-8")
    assert "Write failed" not in source
    assert "Panel image not found" not in source
