"""i18n UI key coverage: every t("...")/t('...') key exists in EN."""
from __future__ import annotations

import json
import re
from pathlib import Path


def _load_json(path: Path) -> dict:
    with path.open(encoding="utf-8") as f:
        return json.load(f)


def _extract_t_keys(content: str) -> set[str]:
    """Extract i18n keys from t("...") and t('...') calls (string literals only)."""
    # Match t("key") or t('key') - literal strings only, no f-strings or variables
    pattern = r'\bt\s*\(\s*["\']([^"\']+)["\']\s*'
    return set(re.findall(pattern, content))


def test_ui_keys_exist_in_en() -> None:
    """Every t("key")/t('key') in UI sources exists in the EN dict."""
    repo_root = Path(__file__).resolve().parents[1]
    en_keys = set(_load_json(repo_root / "app" / "i18n" / "en.json").keys())

    sources = [
        repo_root / "app" / "streamlit_app.py",
        repo_root / "app" / "ui_components.py",
        *sorted((repo_root / "app" / "views").glob("*.py")),
    ]
    all_extracted: set[str] = set()
    for path in sources:
        if not path.exists():
            continue
        content = path.read_text(encoding="utf-8")
        all_extracted |= _extract_t_keys(content)

    assert all_extracted
    missing = all_extracted - en_keys
    assert not missing, f"Keys in UI but missing in EN: {sorted(missing)}"
