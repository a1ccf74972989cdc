"""
i18n core: load_lang (cached JSON), translate(lang, key) and the Streamlit t(key).
t() reads st.session_state["lang"]; en.json is the only shipped locale.
"""
from __future__ import annotations

import json
from pathlib import Path

import streamlit as st

_I18N_DIR = Path(__file__).resolve().parent
_CACHE: dict[str, dict[str, str]] = {}
DEFAULT_LANG = "EN"


def load_lang(lang: str) -> dict[str, str]:
    """Load locale JSON for lang. Cached; unknown locales fall back to EN."""
    if lang not in _CACHE:
        path = _I18N_DIR / f"{lang.lower()}.json"
        if not path.exists():
            path = _I18N_DIR / f"{DEFAULT_LANG.lower()}.json"
        with path.open(encoding="utf-8") as f:
            _CACHE[lang] = json.load(f)
    return _CACHE[lang]


def translate(lang: str, key: str, **kwargs) -> str:
    """Missing keys come back unchanged; bad placeholders leave the raw string."""
    raw = load_lang(lang).get(key, key)
    if not kwargs:
        return raw
    try:
        return raw.format(**kwargs)
    except (KeyError, ValueError):
        return raw


def t(key: str, **kwargs) -> str:
    """Translate key for the current Streamlit session (EN outside a session)."""
    try:
        lang = st.session_state.get("lang", DEFAULT_LANG)
    except Exception:
        lang = DEFAULT_LANG
    return translate(lang, key, **kwargs)
