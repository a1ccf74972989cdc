"""
LVAR reference for the BAe 146 overhead.

The JSON file maps section codes to {label, description, lvars: [...]}; the
`_metadata` key is skipped. Suggestions for a pin are scored by how many
tokens of the component name appear in the LVAR name, searching the LVAR
sections that belong to the component's panel section first.
"""

from __future__ import annotations

import json
import logging
import re
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from app.errors import NotFoundError

logger = logging.getLogger(__name__)

SECTION_TO_SLUG = {
    "overhead_fuel": "fuel",
    "overhead_electrical": "electric",
    "overhead_apu": "apu",
    "overhead_ice_protection": "ice-protect",
    "overhead_pressurisation": "pressurisation",
    "overhead_lights": "lights-ac",
    "overhead_fire_handles": "engine-fire-detect",
    "overhead_hydraulics": "misc-hydraulic",
    "overhead_centre_lower": "lights-belts",
    "overhead_engines": "engines-ice",
}

SLUG_TO_SECTIONS: dict[str, list[str]] = {}
for _code, _slug in SECTION_TO_SLUG.items():
    SLUG_TO_SECTIONS.setdefault(_slug, []).append(_code)

SUGGEST_LIMIT = 20
FALLBACK_LIMIT = 10

_TOKEN_SPLIT_RE = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class LvarEntry:
    name: str
    section_code: str
    section_label: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "section_code": self.section_code, "section_label": self.section_label}


def tokenize(name: str) -> list[str]:
    return [t for t in _TOKEN_SPLIT_RE.split(name.lower()) if len(t) > 1]


class LvarReference:
    def __init__(self, sections: dict[str, dict[str, Any]]) -> None:
        self._sections: dict[str, tuple[str, list[LvarEntry]]] = {}
        self._entries: list[LvarEntry] = []
        for code, section in sections.items():
            if code == "_metadata":
                continue
            label = section.get("label", code)
            entries = [LvarEntry(str(name), code, label) for name in section.get("lvars", [])]
            self._sections[code] = (label, entries)
            self._entries.extend(entries)

    @classmethod
    def from_file(cls, path: str | Path) -> "LvarReference":
        with Path(path).open(encoding="utf-8") as f:
            data = json.load(f)
        ref = cls(data)
        logger.info("Loaded %d LVARs in %d sections from %s", len(ref._entries), len(ref._sections), path)
        return ref

    def sections(self) -> list[dict[str, Any]]:
        return [
            {"code": code, "label": label, "count": len(entries)}
            for code, (label, entries) in self._sections.items()
        ]

    def section_entries(self, code: str) -> list[LvarEntry]:
        return list(self._sections.get(code, ("", []))[1])

    def search(self, query: str, section_code: str | None = None) -> list[LvarEntry]:
        if not query:
            return []
        pool = self.section_entries(section_code) if section_code else self._entries
        q = query.lower()
        return [e for e in pool if q in e.name.lower()]

    def suggest(self, component_name: str, section_slug: str | None) -> list[LvarEntry]:
        pool: list[LvarEntry] = []
        for code in SLUG_TO_SECTIONS.get(section_slug or "", []):
            pool.extend(self.section_entries(code))
        if not pool:
            pool = self._entries

        tokens = tokenize(component_name)
        if not tokens:
            return pool[:FALLBACK_LIMIT]

        scored = []
        for entry in pool:
            lower = entry.name.lower()
            score = sum(1 for t in tokens if t in lower)
            if score > 0:
                scored.append((score, entry))
        # sorted() is stable, so ties keep file order.
        scored.sort(key=lambda item: -item[0])
        return [entry for _, entry in scored[:SUGGEST_LIMIT]]

    def suggest_for_pin(self, conn: sqlite3.Connection, pin_id: str) -> list[LvarEntry]:
        row = conn.execute(
            """
            SELECT pa.id, ci.name AS instance_name, ps.slug AS section_slug
            FROM pin_assignments pa
            LEFT JOIN component_instances ci ON ci.id = pa.component_instance_id
            LEFT JOIN panel_sections ps ON ps.id = ci.panel_section_id
            WHERE pa.id = ?
            """,
            (pin_id,),
        ).fetchone()
        if row is None:
            raise NotFoundError("Pin assignment not found")
        if row["instance_name"] is None:
            return []
        return self.suggest(row["instance_name"], row["section_slug"])


_CACHE: dict[str, LvarReference] = {}


def load_reference(path: str | Path) -> LvarReference:
    """Loaded once per path."""
    key = str(Path(path).resolve())
    if key not in _CACHE:
        _CACHE[key] = LvarReference.from_file(path)
    return _CACHE[key]
