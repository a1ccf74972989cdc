from __future__ import annotations

import base64
import html
import mimetypes
import sqlite3
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping

import streamlit as st

from app import db
from app.domain import rail_label
from app.errors import AppError
from app.i18n import t
from calc_core.overlay import ViewState, hotspot_style, region_of

_BUILD_STATUS_COLORS = {
    "NOT_ONBOARDED": ("#d1d5db", "#111827"),
    "PLANNED": ("#94a3b8", "white"),
    "IN_PROGRESS": ("#f59e0b", "white"),
    "COMPLETE": ("#16a34a", "white"),
    "HAS_ISSUES": ("#dc2626", "white"),
}
_RAIL_COLORS = {
    "FIVE_V": ("#22c55e", "white"),
    "NINE_V": ("#3b82f6", "white"),
    "TWENTY_SEVEN_V": ("#f59e0b", "white"),
    "NONE": ("#9ca3af", "white"),
}
_LEVEL_COLORS = {"green": "#16a34a", "amber": "#f59e0b", "red": "#dc2626"}


def _pill_html(label: str, bg: str, fg: str, title: str = "") -> str:
    title_attr = f' title="{html.escape(title)}"' if title else ""
    return (
        f'<span{title_attr} style="display:inline-block;padding:0.15rem 0.55rem;'
        f"border-radius:999px;background:{bg};color:{fg};font-weight:600;"
        f'font-size:0.85rem;line-height:1.4;white-space:nowrap;">{html.escape(label)}</span>'
    )


def pill(label: str, bg: str, fg: str = "white", *, title: str = "") -> None:
    st.markdown(_pill_html(label, bg, fg, title), unsafe_allow_html=True)


def build_status_pill(status: str | None) -> None:
    bg, fg = _BUILD_STATUS_COLORS.get(status or "", ("#374151", "white"))
    pill((status or "UNKNOWN").replace("_", " "), bg, fg)


def rail_pill(rail: str | None) -> None:
    bg, fg = _RAIL_COLORS.get(rail or "NONE", ("#374151", "white"))
    pill(rail_label(rail), bg, fg)


def utilization_pill(level: str, demand_watts: float, capacity_watts: float) -> None:
    pct = f"{demand_watts / capacity_watts:.0%}" if capacity_watts > 0 else "n/a"
    pill(f"{demand_watts:.1f} W / {capacity_watts:.0f} W ({pct})", _LEVEL_COLORS.get(level, "#374151"))


def is_edit(state: Mapping[str, Any]) -> bool:
    return state.get("mode_effective") == "EDIT"


def run_write(
    state: dict,
    conn: sqlite3.Connection,
    action: Callable[[], Any],
    success: str,
) -> bool:
    """Run a store write, report the outcome and refresh the change tracker."""
    try:
        action()
    except AppError as exc:
        st.error(exc.message)
        return False
    except Exception as exc:  # pragma: no cover - UI error path
        st.error(t("common.write_failed", error=exc))
        return False
    state["pending_write_refresh"] = True
    db.update_state_after_write(state, state["db_path"], conn)
    st.success(success)
    return True


def image_data_uri(path: str | Path) -> str | None:
    p = Path(path)
    if not p.is_file():
        return None
    mime = mimetypes.guess_type(p.name)[0] or "image/png"
    return f"data:{mime};base64," + base64.b64encode(p.read_bytes()).decode("ascii")


def _region_div(region: Mapping[str, float], style: Mapping[str, Any], label: str, *, outline: str) -> str:
    tooltip_pos = "bottom:100%;" if style["tooltip_above"] else "top:100%;"
    return (
        f'<div title="{html.escape(label)}" style="position:absolute;'
        f"left:{region['x']}%;top:{region['y']}%;width:{region['width']}%;height:{region['height']}%;"
        f"z-index:{style['z_index']};border:2px {outline} {style['border']};background:{style['background']};"
        'box-sizing:border-box;">'
        f'<span style="position:absolute;left:0;{tooltip_pos}font-size:0.7rem;white-space:nowrap;'
        f"background:rgba(17,24,39,0.8);color:white;padding:0 0.25rem;border-radius:3px;\">"
        f'<span style="display:inline-block;width:0.45rem;height:0.45rem;border-radius:50%;'
        f'background:{style["dot"]};margin-right:0.25rem;"></span>{html.escape(label)}</span></div>'
    )


def panel_overlay_html(
    image_uri: str | None,
    *,
    sections: Iterable[Mapping[str, Any]] = (),
    components: Iterable[Mapping[str, Any]] = (),
    view: ViewState = ViewState(),
    draft: Mapping[str, float] | None = None,
    height_px: int = 520,
) -> str:
    """Panel photo with section and component regions placed by percent coordinates."""
    layers: list[str] = []
    for section in sections:
        region = region_of(section, "svg")
        if region is None:
            continue
        style = hotspot_style(region, section.get("build_status"))
        layers.append(_region_div(region, style, section.get("name", ""), outline="dashed"))
    for comp in components:
        region = region_of(comp, "map")
        if region is None:
            continue
        style = hotspot_style(region, comp.get("build_status"))
        layers.append(_region_div(region, style, comp.get("name", ""), outline="solid"))
    if draft is not None:
        layers.append(
            f'<div style="position:absolute;left:{draft["x"]}%;top:{draft["y"]}%;'
            f'width:{draft["width"]}%;height:{draft["height"]}%;z-index:200;'
            'border:2px dashed #2563eb;background:rgba(37,99,235,0.15);"></div>'
        )

    if image_uri:
        backdrop = f'<img src="{image_uri}" style="display:block;width:100%;height:auto;" />'
    else:
        backdrop = (
            f'<div style="width:100%;height:{height_px}px;background:repeating-linear-gradient('
            "45deg,#1f2937,#1f2937 12px,#111827 12px,#111827 24px);color:#9ca3af;"
            'display:flex;align-items:center;justify-content:center;">'
            f'{html.escape(t("panel_map.image_missing"))}</div>'
        )
    # View translate is expressed in percent of the untransformed image.
    transform = f"scale({view.scale}) translate({view.translate_x}%, {view.translate_y}%)"
    return (
        '<div style="position:relative;overflow:hidden;border:1px solid #374151;border-radius:6px;">'
        f'<div style="position:relative;transform:{transform};transform-origin:0 0;">'
        f"{backdrop}{''.join(layers)}</div></div>"
    )


def render_panel_overlay(image_path: str | Path, **kwargs: Any) -> None:
    st.markdown(panel_overlay_html(image_data_uri(image_path), **kwargs), unsafe_allow_html=True)


def select_section(sections: list[Mapping[str, Any]], state: dict, label: str, *, key: str) -> str | None:
    """Section picker that remembers the last choice across pages."""
    if not sections:
        return None
    names = {s["id"]: s["name"] for s in sections}
    ids = list(names)
    current = state.get("selected_section_id")
    section_id = st.selectbox(
        label, ids, index=ids.index(current) if current in names else 0, format_func=names.get, key=key
    )
    state["selected_section_id"] = section_id
    return section_id
