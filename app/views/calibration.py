"""Component calibration: place each component instance on the panel photo."""
from __future__ import annotations

from typing import Any, Callable, Mapping

import streamlit as st

from app.i18n import t
from app.store.component_instances import list_instances, update_instance
from app.ui_components import is_edit, render_panel_overlay, run_write
from calc_core.overlay import ViewState, drag_to_region, region_of


def drag_inputs(key: str, current: Mapping[str, float] | None) -> dict[str, float] | None:
    """Two corner points in image percent; any drag direction is normalized."""
    start_x0 = current["x"] if current else 0.0
    start_y0 = current["y"] if current else 0.0
    end_x0 = current["x"] + current["width"] if current else 0.0
    end_y0 = current["y"] + current["height"] if current else 0.0
    col1, col2 = st.columns(2)
    with col1:
        st.caption(t("calibration.start_corner"))
        sx = st.number_input(t("calibration.x_pct"), 0.0, 100.0, float(start_x0), 0.1, key=f"{key}_sx")
        sy = st.number_input(t("calibration.y_pct"), 0.0, 100.0, float(start_y0), 0.1, key=f"{key}_sy")
    with col2:
        st.caption(t("calibration.end_corner"))
        ex = st.number_input(t("calibration.x_pct"), 0.0, 100.0, float(end_x0), 0.1, key=f"{key}_ex")
        ey = st.number_input(t("calibration.y_pct"), 0.0, 100.0, float(end_y0), 0.1, key=f"{key}_ey")
    return drag_to_region((sx, sy), (ex, ey))


def calibration_editor(
    state: dict,
    conn,
    *,
    records: list[dict[str, Any]],
    prefix: str,
    label: Callable[[dict[str, Any]], str],
    save: Callable[[str, dict[str, Any]], Any],
    overlay_key: str,
) -> None:
    """Shared editor for `map_*` (components) and `svg_*` (sections) regions."""
    mapped = [r for r in records if region_of(r, prefix) is not None]
    st.caption(t("calibration.progress", mapped=len(mapped), total=len(records)))
    show_unmapped = st.checkbox(t("calibration.only_unmapped"), value=False, key=f"{overlay_key}_unmapped")
    pool = [r for r in records if region_of(r, prefix) is None] if show_unmapped else records
    if not pool:
        st.success(t("calibration.all_mapped"))
        return

    by_id = {r["id"]: r for r in pool}
    record_id = st.selectbox(
        t("calibration.select"), list(by_id), format_func=lambda i: label(by_id[i]), key=f"{overlay_key}_select"
    )
    record = by_id[record_id]
    current = region_of(record, prefix)

    draft = drag_inputs(f"{overlay_key}_{record_id}", current)
    if draft is None:
        st.caption(t("calibration.draw_hint"))
    else:
        st.caption(
            t(
                "calibration.draft",
                x=draft["x"],
                y=draft["y"],
                width=draft["width"],
                height=draft["height"],
            )
        )

    layer = "components" if prefix == "map" else "sections"
    render_panel_overlay(state.get("panel_image", ""), view=ViewState(), draft=draft, **{layer: mapped})

    if not is_edit(state):
        st.info(t("common.edit_required"))
        return

    col1, col2 = st.columns(2)
    with col1:
        if st.button(t("calibration.save"), disabled=draft is None, key=f"{overlay_key}_save"):
            data = {f"{prefix}_{k}": v for k, v in draft.items()}
            if run_write(state, conn, lambda: save(record_id, data), t("calibration.saved")):
                st.rerun()
    with col2:
        if st.button(t("calibration.clear"), disabled=current is None, key=f"{overlay_key}_clear"):
            data = {f"{prefix}_{k}": None for k in ("x", "y", "width", "height")}
            if run_write(state, conn, lambda: save(record_id, data), t("calibration.cleared")):
                st.rerun()


def render(conn, state: dict) -> None:
    st.header(t("calibration.header"))
    instances = list_instances(conn)
    if not instances:
        st.info(t("calibration.no_components"))
        return
    calibration_editor(
        state,
        conn,
        records=instances,
        prefix="map",
        label=lambda i: f"{i['panel_section']['name']} / {i['name']}",
        save=lambda instance_id, data: update_instance(conn, instance_id, data),
        overlay_key="component_calibration",
    )
