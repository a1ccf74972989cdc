"""Panel map: overhead photo with section/component hotspots and flyouts."""
from __future__ import annotations

import pandas as pd
import streamlit as st

from app.domain import BUILD_STATUSES, POWER_RAILS, rail_label
from app.i18n import t
from app.store.component_instances import create_instance, get_instance, map_data
from app.store.component_types import list_component_types
from app.store.sections import get_section, list_sections
from app.ui_components import build_status_pill, is_edit, rail_pill, render_panel_overlay, run_write
from calc_core.overlay import ViewState, clamp_scale, clamp_translate, region_of, zoom_to_rect

# Regions are percentages, so the view works in a 100 x 100 content box.
CONTENT_SIZE = 100.0


def _view_for(section: dict | None) -> ViewState:
    if section is None:
        return ViewState()
    region = region_of(section, "svg")
    if region is None:
        return ViewState()
    return zoom_to_rect(region, CONTENT_SIZE, CONTENT_SIZE)


def _manual_view(base: ViewState) -> ViewState:
    with st.expander(t("panel_map.view_controls"), expanded=False):
        scale = clamp_scale(
            st.slider(t("panel_map.zoom"), min_value=1.0, max_value=5.0, value=float(base.scale), step=0.1)
        )
        tx = st.slider(t("panel_map.pan_x"), min_value=-100.0, max_value=0.0, value=float(base.translate_x))
        ty = st.slider(t("panel_map.pan_y"), min_value=-100.0, max_value=0.0, value=float(base.translate_y))
    tx, ty = clamp_translate(tx, ty, scale, CONTENT_SIZE, CONTENT_SIZE)
    return ViewState(scale, tx, ty)


def _pins_table(pins: list[dict]) -> None:
    if not pins:
        st.caption(t("panel_map.no_pins"))
        return
    rows = [
        {
            t("pins.col_board"): p["board"]["name"],
            t("pins.col_pin"): p["pin_number"],
            t("pins.col_mode"): p["pin_mode"],
            t("pins.col_rail"): rail_label(p["power_rail"]),
            t("pins.col_wiring"): p["wiring_status"],
            t("pins.col_lvar"): (p.get("mobiflight_mapping") or {}).get("variable_name") or "",
        }
        for p in pins
    ]
    st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)


def _component_flyout(conn, instance_id: str) -> None:
    inst = get_instance(conn, instance_id)
    st.subheader(inst["name"])
    ctype = inst.get("component_type") or {}
    st.caption(f"{ctype.get('name', '')} · {inst['panel_section']['name']}")
    col1, col2 = st.columns(2)
    with col1:
        build_status_pill(inst["build_status"])
    with col2:
        rail_pill(inst.get("power_rail") or ctype.get("default_power_rail"))
    if inst.get("notes"):
        st.write(inst["notes"])
    _pins_table(inst["pin_assignments"])


def _section_flyout(conn, section_id: str) -> str | None:
    section = get_section(conn, section_id)
    st.subheader(section["name"])
    build_status_pill(section["build_status"])
    cols = st.columns(3)
    cols[0].metric(t("panel_map.components"), len(section["component_instances"]))
    cols[1].metric(t("panel_map.pins"), section["pin_count"])
    cols[2].metric(
        t("panel_map.owned"), t("common.yes") if section.get("owned") else t("common.no")
    )
    st.caption(
        " · ".join(f"{rail_label(rail)}: {n}" for rail, n in section["power_breakdown"].items())
    )
    if section.get("dimension_notes"):
        st.caption(section["dimension_notes"])

    instances = section["component_instances"]
    if not instances:
        st.info(t("panel_map.no_components"))
        return None
    options = {i["id"]: f"{i['name']} ({i['build_status']})" for i in instances}
    return st.selectbox(
        t("panel_map.select_component"),
        [None, *options],
        format_func=lambda i: t("common.dash") if i is None else options[i],
    )


def _add_component_form(conn, state: dict, sections: list[dict], section_id: str | None) -> None:
    types = list_component_types(conn)
    if not types:
        st.info(t("panel_map.no_types"))
        return
    section_names = {s["id"]: s["name"] for s in sections}
    type_names = {ct["id"]: ct["name"] for ct in types}
    with st.form("add_component_form", clear_on_submit=True):
        name = st.text_input(t("panel_map.component_name"))
        type_id = st.selectbox(t("panel_map.component_type"), list(type_names), format_func=type_names.get)
        ids = list(section_names)
        sec_id = st.selectbox(
            t("panel_map.section"),
            ids,
            index=ids.index(section_id) if section_id in ids else 0,
            format_func=section_names.get,
        )
        status = st.selectbox(t("panel_map.build_status"), BUILD_STATUSES, index=1)
        rail = st.selectbox(
            t("panel_map.power_rail"), [None, *POWER_RAILS], format_func=lambda r: t("panel_map.type_default") if r is None else rail_label(r)
        )
        notes = st.text_area(t("panel_map.notes"))
        if st.form_submit_button(t("panel_map.add_component")):
            data = {
                "name": name.strip(),
                "component_type_id": type_id,
                "panel_section_id": sec_id,
                "build_status": status,
                "notes": notes.strip() or None,
            }
            if rail is not None:
                data["power_rail"] = rail
            run_write(state, conn, lambda: create_instance(conn, data), t("panel_map.component_added"))


def render(conn, state: dict) -> None:
    st.header(t("panel_map.header"))

    sections = list_sections(conn)
    if not sections:
        st.info(t("overview.no_sections"))
        return
    by_id = {s["id"]: s for s in sections}

    options = [None, *by_id]
    current = state.get("selected_section_id")
    section_id = st.selectbox(
        t("panel_map.focus_section"),
        options,
        index=options.index(current) if current in by_id else 0,
        format_func=lambda i: t("panel_map.full_panel") if i is None else by_id[i]["name"],
    )
    state["selected_section_id"] = section_id
    selected = by_id.get(section_id) if section_id else None
    if selected is not None and region_of(selected, "svg") is None:
        st.caption(t("panel_map.section_not_calibrated"))

    view = _manual_view(_view_for(selected))
    components = map_data(conn)
    if selected is not None:
        components = [c for c in components if c["panel_section"]["id"] == selected["id"]]

    map_col, fly_col = st.columns([3, 2])
    with map_col:
        render_panel_overlay(
            state.get("panel_image", ""),
            sections=[s for s in sections if selected is None or s["id"] == selected["id"]],
            components=components,
            view=view,
        )
        st.caption(t("panel_map.mapped_count", mapped=len(components)))

    with fly_col:
        if selected is None:
            st.info(t("panel_map.pick_section"))
        else:
            instance_id = _section_flyout(conn, selected["id"])
            if instance_id:
                st.divider()
                _component_flyout(conn, instance_id)

    if is_edit(state):
        with st.expander(t("panel_map.add_component"), expanded=False):
            _add_component_form(conn, state, sections, section_id)
