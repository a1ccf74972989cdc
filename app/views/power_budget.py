"""Power budget: rail connection counts plus scenario-based PSU demand."""
from __future__ import annotations

import pandas as pd
import streamlit as st

from app.domain import rail_label
from app.i18n import t
from app.store.psu import get_psu_config, update_psu_config
from app.ui_components import is_edit, run_write, utilization_pill
from calc_core.power_budget import SCENARIOS, connection_budget, evaluate_scenario, power_components


def _connections(conn) -> None:
    budget = connection_budget(conn)
    st.subheader(t("power.connections_header"))
    cols = st.columns(len(budget["rails"]))
    for col, rail in zip(cols, budget["rails"]):
        col.metric(rail["label"], rail["total_connections"])
    rows = []
    for rail in budget["rails"]:
        for sec in rail["by_section"]:
            rows.append({t("power.col_rail"): rail["label"], t("power.col_section"): sec["section_name"], t("power.col_count"): sec["count"]})
    if rows:
        df = pd.DataFrame(rows).pivot_table(
            index=t("power.col_section"), columns=t("power.col_rail"), values=t("power.col_count"), fill_value=0
        )
        st.dataframe(df, use_container_width=True)

    if budget["mosfet_boards"]:
        st.caption(
            " · ".join(
                t("power.mosfet_usage", name=mb["name"], used=mb["used_channels"], total=mb["channel_count"])
                for mb in budget["mosfet_boards"]
            )
        )


def _psu_form(conn, state: dict, psu: dict) -> None:
    with st.form("psu_form"):
        name = st.text_input(t("power.psu_name"), value=psu["name"])
        capacity = st.number_input(
            t("power.psu_capacity"), min_value=1.0, max_value=5000.0, value=float(psu["capacity_watts"])
        )
        efficiency = st.slider(
            t("power.psu_efficiency"), min_value=0.5, max_value=1.0, value=float(psu["converter_efficiency"]), step=0.01
        )
        notes = st.text_area(t("power.psu_notes"), value=psu.get("notes") or "")
        if st.form_submit_button(t("power.psu_save")):
            data = {
                "name": name.strip(),
                "capacity_watts": float(capacity),
                "converter_efficiency": float(efficiency),
                "notes": notes.strip() or None,
            }
            run_write(state, conn, lambda: update_psu_config(conn, data), t("power.psu_saved"))


def _scenario(conn, psu: dict) -> None:
    st.subheader(t("power.scenario_header"))
    components = power_components(conn)
    labels = {s.name: s.label for s in SCENARIOS}
    name = st.radio(t("power.scenario"), list(labels), format_func=labels.get, horizontal=True)

    toggles = None
    if name == "custom":
        sections = {c.panel_section_id: c.panel_section_name for c in components}
        with st.expander(t("power.custom_toggles"), expanded=True):
            toggles = {
                section_id: st.checkbox(section_name, key=f"power_toggle_{section_id}")
                for section_id, section_name in sections.items()
            }
    infra = st.number_input(t("power.infrastructure_ma"), min_value=0.0, value=0.0, step=50.0)

    result = evaluate_scenario(components, name, psu, custom_toggles=toggles, infrastructure_current_ma=infra)
    utilization_pill(result["level"], result["total_watts"], result["capacity_watts"])
    st.dataframe(
        pd.DataFrame(
            [
                {
                    t("power.col_rail"): rail_label(rail),
                    t("power.col_voltage"): values["voltage"],
                    t("power.col_current"): round(values["current_ma"], 1),
                    t("power.col_watts"): round(values["watts"], 2),
                    t("power.col_psu_draw"): round(values["psu_draw_watts"], 2),
                }
                for rail, values in result["per_rail"].items()
            ]
        ),
        use_container_width=True,
        hide_index=True,
    )
    if result["level"] == "red":
        st.error(t("power.over_budget"))
    elif result["level"] == "amber":
        st.warning(t("power.near_budget"))


def render(conn, state: dict) -> None:
    st.header(t("power.header"))
    _connections(conn)
    st.divider()
    psu = get_psu_config(conn)
    _scenario(conn, psu)
    if is_edit(state):
        with st.expander(t("power.psu_header"), expanded=False):
            _psu_form(conn, state, psu)
