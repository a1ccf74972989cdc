from __future__ import annotations

import pandas as pd
import streamlit as st

from app.domain import rail_label
from app.i18n import t
from app.store.sections import list_sections
from app.ui_components import build_status_pill, select_section
from calc_core.wiring import wiring_diagram


def render(conn, state: dict) -> None:
    st.header(t("wiring.header"))
    section_id = select_section(list_sections(conn), state, t("wiring.section"), key="wiring_section")
    if section_id is None:
        st.info(t("overview.no_sections"))
        return

    diagram = wiring_diagram(conn, section_id)
    if not diagram["components"]:
        st.info(t("panel_map.no_components"))
        return

    for comp in diagram["components"]:
        with st.container(border=True):
            col1, col2 = st.columns([4, 1])
            col1.markdown(f"**{comp['name']}** · {comp['type_name'] or ''}")
            with col2:
                build_status_pill(comp["build_status"])
            if not comp["pins"]:
                st.caption(t("panel_map.no_pins"))
                continue
            rows = [
                {
                    t("pins.col_board"): p["board_name"],
                    t("pins.col_pin"): p["pin_number"],
                    t("pins.col_mode"): p["pin_mode"],
                    t("pins.col_rail"): rail_label(p["power_rail"]),
                    t("pins.col_mosfet"): (
                        f"{p['mosfet_channel']['board_name']} #{p['mosfet_channel']['channel_number']}"
                        if p["mosfet_channel"]
                        else ""
                    ),
                    t("pins.col_wiring"): p["wiring_status"],
                    t("pins.col_description"): p["description"] or "",
                }
                for p in comp["pins"]
            ]
            st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)
