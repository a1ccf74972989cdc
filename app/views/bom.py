from __future__ import annotations

import pandas as pd
import streamlit as st

from app.domain import rail_label
from app.errors import AppError
from app.i18n import t
from app.store.sections import list_sections
from app.ui_components import is_edit, run_write, select_section
from calc_core.bom import apply_bom, calculate_bom


def _allocation_text(allocations: list[dict]) -> str:
    return "; ".join(f"{a['board_name']}: {', '.join(a['pins'])}" for a in allocations)


def render(conn, state: dict) -> None:
    st.header(t("bom.header"))
    st.caption(t("bom.caption"))

    section_id = select_section(list_sections(conn), state, t("bom.section"), key="bom_section")
    if section_id is None:
        st.info(t("overview.no_sections"))
        return

    if st.button(t("bom.calculate")):
        try:
            state["bom_result"] = calculate_bom(conn, section_id)
        except AppError as exc:
            st.error(exc.message)
            return

    result = state.get("bom_result")
    if not result or result["section_id"] != section_id:
        st.info(t("bom.run_hint"))
        return

    pins_needed = sum(c["pins_needed"] for c in result["components"])
    cols = st.columns(4)
    cols[0].metric(t("bom.pins_needed"), pins_needed)
    cols[1].metric(t("bom.new_boards"), result["new_boards_needed"])
    cols[2].metric(t("bom.mosfet_needed"), result["mosfet_channels_needed"])
    cols[3].metric(t("bom.mosfet_available"), result["mosfet_channels_available"])

    if result["new_boards_needed"]:
        st.warning(t("bom.boards_short", count=result["new_boards_needed"]))
    if result["mosfet_channels_needed"] > result["mosfet_channels_available"]:
        st.warning(
            t(
                "bom.mosfet_short",
                needed=result["mosfet_channels_needed"],
                available=result["mosfet_channels_available"],
            )
        )

    st.dataframe(
        pd.DataFrame(
            [
                {
                    t("bom.col_component"): c["name"],
                    t("bom.col_type"): c["type_name"],
                    t("bom.col_pins_needed"): c["pins_needed"],
                    t("bom.col_pin_type"): c["pin_type"],
                    t("bom.col_mode"): c["pin_mode"],
                    t("bom.col_pwm"): c["pwm_required"],
                    t("bom.col_rail"): rail_label(c["power_rail"]),
                    t("bom.col_allocations"): _allocation_text(c["allocations"]),
                }
                for c in result["components"]
            ]
        ),
        use_container_width=True,
        hide_index=True,
    )

    if not is_edit(state):
        return
    allocatable = sum(len(a["pins"]) for c in result["components"] for a in c["allocations"])
    if st.button(t("bom.apply", count=allocatable), disabled=allocatable == 0):
        if run_write(state, conn, lambda: apply_bom(conn, result), t("bom.applied", count=allocatable)):
            state.pop("bom_result", None)
