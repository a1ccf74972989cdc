from __future__ import annotations

import streamlit as st

from app.i18n import t
from app.store.sections import list_sections, update_section
from app.views.calibration import calibration_editor


def render(conn, state: dict) -> None:
    st.header(t("section_calibration.header"))
    st.caption(t("section_calibration.caption"))
    sections = list_sections(conn)
    if not sections:
        st.info(t("overview.no_sections"))
        return
    calibration_editor(
        state,
        conn,
        records=sections,
        prefix="svg",
        label=lambda s: s["name"],
        save=lambda section_id, data: update_section(conn, section_id, data),
        overlay_key="section_calibration",
    )
