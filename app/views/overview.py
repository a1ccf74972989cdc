from __future__ import annotations

import pandas as pd
import streamlit as st

from app import db
from app.domain import POWER_RAILS, rail_label
from app.i18n import t
from app.store.sections import section_summary
from calc_core.build_progress import build_progress


def render(conn, state: dict) -> None:
    st.header(t("overview.header"))
    counts = db.project_counts(conn)
    cols = st.columns(6)
    cols[0].metric(t("overview.sections"), counts["panel_sections"])
    cols[1].metric(t("overview.components"), counts["component_instances"])
    cols[2].metric(t("overview.boards"), counts["boards"])
    cols[3].metric(t("overview.pins"), counts["pin_assignments"])
    cols[4].metric(t("overview.mosfet_boards"), counts["mosfet_boards"])
    cols[5].metric(t("overview.journal"), counts["journal_entries"])

    overall = build_progress(conn)["overall"]
    st.progress(overall["percentage"] / 100, text=t("overview.overall_progress", pct=overall["percentage"]))

    summary = section_summary(conn)
    if not summary:
        st.info(t("overview.no_sections"))
        return

    rows = []
    for s in summary:
        row = {
            t("overview.col_section"): s["name"],
            t("overview.col_status"): s["build_status"],
            t("overview.col_components"): s["component_count"],
            t("overview.col_pins"): f"{s['pin_usage']['assigned']}/{s['pin_usage']['total']}",
            t("overview.col_progress"): s["build_progress"],
        }
        for rail in POWER_RAILS:
            row[rail_label(rail)] = s["power_breakdown"].get(rail, 0)
        rows.append(row)
    st.dataframe(
        pd.DataFrame(rows),
        use_container_width=True,
        hide_index=True,
        column_config={
            t("overview.col_progress"): st.column_config.ProgressColumn(min_value=0, max_value=100, format="%d%%"),
        },
    )
