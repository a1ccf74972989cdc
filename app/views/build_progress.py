from __future__ import annotations

import pandas as pd
import streamlit as st

from app.domain import BUILD_STATUSES
from app.i18n import t
from app.store.component_instances import list_instances
from app.ui_components import is_edit, run_write
from calc_core.build_progress import build_progress, update_component_status


def render(conn, state: dict) -> None:
    st.header(t("progress.header"))
    progress = build_progress(conn)
    overall = progress["overall"]
    st.progress(
        overall["percentage"] / 100,
        text=t("progress.overall", completed=overall["completed"], total=overall["total"], pct=overall["percentage"]),
    )

    rows = [
        {
            t("progress.col_section"): s["section_name"],
            t("progress.col_total"): s["total"],
            t("progress.col_planned"): s["planned"],
            t("progress.col_in_progress"): s["in_progress"],
            t("progress.col_complete"): s["complete"],
            t("progress.col_issues"): s["has_issues"],
            t("progress.col_pins_wired"): f"{s['pin_stats']['wired']}/{s['pin_stats']['total']}",
            t("progress.col_percentage"): s["percentage"],
        }
        for s in progress["sections"]
    ]
    if rows:
        st.dataframe(
            pd.DataFrame(rows),
            use_container_width=True,
            hide_index=True,
            column_config={
                t("progress.col_percentage"): st.column_config.ProgressColumn(
                    min_value=0, max_value=100, format="%d%%"
                ),
            },
        )

    if not is_edit(state):
        return
    st.subheader(t("progress.update_header"))
    st.caption(t("progress.cascade_hint"))
    instances = list_instances(conn)
    if not instances:
        st.info(t("calibration.no_components"))
        return
    labels = {i["id"]: f"{i['panel_section']['name']} / {i['name']} ({i['build_status']})" for i in instances}
    with st.form("component_status_form"):
        instance_id = st.selectbox(t("progress.component"), list(labels), format_func=labels.get)
        status = st.selectbox(t("progress.new_status"), BUILD_STATUSES)
        if st.form_submit_button(t("progress.apply")):
            if run_write(
                state, conn, lambda: update_component_status(conn, instance_id, status), t("progress.updated")
            ):
                st.rerun()
