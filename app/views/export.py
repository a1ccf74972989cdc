from __future__ import annotations

import json
from datetime import datetime

import streamlit as st

from app.i18n import t
from app.ui_components import is_edit, run_write
from calc_core.export_payload import EXPORT_KEYS, export_all, import_all


def render(conn, state: dict) -> None:
    st.header(t("export.header"))

    st.subheader(t("export.json_header"))
    st.caption(t("export.json_caption"))
    payload = export_all(conn)
    st.caption(", ".join(f"{key}={len(payload[key])}" for key in EXPORT_KEYS))
    st.download_button(
        t("export.download"),
        data=json.dumps(payload, ensure_ascii=False, indent=2) + "\n",
        file_name=f"panelforge-export-{datetime.now().strftime('%Y%m%d')}.json",
        mime="application/json",
    )

    st.subheader(t("export.import_header"))
    if not is_edit(state):
        st.info(t("common.edit_required"))
        return
    st.warning(t("export.import_warning"))
    uploaded = st.file_uploader(t("export.upload"), type=["json"])
    confirm = st.checkbox(t("export.confirm_import"))
    if st.button(t("export.import_button"), disabled=uploaded is None or not confirm):
        try:
            data = json.loads(uploaded.getvalue().decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            st.error(t("export.invalid_file", error=exc))
            return
        if run_write(state, conn, lambda: import_all(conn, data), t("export.imported")):
            st.rerun()
