"""LVAR reference browser for the overhead panel."""
from __future__ import annotations

import pandas as pd
import streamlit as st

from app.i18n import t
from calc_core.lvar_reference import load_reference


def render(conn, state: dict) -> None:
    st.header(t("reference.header"))
    path = state.get("lvar_file", "")
    try:
        reference = load_reference(path)
    except (OSError, ValueError) as exc:
        st.error(t("reference.load_failed", path=path, error=exc))
        return

    sections = {s["code"]: f"{s['label']} ({s['count']})" for s in reference.sections()}
    col1, col2 = st.columns([1, 2])
    with col1:
        code = st.selectbox(
            t("reference.section"), [None, *sections], format_func=lambda c: t("common.all") if c is None else sections[c]
        )
    with col2:
        query = st.text_input(t("reference.search"))

    if query.strip():
        entries = reference.search(query.strip(), code)
    elif code:
        entries = reference.section_entries(code)
    else:
        st.info(t("reference.hint"))
        st.dataframe(pd.DataFrame(reference.sections()), use_container_width=True, hide_index=True)
        return

    st.caption(t("reference.count", count=len(entries)))
    if entries:
        st.dataframe(pd.DataFrame([e.to_dict() for e in entries]), use_container_width=True, hide_index=True)
