"""Build journal: dated notes, optionally linked to a section or component."""
from __future__ import annotations

from datetime import date

import streamlit as st

from app.errors import AppError
from app.i18n import t
from app.store.component_instances import list_instances
from app.store.journal import create_entry, delete_entry, list_entries, update_entry
from app.store.sections import list_sections
from app.ui_components import is_edit, run_write


def _entry_form(conn, state: dict, sections: dict, instances: dict, entry: dict | None) -> None:
    key = entry["id"] if entry else "new"
    with st.form(f"journal_form_{key}", clear_on_submit=entry is None):
        title = st.text_input(t("journal.title"), value=(entry or {}).get("title") or "")
        body = st.text_area(t("journal.body"), value=(entry or {}).get("body") or "")
        section_ids = [None, *sections]
        instance_ids = [None, *instances]
        col1, col2 = st.columns(2)
        with col1:
            section_id = st.selectbox(
                t("journal.section"),
                section_ids,
                index=section_ids.index((entry or {}).get("panel_section_id")) if (entry or {}).get("panel_section_id") in sections else 0,
                format_func=lambda i: t("common.dash") if i is None else sections[i],
            )
        with col2:
            instance_id = st.selectbox(
                t("journal.component"),
                instance_ids,
                index=instance_ids.index((entry or {}).get("component_instance_id")) if (entry or {}).get("component_instance_id") in instances else 0,
                format_func=lambda i: t("common.dash") if i is None else instances[i],
            )
        submitted = st.form_submit_button(t("journal.save") if entry else t("journal.add"))
    if not submitted:
        return
    data = {
        "title": title.strip() or None,
        "body": body,
        "panel_section_id": section_id,
        "component_instance_id": instance_id,
    }
    if entry:
        run_write(state, conn, lambda: update_entry(conn, entry["id"], data), t("journal.saved"))
    else:
        run_write(state, conn, lambda: create_entry(conn, data), t("journal.added"))


def render(conn, state: dict) -> None:
    st.header(t("journal.header"))
    sections = {s["id"]: s["name"] for s in list_sections(conn)}
    instances = {i["id"]: f"{i['panel_section']['name']} / {i['name']}" for i in list_instances(conn)}

    cols = st.columns(4)
    with cols[0]:
        search = st.text_input(t("journal.search"))
    with cols[1]:
        section_filter = st.selectbox(
            t("journal.section"), [None, *sections], format_func=lambda i: t("common.all") if i is None else sections[i]
        )
    with cols[2]:
        date_from = st.date_input(t("journal.date_from"), value=None)
    with cols[3]:
        date_to = st.date_input(t("journal.date_to"), value=None)

    edit = is_edit(state)
    if edit:
        with st.expander(t("journal.new_entry"), expanded=False):
            _entry_form(conn, state, sections, instances, None)

    try:
        entries = list_entries(
            conn,
            panel_section_id=section_filter,
            search=search.strip() or None,
            date_from=date_from.isoformat() if isinstance(date_from, date) else None,
            date_to=date_to.isoformat() if isinstance(date_to, date) else None,
        )
    except AppError as exc:
        st.error(exc.message)
        return

    if not entries:
        st.info(t("journal.empty"))
        return
    for entry in entries:
        links = [
            link["name"] for link in (entry.get("panel_section"), entry.get("component_instance")) if link
        ]
        header = f"{entry['created_at']} · {entry.get('title') or t('journal.untitled')}"
        with st.expander(header, expanded=False):
            if links:
                st.caption(" / ".join(links))
            st.markdown(entry["body"])
            if edit:
                _entry_form(conn, state, sections, instances, entry)
                if st.button(t("journal.delete"), key=f"journal_delete_{entry['id']}"):
                    if run_write(state, conn, lambda: delete_entry(conn, entry["id"]), t("journal.deleted")):
                        st.rerun()
