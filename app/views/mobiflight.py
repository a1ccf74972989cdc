"""MobiFlight: per-board device preview, JSON export and pin variable mappings."""
from __future__ import annotations

import json

import pandas as pd
import streamlit as st

from app.domain import EVENT_TYPES, VARIABLE_TYPES
from app.errors import AppError
from app.i18n import t
from app.store.boards import list_boards
from app.store.mobiflight import delete_mapping, upsert_mapping
from app.store.pins import list_pins
from app.ui_components import is_edit, run_write
from calc_core.lvar_reference import load_reference
from calc_core.mobiflight import board_devices, export_board


def _mapping_editor(conn, state: dict, board_id: str) -> None:
    pins = [p for p in list_pins(conn, {"board_id": board_id}) if p["component_instance"]]
    if not pins:
        st.info(t("mobiflight.no_assigned_pins"))
        return
    labels = {p["id"]: f"{p['pin_number']} · {p['component_instance']['name']}" for p in pins}
    pin_id = st.selectbox(t("mobiflight.select_pin"), list(labels), format_func=labels.get)
    pin = next(p for p in pins if p["id"] == pin_id)
    mapping = pin.get("mobiflight_mapping") or {}

    suggestions: list[str] = []
    try:
        reference = load_reference(state.get("lvar_file", ""))
        suggestions = [e.name for e in reference.suggest_for_pin(conn, pin_id)]
    except (OSError, ValueError) as exc:
        st.caption(t("mobiflight.reference_unavailable", error=exc))
    if suggestions:
        picked = st.selectbox(t("mobiflight.suggestions"), [None, *suggestions], format_func=lambda s: t("common.dash") if s is None else s)
    else:
        picked = None

    with st.form(f"mapping_form_{pin_id}"):
        variable = st.text_input(t("mobiflight.variable_name"), value=picked or mapping.get("variable_name") or "")
        col1, col2 = st.columns(2)
        with col1:
            var_type = st.selectbox(
                t("mobiflight.variable_type"),
                VARIABLE_TYPES,
                index=VARIABLE_TYPES.index(mapping.get("variable_type") or "LVAR"),
            )
        with col2:
            event_type = st.selectbox(
                t("mobiflight.event_type"),
                EVENT_TYPES,
                index=EVENT_TYPES.index(mapping.get("event_type") or "INPUT_ACTION"),
            )
        params_text = st.text_area(
            t("mobiflight.config_params"),
            value=json.dumps(mapping["config_params"], indent=2) if mapping.get("config_params") else "",
        )
        notes = st.text_input(t("mobiflight.notes"), value=mapping.get("notes") or "")
        submitted = st.form_submit_button(t("mobiflight.save_mapping"))
    if submitted:
        try:
            params = json.loads(params_text) if params_text.strip() else None
        except json.JSONDecodeError as exc:
            st.error(t("mobiflight.params_invalid", error=exc))
            return
        data = {
            "variable_name": variable.strip(),
            "variable_type": var_type,
            "event_type": event_type,
            "config_params": params,
            "notes": notes.strip() or None,
        }
        run_write(state, conn, lambda: upsert_mapping(conn, pin_id, data), t("mobiflight.mapping_saved"))

    if mapping and st.button(t("mobiflight.delete_mapping")):
        if run_write(state, conn, lambda: delete_mapping(conn, pin_id), t("mobiflight.mapping_deleted")):
            st.rerun()


def render(conn, state: dict) -> None:
    st.header(t("mobiflight.header"))
    boards = {b["id"]: b["name"] for b in list_boards(conn)}
    if not boards:
        st.info(t("boards.empty"))
        return
    board_id = st.selectbox(t("mobiflight.board"), list(boards), format_func=boards.get)

    try:
        preview = board_devices(conn, board_id)
    except AppError as exc:
        st.error(exc.message)
        return

    st.metric(t("mobiflight.device_count"), preview["device_count"])
    if preview["devices"]:
        st.dataframe(pd.DataFrame(preview["devices"]), use_container_width=True, hide_index=True)
        unmapped = [d["pin_number"] for d in preview["devices"] if not d["variable_name"]]
        if unmapped:
            st.warning(t("mobiflight.unmapped", pins=", ".join(unmapped)))
        payload = export_board(conn, board_id)
        st.download_button(
            t("mobiflight.download"),
            data=json.dumps(payload, ensure_ascii=False, indent=2) + "\n",
            file_name=f"mobiflight-{preview['board_name']}.json",
            mime="application/json",
        )
    else:
        st.info(t("mobiflight.no_devices"))

    if is_edit(state):
        st.subheader(t("mobiflight.mapping_header"))
        _mapping_editor(conn, state, board_id)
