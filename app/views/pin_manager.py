"""Pin Manager: filterable grid over every pin assignment with inline edits."""
from __future__ import annotations

from typing import Any

import pandas as pd
import streamlit as st

from app.domain import PIN_MODES, POWER_RAILS, WIRING_STATUSES, pin_type_for, rail_label
from app.errors import AppError
from app.i18n import t
from app.store.boards import list_boards
from app.store.component_instances import list_instances
from app.store.mosfet import list_mosfet_boards
from app.store.pins import bulk_update_pins, create_pin, delete_pin, list_pins, update_pin
from app.store.sections import list_sections
from app.ui_components import is_edit, run_write
from app.validation import validate_pin_rows

EDITABLE = ("pin_mode", "power_rail", "wiring_status", "description", "notes")


def _filters(conn) -> dict[str, Any]:
    boards = {b["id"]: b["name"] for b in list_boards(conn)}
    sections = {s["id"]: s["name"] for s in list_sections(conn)}
    dash = t("common.all")
    cols = st.columns(6)
    with cols[0]:
        board_id = st.selectbox(t("pins.col_board"), [None, *boards], format_func=lambda i: dash if i is None else boards[i])
    with cols[1]:
        section_id = st.selectbox(
            t("pins.col_section"), [None, *sections], format_func=lambda i: dash if i is None else sections[i]
        )
    with cols[2]:
        rail = st.selectbox(t("pins.col_rail"), [None, *POWER_RAILS], format_func=lambda r: dash if r is None else rail_label(r))
    with cols[3]:
        wiring = st.selectbox(t("pins.col_wiring"), [None, *WIRING_STATUSES], format_func=lambda w: dash if w is None else w)
    with cols[4]:
        assigned = st.selectbox(
            t("pins.assigned"),
            [None, "true", "false"],
            format_func=lambda a: {None: dash, "true": t("common.yes"), "false": t("common.no")}[a],
        )
    with cols[5]:
        search = st.text_input(t("pins.search"))
    return {
        "board_id": board_id,
        "panel_section_id": section_id,
        "power_rail": rail,
        "wiring_status": wiring,
        "assigned": assigned,
        "search": search.strip(),
    }


def pins_frame(pins: list[dict[str, Any]]) -> pd.DataFrame:
    rows = []
    for p in pins:
        inst = p.get("component_instance") or {}
        channel = p.get("mosfet_channel")
        rows.append(
            {
                "id": p["id"],
                "board": p["board"]["name"],
                "pin_number": p["pin_number"],
                "pin_type": p["pin_type"],
                "pin_mode": p["pin_mode"],
                "power_rail": p["power_rail"],
                "wiring_status": p["wiring_status"],
                "component": inst.get("name") or "",
                "section": (inst.get("panel_section") or {}).get("name") or "",
                "mosfet": f"{channel['mosfet_board']['name']} #{channel['channel_number']}" if channel else "",
                "lvar": (p.get("mobiflight_mapping") or {}).get("variable_name") or "",
                "description": p.get("description") or "",
                "notes": p.get("notes") or "",
            }
        )
    columns = [
        "id", "board", "pin_number", "pin_type", "pin_mode", "power_rail", "wiring_status",
        "component", "section", "mosfet", "lvar", "description", "notes",
    ]
    return pd.DataFrame(rows, columns=columns)


def changed_rows(original: pd.DataFrame, edited: pd.DataFrame) -> dict[str, dict[str, Any]]:
    """pin id -> {column: new value} for editable columns that differ."""
    before = original.set_index("id")
    out: dict[str, dict[str, Any]] = {}
    for _, row in edited.iterrows():
        pin_id = row["id"]
        if pin_id not in before.index:
            continue
        diff = {}
        for col in EDITABLE:
            new = row[col]
            if isinstance(new, float) and pd.isna(new):
                new = ""
            if new != before.at[pin_id, col]:
                diff[col] = (new or None) if col in ("description", "notes") else new
        if diff:
            out[pin_id] = diff
    return out


def _save_changes(conn, changes: dict[str, dict[str, Any]]) -> None:
    for pin_id, data in changes.items():
        update_pin(conn, pin_id, data)


def _grid(conn, state: dict, pins: list[dict[str, Any]]) -> None:
    df = pins_frame(pins)
    edit = is_edit(state)
    edited = st.data_editor(
        df,
        hide_index=True,
        num_rows="fixed",
        use_container_width=True,
        disabled=True if not edit else ["id", "board", "pin_number", "pin_type", "component", "section", "mosfet", "lvar"],
        column_config={
            "id": None,
            "board": st.column_config.TextColumn(t("pins.col_board")),
            "pin_number": st.column_config.TextColumn(t("pins.col_pin")),
            "pin_type": st.column_config.TextColumn(t("pins.col_type")),
            "pin_mode": st.column_config.SelectboxColumn(t("pins.col_mode"), options=list(PIN_MODES), required=True),
            "power_rail": st.column_config.SelectboxColumn(t("pins.col_rail"), options=list(POWER_RAILS), required=True),
            "wiring_status": st.column_config.SelectboxColumn(
                t("pins.col_wiring"), options=list(WIRING_STATUSES), required=True
            ),
            "component": st.column_config.TextColumn(t("pins.col_component")),
            "section": st.column_config.TextColumn(t("pins.col_section")),
            "mosfet": st.column_config.TextColumn(t("pins.col_mosfet")),
            "lvar": st.column_config.TextColumn(t("pins.col_lvar")),
            "description": st.column_config.TextColumn(t("pins.col_description")),
            "notes": st.column_config.TextColumn(t("pins.col_notes")),
        },
        key="pin_grid",
    )
    if not edit:
        return

    result = validate_pin_rows(edited, translator=t)
    for warning in result.warnings:
        st.warning(warning)
    if result.has_errors:
        st.error(t("pins.grid_invalid"))
        for err in result.errors:
            st.write(f"- {err}")

    changes = changed_rows(df, edited)
    st.caption(t("pins.pending_changes", count=len(changes)))
    if st.button(t("pins.save_changes"), disabled=result.has_errors or not changes):
        if run_write(state, conn, lambda: _save_changes(conn, changes), t("pins.saved", count=len(changes))):
            st.rerun()


def _bulk_form(conn, state: dict, pins: list[dict[str, Any]]) -> None:
    labels = {p["id"]: f"{p['board']['name']} {p['pin_number']}" for p in pins}
    with st.form("pin_bulk_form"):
        ids = st.multiselect(t("pins.bulk_select"), list(labels), format_func=labels.get)
        col1, col2 = st.columns(2)
        with col1:
            wiring = st.selectbox(t("pins.col_wiring"), [None, *WIRING_STATUSES], format_func=lambda w: t("common.unchanged") if w is None else w)
        with col2:
            rail = st.selectbox(
                t("pins.col_rail"), [None, *POWER_RAILS], format_func=lambda r: t("common.unchanged") if r is None else rail_label(r)
            )
        if st.form_submit_button(t("pins.bulk_apply")):
            data = {k: v for k, v in {"wiring_status": wiring, "power_rail": rail}.items() if v is not None}
            run_write(
                state,
                conn,
                lambda: bulk_update_pins(conn, {"ids": ids, "data": data}),
                t("pins.bulk_done", count=len(ids)),
            )


def _create_form(conn, state: dict) -> None:
    boards = {b["id"]: b["name"] for b in list_boards(conn)}
    if not boards:
        st.info(t("boards.empty"))
        return
    instances = {i["id"]: f"{i['panel_section']['name']} / {i['name']}" for i in list_instances(conn)}
    with st.form("pin_create_form", clear_on_submit=True):
        col1, col2, col3 = st.columns(3)
        with col1:
            board_id = st.selectbox(t("pins.col_board"), list(boards), format_func=boards.get)
        with col2:
            pin_number = st.text_input(t("pins.col_pin"), placeholder="D22")
        with col3:
            mode = st.selectbox(t("pins.col_mode"), PIN_MODES)
        instance_id = st.selectbox(
            t("pins.col_component"), [None, *instances], format_func=lambda i: t("common.dash") if i is None else instances[i]
        )
        rail = st.selectbox(t("pins.col_rail"), POWER_RAILS, index=POWER_RAILS.index("NONE"), format_func=rail_label)
        description = st.text_input(t("pins.col_description"))
        if st.form_submit_button(t("pins.create")):
            number = pin_number.strip().upper()
            data = {
                "board_id": board_id,
                "pin_number": number,
                "pin_type": pin_type_for(number),
                "pin_mode": mode,
                "component_instance_id": instance_id,
                "power_rail": rail,
                "description": description.strip() or None,
            }
            run_write(state, conn, lambda: create_pin(conn, data), t("pins.created", pin=number))


def _mosfet_form(conn, state: dict, pins: list[dict[str, Any]]) -> None:
    labels = {p["id"]: f"{p['board']['name']} {p['pin_number']}" for p in pins}
    channels: dict[str | None, str] = {None: t("pins.no_channel")}
    for mb in list_mosfet_boards(conn):
        for ch in mb["channels"]:
            used = ch["pin_assignment"]
            suffix = f" ({used['board']['name']} {used['pin_number']})" if used else ""
            channels[ch["id"]] = f"{mb['name']} #{ch['channel_number']}{suffix}"
    with st.form("pin_mosfet_form"):
        pin_id = st.selectbox(t("pins.select_pin"), list(labels), format_func=labels.get)
        channel_id = st.selectbox(t("pins.col_mosfet"), list(channels), format_func=channels.get)
        if st.form_submit_button(t("pins.assign_channel")):
            run_write(
                state,
                conn,
                lambda: update_pin(conn, pin_id, {"mosfet_channel_id": channel_id}),
                t("pins.channel_assigned"),
            )


def _delete_form(conn, state: dict, pins: list[dict[str, Any]]) -> None:
    labels = {p["id"]: f"{p['board']['name']} {p['pin_number']}" for p in pins}
    pin_id = st.selectbox(t("pins.select_pin"), list(labels), format_func=labels.get, key="pin_delete_select")
    confirm = st.checkbox(t("pins.confirm_delete"), key="pin_delete_confirm")
    if st.button(t("pins.delete"), disabled=not confirm):
        if run_write(state, conn, lambda: delete_pin(conn, pin_id), t("pins.deleted")):
            st.rerun()


def render(conn, state: dict) -> None:
    st.header(t("pins.header"))
    try:
        pins = list_pins(conn, _filters(conn))
    except AppError as exc:
        st.error(exc.message)
        return

    st.caption(t("pins.count", count=len(pins)))
    if pins:
        _grid(conn, state, pins)
    else:
        st.info(t("pins.empty"))

    if not is_edit(state):
        return
    with st.expander(t("pins.create_header"), expanded=False):
        _create_form(conn, state)
    if not pins:
        return
    with st.expander(t("pins.bulk_header"), expanded=False):
        _bulk_form(conn, state, pins)
    with st.expander(t("pins.mosfet_header"), expanded=False):
        _mosfet_form(conn, state, pins)
    with st.expander(t("pins.delete_header"), expanded=False):
        _delete_form(conn, state, pins)
