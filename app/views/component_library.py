"""Component library: reusable component types and their per-pin layout."""
from __future__ import annotations

from typing import Any

import pandas as pd
import streamlit as st

from app.domain import COMPONENT_PIN_TYPES, PIN_MODES, POWER_RAILS, rail_label
from app.i18n import t
from app.store.component_types import (
    create_component_type,
    delete_component_type,
    list_component_types,
    update_component_type,
)
from app.ui_components import is_edit, run_write


def _pin_layout_frame(ctype: dict[str, Any] | None, count: int) -> pd.DataFrame:
    ctype = ctype or {}
    labels = list(ctype.get("pin_labels") or [])
    types = list(ctype.get("pin_types") or [])
    rails = list(ctype.get("pin_power_rails") or [])
    mosfet = list(ctype.get("pin_mosfet_required") or [])
    rows = []
    for i in range(count):
        rows.append(
            {
                "label": labels[i] if i < len(labels) else f"Pin {i + 1}",
                "pin_type": types[i] if i < len(types) else "DIGITAL",
                "power_rail": rails[i] if i < len(rails) else (ctype.get("default_power_rail") or "NONE"),
                "mosfet_required": bool(mosfet[i]) if i < len(mosfet) else False,
            }
        )
    return pd.DataFrame(rows, columns=["label", "pin_type", "power_rail", "mosfet_required"])


def _type_form(conn, state: dict, ctype: dict[str, Any] | None) -> None:
    key = ctype["id"] if ctype else "new"
    count = int(
        st.number_input(
            t("library.pin_count"),
            min_value=1,
            max_value=20,
            value=int(ctype["default_pin_count"]) if ctype else 1,
            step=1,
            key=f"type_pin_count_{key}",
        )
    )
    with st.form(f"type_form_{key}"):
        name = st.text_input(t("library.name"), value=(ctype or {}).get("name", ""))
        description = st.text_input(t("library.description"), value=(ctype or {}).get("description") or "")
        col1, col2, col3 = st.columns(3)
        with col1:
            rail = st.selectbox(
                t("library.default_rail"),
                POWER_RAILS,
                index=POWER_RAILS.index((ctype or {}).get("default_power_rail") or "NONE"),
                format_func=rail_label,
            )
        with col2:
            mode = st.selectbox(
                t("library.default_mode"),
                PIN_MODES,
                index=PIN_MODES.index((ctype or {}).get("default_pin_mode") or "INPUT"),
            )
        with col3:
            pwm = st.checkbox(t("library.pwm_required"), value=bool((ctype or {}).get("pwm_required")))
        col4, col5 = st.columns(2)
        with col4:
            typical = st.number_input(
                t("library.typical_ma"), min_value=0, value=int((ctype or {}).get("typical_current_ma") or 0)
            )
        with col5:
            standby = st.number_input(
                t("library.standby_ma"), min_value=0, value=int((ctype or {}).get("standby_current_ma") or 0)
            )
        layout = st.data_editor(
            _pin_layout_frame(ctype, count),
            hide_index=True,
            num_rows="fixed",
            use_container_width=True,
            column_config={
                "label": st.column_config.TextColumn(t("library.pin_label"), max_chars=50),
                "pin_type": st.column_config.SelectboxColumn(t("library.pin_type"), options=list(COMPONENT_PIN_TYPES)),
                "power_rail": st.column_config.SelectboxColumn(t("library.pin_rail"), options=list(POWER_RAILS)),
                "mosfet_required": st.column_config.CheckboxColumn(t("library.pin_mosfet")),
            },
            key=f"type_layout_{key}",
        )
        notes = st.text_area(t("library.notes"), value=(ctype or {}).get("notes") or "")
        submitted = st.form_submit_button(t("library.save") if ctype else t("library.create"))

    if not submitted:
        return
    data = {
        "name": name.strip(),
        "description": description.strip() or None,
        "default_pin_count": count,
        "pin_labels": [str(v) for v in layout["label"].tolist()],
        "pin_types": layout["pin_type"].tolist(),
        "pin_power_rails": layout["power_rail"].tolist(),
        "pin_mosfet_required": [bool(v) for v in layout["mosfet_required"].tolist()],
        "default_power_rail": rail,
        "default_pin_mode": mode,
        "pwm_required": bool(pwm),
        "typical_current_ma": int(typical),
        "standby_current_ma": int(standby),
        "notes": notes.strip() or None,
    }
    if ctype:
        run_write(state, conn, lambda: update_component_type(conn, ctype["id"], data), t("library.saved"))
    else:
        run_write(state, conn, lambda: create_component_type(conn, data), t("library.created"))


def render(conn, state: dict) -> None:
    st.header(t("library.header"))
    types = list_component_types(conn)

    if types:
        st.dataframe(
            pd.DataFrame(
                [
                    {
                        t("library.name"): ct["name"],
                        t("library.pin_count"): ct["default_pin_count"],
                        t("library.default_rail"): rail_label(ct.get("default_power_rail")),
                        t("library.default_mode"): ct.get("default_pin_mode"),
                        t("library.pwm_required"): bool(ct.get("pwm_required")),
                        t("library.typical_ma"): ct.get("typical_current_ma"),
                        t("library.standby_ma"): ct.get("standby_current_ma"),
                        t("library.usage"): ct["usage_count"],
                    }
                    for ct in types
                ]
            ),
            use_container_width=True,
            hide_index=True,
        )
    else:
        st.info(t("library.empty"))

    if not is_edit(state):
        return

    with st.expander(t("library.create_header"), expanded=not types):
        _type_form(conn, state, None)

    if not types:
        return
    by_id = {ct["id"]: ct for ct in types}
    type_id = st.selectbox(t("library.edit_select"), list(by_id), format_func=lambda i: by_id[i]["name"])
    ctype = by_id[type_id]
    with st.expander(t("library.edit_header", name=ctype["name"]), expanded=True):
        _type_form(conn, state, ctype)
        if ctype["usage_count"]:
            st.caption(t("library.in_use", count=ctype["usage_count"]))
        confirm = st.checkbox(t("library.confirm_delete"), key=f"confirm_delete_type_{type_id}")
        if st.button(t("library.delete"), disabled=not confirm, key=f"delete_type_{type_id}"):
            if run_write(state, conn, lambda: delete_component_type(conn, type_id), t("library.deleted")):
                st.rerun()
