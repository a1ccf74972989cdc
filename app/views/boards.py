"""Arduino boards and MOSFET driver boards."""
from __future__ import annotations

import pandas as pd
import streamlit as st

from app.domain import (
    MEGA_2560_ANALOG_PINS,
    MEGA_2560_DIGITAL_PINS,
    MEGA_2560_PWM_PINS,
    MOSFET_DEFAULT_CHANNELS,
)
from app.i18n import t
from app.store.boards import create_board, delete_board, list_boards, update_board
from app.store.mosfet import create_mosfet_board, delete_mosfet_board, list_mosfet_boards, update_mosfet_board
from app.ui_components import is_edit, run_write


def _parse_pwm(text: str) -> list[int] | None:
    try:
        return [int(p) for p in text.replace(" ", "").split(",") if p]
    except ValueError:
        return None


def _board_form(conn, state: dict, board: dict | None) -> None:
    key = board["id"] if board else "new"
    with st.form(f"board_form_{key}"):
        name = st.text_input(t("boards.name"), value=(board or {}).get("name", ""))
        board_type = st.text_input(t("boards.board_type"), value=(board or {}).get("board_type", "Arduino Mega 2560"))
        col1, col2 = st.columns(2)
        with col1:
            digital = st.number_input(
                t("boards.digital_pins"),
                min_value=1,
                max_value=100,
                value=int((board or {}).get("digital_pin_count", MEGA_2560_DIGITAL_PINS)),
            )
        with col2:
            analog = st.number_input(
                t("boards.analog_pins"),
                min_value=0,
                max_value=100,
                value=int((board or {}).get("analog_pin_count", MEGA_2560_ANALOG_PINS)),
            )
        pwm_text = st.text_input(
            t("boards.pwm_pins"),
            value=", ".join(str(p) for p in (board or {}).get("pwm_pins", MEGA_2560_PWM_PINS)),
        )
        notes = st.text_area(t("boards.notes"), value=(board or {}).get("notes") or "")
        submitted = st.form_submit_button(t("boards.save") if board else t("boards.create"))
    if not submitted:
        return
    pwm = _parse_pwm(pwm_text)
    if pwm is None:
        st.error(t("boards.pwm_invalid"))
        return
    data = {
        "name": name.strip(),
        "board_type": board_type.strip(),
        "digital_pin_count": int(digital),
        "analog_pin_count": int(analog),
        "pwm_pins": pwm,
        "notes": notes.strip() or None,
    }
    if board:
        run_write(state, conn, lambda: update_board(conn, board["id"], data), t("boards.saved"))
    else:
        run_write(state, conn, lambda: create_board(conn, data), t("boards.created"))


def _arduino_section(conn, state: dict) -> None:
    st.subheader(t("boards.arduino_header"))
    boards = list_boards(conn)
    if boards:
        rows = []
        for b in boards:
            avail = b["pin_availability"]
            rows.append(
                {
                    t("boards.name"): b["name"],
                    t("boards.board_type"): b["board_type"],
                    t("boards.digital_used"): f"{avail['digital_used']}/{b['digital_pin_count']}",
                    t("boards.analog_used"): f"{avail['analog_used']}/{b['analog_pin_count']}",
                    t("boards.pwm_free"): avail["pwm_free"],
                }
            )
        st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)
    else:
        st.info(t("boards.empty"))

    if not is_edit(state):
        return
    with st.expander(t("boards.create_header"), expanded=not boards):
        _board_form(conn, state, None)
    if not boards:
        return
    by_id = {b["id"]: b for b in boards}
    board_id = st.selectbox(t("boards.edit_select"), list(by_id), format_func=lambda i: by_id[i]["name"])
    with st.expander(t("boards.edit_header", name=by_id[board_id]["name"]), expanded=False):
        _board_form(conn, state, by_id[board_id])
        confirm = st.checkbox(t("boards.confirm_delete"), key=f"confirm_delete_board_{board_id}")
        if st.button(t("boards.delete"), disabled=not confirm, key=f"delete_board_{board_id}"):
            if run_write(state, conn, lambda: delete_board(conn, board_id), t("boards.deleted")):
                st.rerun()


def _mosfet_section(conn, state: dict) -> None:
    st.subheader(t("boards.mosfet_header"))
    mosfet_boards = list_mosfet_boards(conn)
    for mb in mosfet_boards:
        with st.expander(
            t("boards.mosfet_summary", name=mb["name"], used=mb["used_channels"], total=len(mb["channels"])),
            expanded=False,
        ):
            rows = []
            for ch in mb["channels"]:
                pin = ch["pin_assignment"]
                rows.append(
                    {
                        t("boards.channel"): ch["channel_number"],
                        t("boards.channel_pin"): f"{pin['board']['name']} {pin['pin_number']}" if pin else "",
                        t("boards.channel_component"): ((pin or {}).get("component_instance") or {}).get("name", ""),
                    }
                )
            st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)
            if mb.get("notes"):
                st.caption(mb["notes"])
            if is_edit(state):
                with st.form(f"mosfet_form_{mb['id']}"):
                    name = st.text_input(t("boards.name"), value=mb["name"])
                    count = st.number_input(
                        t("boards.channel_count"), min_value=1, max_value=64, value=int(mb["channel_count"])
                    )
                    notes = st.text_area(t("boards.notes"), value=mb.get("notes") or "")
                    if st.form_submit_button(t("boards.save")):
                        data = {"name": name.strip(), "channel_count": int(count), "notes": notes.strip() or None}
                        run_write(state, conn, lambda: update_mosfet_board(conn, mb["id"], data), t("boards.saved"))
                confirm = st.checkbox(t("boards.confirm_delete"), key=f"confirm_delete_mosfet_{mb['id']}")
                if st.button(t("boards.delete"), disabled=not confirm, key=f"delete_mosfet_{mb['id']}"):
                    if run_write(state, conn, lambda: delete_mosfet_board(conn, mb["id"]), t("boards.deleted")):
                        st.rerun()
    if not mosfet_boards:
        st.info(t("boards.mosfet_empty"))

    if is_edit(state):
        with st.expander(t("boards.mosfet_create_header"), expanded=False):
            with st.form("mosfet_create_form", clear_on_submit=True):
                name = st.text_input(t("boards.name"))
                count = st.number_input(
                    t("boards.channel_count"), min_value=1, max_value=64, value=MOSFET_DEFAULT_CHANNELS
                )
                notes = st.text_area(t("boards.notes"))
                if st.form_submit_button(t("boards.create")):
                    data = {"name": name.strip(), "channel_count": int(count), "notes": notes.strip() or None}
                    run_write(state, conn, lambda: create_mosfet_board(conn, data), t("boards.created"))


def render(conn, state: dict) -> None:
    st.header(t("boards.header"))
    _arduino_section(conn, state)
    st.divider()
    _mosfet_section(conn, state)
