from __future__ import annotations

import sys
from pathlib import Path
import streamlit as st

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app import db  # noqa: E402
from app.i18n import t  # noqa: E402
from app.settings import load_settings  # noqa: E402
from app.views import (  # noqa: E402
    boards,
    bom,
    build_progress,
    calibration,
    component_library,
    db_connect,
    export,
    journal,
    mobiflight,
    overview,
    panel_map,
    pin_manager,
    power_budget,
    reference,
    section_calibration,
    wiring,
)

PAGES = {
    "nav.db_connect": db_connect,
    "nav.overview": overview,
    "nav.panel_map": panel_map,
    "nav.calibration": calibration,
    "nav.section_calibration": section_calibration,
    "nav.component_library": component_library,
    "nav.boards": boards,
    "nav.pin_manager": pin_manager,
    "nav.bom": bom,
    "nav.power_budget": power_budget,
    "nav.mobiflight": mobiflight,
    "nav.wiring": wiring,
    "nav.build_progress": build_progress,
    "nav.journal": journal,
    "nav.reference": reference,
    "nav.export": export,
}


def _init_state() -> None:
    settings = load_settings()
    state = st.session_state
    state.setdefault("db_path", str(settings.db_path))
    state.setdefault("panel_image", str(settings.panel_image))
    state.setdefault("lvar_file", str(settings.lvar_file))
    state.setdefault("lang", "EN")
    state.setdefault("mode", "READ_ONLY")
    state.setdefault("edit_confirm", False)
    state.setdefault("selected_section_id", None)
    state.setdefault("data_version", None)
    state.setdefault("db_mtime", None)
    state.setdefault("external_change", False)
    state.setdefault("pending_write_refresh", False)


def _detect_external_change(state: dict, db_path: str, conn) -> None:
    current_version = db.get_data_version(conn)
    current_mtime = db.get_db_mtime(db_path)
    external = False
    if state.get("data_version") is not None:
        if current_version != state["data_version"] or (
            state.get("db_mtime") is not None
            and current_mtime is not None
            and current_mtime != state["db_mtime"]
        ):
            if not state.get("pending_write_refresh", False):
                external = True
    state["data_version"] = current_version
    state["db_mtime"] = current_mtime
    state["external_change"] = external
    state["pending_write_refresh"] = False


def main() -> None:
    st.set_page_config(page_title="PanelForge", layout="wide")
    _init_state()
    state = st.session_state

    with st.sidebar:
        st.title(t("app.title"))
        st.text_input(t("sidebar.db_path"), key="db_path")
        st.radio(
            t("sidebar.mode"),
            ["READ_ONLY", "EDIT"],
            key="mode",
            format_func=lambda m: t(f"access_mode.{m.lower()}"),
        )
        if state["mode"] == "EDIT":
            st.checkbox(t("sidebar.edit_confirm"), key="edit_confirm")
        mode_effective = "EDIT" if state["mode"] == "EDIT" and state["edit_confirm"] else "READ_ONLY"
        state["mode_effective"] = mode_effective

    db_path = state["db_path"]
    if not Path(db_path).exists():
        st.error(t("db.not_found", path=db_path))
        st.info(t("db.go_connect"))
        db_connect.render(None, state)
        return

    conn = None
    try:
        conn = db.connect(db_path, read_only=mode_effective != "EDIT")
    except Exception as exc:  # pragma: no cover - UI error path
        st.error(t("db.connect_failed", error=exc))
        return

    try:
        _detect_external_change(state, db_path, conn)

        if state.get("external_change"):
            st.warning(t("db.external_change"))

        schema = db.schema_status(conn)
        with st.sidebar:
            page = st.radio(t("sidebar.navigation"), list(PAGES), format_func=t)

        if schema["missing_tables"] and page != "nav.db_connect":
            st.error(t("db.schema_incomplete"))
            db_connect.render(conn, state)
            return

        PAGES[page].render(conn, state)
    finally:
        if conn is not None:
            conn.close()


if __name__ == "__main__":
    main()
