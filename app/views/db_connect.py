from __future__ import annotations

from pathlib import Path
import shutil
from datetime import datetime
import streamlit as st

from app import db
from app.i18n import t
from tools.manage_db import ensure_migrations, seed


def _create(state: dict, db_path: str, *, with_seed: bool) -> None:
    try:
        p = Path(db_path)
        applied = ensure_migrations(p)
        if with_seed:
            seed(p)
        st.success(t("db_connect.created", migrations=", ".join(applied) or t("common.none")))
        db.update_state_after_write(state, db_path)
    except Exception as exc:  # pragma: no cover - UI error path
        st.error(t("db_connect.create_failed", error=exc))


def render(conn, state: dict) -> None:
    st.header(t("db_connect.header"))

    db_path = state.get("db_path")
    st.write(t("db_connect.current_path", path=db_path))

    if not db_path:
        st.error(t("db_connect.empty_path"))
        return

    is_edit = state.get("mode_effective") == "EDIT"

    if not Path(db_path).exists():
        st.warning(t("db_connect.missing_file"))
        if not is_edit:
            st.info(t("db_connect.edit_to_create"))
            return

        st.subheader(t("db_connect.create_header"))
        with_seed = st.checkbox(t("db_connect.with_seed"), value=True)
        confirm = st.checkbox(t("db_connect.confirm_create"))
        if st.button(t("db_connect.create_button"), disabled=not confirm):
            _create(state, db_path, with_seed=with_seed)
        return

    schema = db.schema_status(conn)
    if schema["missing_tables"] or schema.get("missing_columns"):
        st.error(t("db_connect.schema_incompatible"))
        if schema["missing_tables"]:
            st.write(t("db_connect.missing_tables"))
            st.code(", ".join(schema["missing_tables"]))
        if schema.get("missing_columns"):
            st.write(t("db_connect.missing_columns"))
            for table, cols in schema["missing_columns"].items():
                st.code(f"{table}: " + ", ".join(cols))
    else:
        st.success(t("db_connect.schema_ok"))
        counts = db.project_counts(conn)
        st.caption(", ".join(f"{k}={v}" for k, v in counts.items()))

    if schema["has_migrations"]:
        st.write(t("db_connect.applied_migrations", versions=", ".join(schema["migrations"])))
    else:
        st.warning(t("db_connect.no_migrations_table"))

    if not is_edit:
        st.info(t("db_connect.edit_to_migrate"))
        return

    st.subheader(t("db_connect.migrations_header"))
    confirm = st.checkbox(t("db_connect.confirm_migrations"))
    if st.button(t("db_connect.apply_migrations"), disabled=not confirm):
        try:
            applied = ensure_migrations(Path(db_path))
            st.success(t("db_connect.migrations_applied", migrations=", ".join(applied) or t("common.none")))
            db.update_state_after_write(state, db_path, conn)
        except Exception as exc:  # pragma: no cover - UI error path
            st.error(t("db_connect.migrations_failed", error=exc))

    st.subheader(t("db_connect.seed_header"))
    st.caption(t("db_connect.seed_caption"))
    if st.button(t("db_connect.seed_button")):
        try:
            counts = seed(Path(db_path))
            st.success(t("db_connect.seeded", counts=", ".join(f"{k}={v}" for k, v in counts.items())))
            db.update_state_after_write(state, db_path, conn)
        except Exception as exc:  # pragma: no cover - UI error path
            st.error(t("db_connect.seed_failed", error=exc))

    st.subheader(t("db_connect.recreate_header"))
    st.caption(t("db_connect.recreate_caption"))
    with_seed = st.checkbox(t("db_connect.with_seed"), value=True, key="recreate_with_seed")
    confirm_recreate = st.checkbox(t("db_connect.confirm_recreate"))
    if st.button(t("db_connect.recreate_button"), disabled=not confirm_recreate):
        try:
            conn.close()
            p = Path(db_path)
            ts = datetime.now().strftime("%Y%m%d_%H%M%S")
            backup = p.with_suffix(p.suffix + f".bak_{ts}")
            shutil.copy2(p, backup)
            p.unlink()
            ensure_migrations(p)
            if with_seed:
                seed(p)
            st.success(t("db_connect.recreated", backup=backup))
            db.update_state_after_write(state, db_path)
        except Exception as exc:  # pragma: no cover - UI error path
            st.error(t("db_connect.recreate_failed", error=exc))
