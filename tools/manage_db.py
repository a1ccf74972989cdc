#!/usr/bin/env python3

from __future__ import annotations

import argparse
import logging
import sqlite3
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

# Allow running as "python tools/manage_db.py" (so repo root is importable)
sys.path.insert(0, str(ROOT))

from app.db import project_counts  # noqa: E402
from app.settings import MIGRATIONS_DIR, SEED_SQL_PATH, configure_logging, load_settings  # noqa: E402

logger = logging.getLogger("panelforge.manage_db")


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def ensure_migrations(db_path: Path, migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
    """Apply unapplied db/migrations/*.sql in name order; returns the versions applied now."""
    migration_files = sorted(migrations_dir.glob("*.sql"))
    if not migration_files:
        raise RuntimeError(f"No migrations found in {migrations_dir}")

    db_path.parent.mkdir(parents=True, exist_ok=True)
    con = sqlite3.connect(db_path)
    applied_now: list[str] = []
    try:
        con.execute("PRAGMA foreign_keys = ON;")

        # Ensure schema_migrations exists (bootstrap)
        con.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
              version TEXT PRIMARY KEY,
              applied_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
            """
        )

        applied = {
            row[0]
            for row in con.execute("SELECT version FROM schema_migrations").fetchall()
        }

        for mf in migration_files:
            version = mf.stem
            if version in applied:
                continue
            con.executescript(_read_text(mf))
            con.execute("INSERT INTO schema_migrations (version) VALUES (?)", (version,))
            con.commit()
            applied_now.append(version)
            logger.info("Applied migration %s", version)
    except Exception:
        con.rollback()
        raise
    finally:
        con.close()
    return applied_now


def seed(db_path: Path, seed_path: Path = SEED_SQL_PATH) -> dict[str, int]:
    """Load the overhead sections, component library, board Alpha and PSU defaults.

    The seed script only inserts rows whose unique name/slug is absent, so it is
    safe to re-run.
    """
    con = sqlite3.connect(db_path)
    con.row_factory = sqlite3.Row
    try:
        con.execute("PRAGMA foreign_keys = ON;")
        con.executescript(_read_text(seed_path))
        con.commit()
        return project_counts(con)
    except Exception:
        con.rollback()
        raise
    finally:
        con.close()


def main(argv: list[str] | None = None) -> int:
    settings = load_settings()
    ap = argparse.ArgumentParser(description="Create or migrate the PanelForge SQLite DB, optionally seeding it.")
    ap.add_argument("--db", default=str(settings.db_path), help="Path to SQLite DB (e.g. db/panelforge.sqlite)")
    ap.add_argument("--seed", action="store_true", help="Load the default BAe 146 overhead data.")
    args = ap.parse_args(argv)

    configure_logging(settings.log_level)
    db_path = Path(args.db)
    applied = ensure_migrations(db_path)
    print(f"Migrations applied: {', '.join(applied) if applied else 'none (up to date)'}")
    if args.seed:
        counts = seed(db_path)
        print("Seeded: " + ", ".join(f"{k}={v}" for k, v in counts.items()))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
