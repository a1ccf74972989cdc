#!/usr/bin/env python3

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from app.db import connect  # noqa: E402
from app.settings import configure_logging, load_settings  # noqa: E402
from calc_core.export_payload import export_all, import_all  # noqa: E402


def main(argv: list[str] | None = None) -> int:
    settings = load_settings()
    ap = argparse.ArgumentParser(description="Export the PanelForge DB to JSON, or replace it from a JSON export.")
    ap.add_argument("--db", default=str(settings.db_path), help="Path to SQLite DB (e.g. db/panelforge.sqlite)")
    group = ap.add_mutually_exclusive_group(required=True)
    group.add_argument("--out", help="Write a full export to this JSON path.")
    group.add_argument("--import", dest="import_path", help="Replace all data with this JSON export.")
    args = ap.parse_args(argv)

    configure_logging(settings.log_level)
    db_path = Path(args.db)

    if args.out:
        con = connect(db_path, read_only=True)
        try:
            payload = export_all(con)
        finally:
            con.close()
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2) + "\n",
            encoding="utf-8",
        )
        print(f"Exported to {out_path}")
        return 0

    data = json.loads(Path(args.import_path).read_text(encoding="utf-8"))
    con = connect(db_path)
    try:
        result = import_all(con, data)
    finally:
        con.close()
    print(result["message"])
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
