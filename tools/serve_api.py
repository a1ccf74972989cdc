#!/usr/bin/env python3

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from api import create_app  # noqa: E402
from app.settings import load_settings  # noqa: E402


def main(argv: list[str] | None = None) -> int:
    settings = load_settings()
    ap = argparse.ArgumentParser(description="Run the PanelForge REST API (Flask development server).")
    ap.add_argument("--db", default=str(settings.db_path), help="Path to SQLite DB.")
    ap.add_argument("--host", default=settings.api_host)
    ap.add_argument("--port", type=int, default=settings.api_port)
    ap.add_argument("--debug", action="store_true")
    args = ap.parse_args(argv)

    app = create_app(args.db)
    app.run(host=args.host, port=args.port, debug=args.debug)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
