from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

DEFAULT_DB_PATH = ROOT / "db" / "panelforge.sqlite"
DEFAULT_PANEL_IMAGE = ROOT / "assets" / "overhead-panel.png"
DEFAULT_LVAR_FILE = ROOT / "data" / "bae146_ovhd_lvars.json"
MIGRATIONS_DIR = ROOT / "db" / "migrations"
SEED_SQL_PATH = ROOT / "db" / "seed.sql"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    db_path: Path
    panel_image: Path
    lvar_file: Path
    log_level: str
    api_host: str
    api_port: int


def _env_path(name: str, default: Path) -> Path:
    value = os.environ.get(name, "").strip()
    return Path(value) if value else default


def load_settings() -> Settings:
    port_raw = os.environ.get("PANELFORGE_API_PORT", "").strip()
    try:
        api_port = int(port_raw) if port_raw else 3001
    except ValueError as exc:
        raise ValueError(f"PANELFORGE_API_PORT must be an integer, got {port_raw!r}") from exc
    return Settings(
        db_path=_env_path("PANELFORGE_DB", DEFAULT_DB_PATH),
        panel_image=_env_path("PANELFORGE_PANEL_IMAGE", DEFAULT_PANEL_IMAGE),
        lvar_file=_env_path("PANELFORGE_LVAR_FILE", DEFAULT_LVAR_FILE),
        log_level=os.environ.get("PANELFORGE_LOG_LEVEL", "INFO").strip().upper() or "INFO",
        api_host=os.environ.get("PANELFORGE_API_HOST", "127.0.0.1").strip() or "127.0.0.1",
        api_port=api_port,
    )


def configure_logging(level: str = "INFO") -> None:
    """basicConfig is a no-op once the root logger has handlers."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
