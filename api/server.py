from __future__ import annotations

import logging
from pathlib import Path

from flask import Flask

from api import api_bp
from api.common import close_conn
from app.settings import configure_logging, load_settings

logger = logging.getLogger(__name__)


def create_app(db_path: str | Path | None = None, *, lvar_file: str | Path | None = None) -> Flask:
    """Flask app serving the /api blueprint against one SQLite file."""
    settings = load_settings()
    configure_logging(settings.log_level)

    app = Flask(__name__)
    app.config["DB_PATH"] = str(db_path or settings.db_path)
    app.config["LVAR_FILE"] = str(lvar_file or settings.lvar_file)
    app.json.sort_keys = False
    app.register_blueprint(api_bp)
    app.teardown_appcontext(close_conn)
    logger.info("API ready (db=%s)", app.config["DB_PATH"])
    return app
