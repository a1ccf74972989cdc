from __future__ import annotations

import logging
import sqlite3

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

from api import api_bp
from app.errors import AppError

logger = logging.getLogger(__name__)


@api_bp.app_errorhandler(AppError)
def handle_app_error(exc: AppError):
    return jsonify(exc.to_dict()), exc.status_code


@api_bp.app_errorhandler(sqlite3.IntegrityError)
def handle_integrity_error(exc: sqlite3.IntegrityError):
    logger.warning("Integrity error on %s %s: %s", request.method, request.path, exc)
    return jsonify({"error": f"Constraint violation: {exc}"}), 409


@api_bp.app_errorhandler(HTTPException)
def handle_http_error(exc: HTTPException):
    return jsonify({"error": exc.description or exc.name}), exc.code


@api_bp.app_errorhandler(Exception)
def handle_unexpected(exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.path)
    return jsonify({"error": "Internal server error"}), 500


@api_bp.after_app_request
def log_request(response):
    logger.debug("%s %s -> %s", request.method, request.path, response.status_code)
    return response
