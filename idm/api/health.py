"""Operational endpoints under /internal (no JWT; network ACLs protect them)."""
import logging

from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from idm.core.database import DeadlineExceeded
from .helpers import query_context

logger = logging.getLogger(__name__)

bp = Blueprint("internal", __name__, url_prefix="/internal")


@bp.after_request
def mark_internal(response):
    response.headers["X-Internal-API"] = "true"
    return response


@bp.route("/info", methods=["GET"])
def info():
    """Application name and version from configuration."""
    cfg = current_app.config["APP_CONFIG"]
    return jsonify({"name": cfg.app_name, "version": cfg.app_version}), 200


@bp.route("/health", methods=["GET"])
def health():
    """Liveness of the process and its database connection."""
    database = current_app.config.get("DATABASE")
    if database is None:
        return jsonify({"status": "ERROR", "database": "NOT_CONNECTED"}), 503

    try:
        database.ping(query_context())
    except (SQLAlchemyError, DeadlineExceeded) as e:
        logger.error(f"Health check: database ping failed: {e}")
        return jsonify({"status": "ERROR", "database": "ERROR"}), 503

    return jsonify({"status": "OK", "database": "OK"}), 200
