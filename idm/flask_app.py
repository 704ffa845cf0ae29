"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the Flask application with all blueprints, middleware, and configuration.
"""
from __future__ import annotations
import logging
from typing import Optional

from flask import Flask

from idm.config import AppConfig, load_settings
from idm.core.database import Database
from idm.core.employees import EmployeeRepository, EmployeeService
from idm.core.logging_setup import configure_logging
from idm.core.roles import RoleRepository, RoleService
from idm.core.validators import Validator

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(cfg: Optional[AppConfig] = None, database: Optional[Database] = None) -> Flask:
    """Create and configure Flask application.

    Args:
        cfg: Settings (default: load_settings() from the environment)
        database: Database gateway (default: pooled engine built from cfg).
            Building it does not open a connection.
    """
    cfg = cfg or load_settings()
    configure_logging(cfg)

    app = Flask(__name__)
    app.config["APP_CONFIG"] = cfg
    app.config["REQUEST_TIMEOUT_SECONDS"] = cfg.request_timeout_seconds

    if database is None:
        database = Database.from_config(cfg)
    app.config["DATABASE"] = database

    # Services share one validator; repositories borrow connections per call
    validator = Validator()
    app.config["EMPLOYEE_SERVICE"] = EmployeeService(EmployeeRepository(database), validator)
    app.config["ROLE_SERVICE"] = RoleService(RoleRepository(database), validator)

    # Register middleware/before_request handlers
    from idm.api.middleware import register_middleware
    register_middleware(app)

    # Register blueprints (auth guard runs after the request id is assigned)
    from idm.api import health, router
    router.register_api_hooks(app)
    app.register_blueprint(health.bp)
    app.register_blueprint(router.bp)

    # Register error handlers
    from idm.api import errors
    errors.register_error_handlers(app)

    if cfg.jwk_url_is_default:
        logger.warning(
            f"KEYCLOAK_JWK_URL not set, using default {cfg.keycloak_jwk_url}; "
            "tokens will only verify against a local Keycloak"
        )

    print(f"[flask_app] {cfg.app_name} {cfg.app_version}")
    print("[flask_app] API registered at /api/v1, operational endpoints at /internal")
    return app
