"""The /api/v1 route group: every path under the prefix is behind bearer authentication."""
from flask import Blueprint, Flask, request

from . import employees, roles
from .decorators import authenticate_request

API_PREFIX = "/api/v1"

bp = Blueprint("api_v1", __name__, url_prefix=API_PREFIX)

bp.register_blueprint(employees.bp)
bp.register_blueprint(roles.bp)


def is_api_path(path: str) -> bool:
    return path == API_PREFIX or path.startswith(API_PREFIX + "/")


def register_api_hooks(app: Flask) -> None:
    """Guard the whole /api/v1 prefix.

    The hooks are app-level so unknown paths and unsupported methods under
    the prefix are authenticated too (blueprint hooks only run for matched
    routes).
    """

    @app.before_request
    def require_bearer_token():
        """Reject the request with 401 unless it carries a valid bearer token."""
        if is_api_path(request.path):
            return authenticate_request()
        return None

    @app.after_request
    def add_api_version(response):
        if is_api_path(request.path):
            response.headers["X-API-Version"] = "v1"
        return response
