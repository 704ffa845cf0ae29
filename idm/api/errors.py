"""Error handlers rendering every failure through the response envelope."""
import logging

from flask import request
from werkzeug.exceptions import HTTPException

from idm.core.errors import (
    AlreadyExistsError,
    ForbiddenError,
    IdmError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from .responses import error_response

logger = logging.getLogger(__name__)

INTERNAL_SERVER_ERROR = "Internal server error"

STATUS_BY_ERROR = (
    (ValidationError, 400),
    (UnauthenticatedError, 401),
    (ForbiddenError, 403),
    (NotFoundError, 404),
    (AlreadyExistsError, 409),
)


def status_for(error: IdmError) -> int:
    """HTTP status of a classified error (anything unknown is a 500)."""
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 500


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    @app.errorhandler(IdmError)
    def handle_idm_error(error: IdmError):
        status = status_for(error)
        if status == 500:
            # Store details stay in the logs; clients get a generic message
            cause = error.__cause__
            logger.error(
                f"{request.method} {request.path} failed: {error.message}"
                + (f" (cause: {cause})" if cause else "")
            )
            return error_response(500, INTERNAL_SERVER_ERROR)

        logger.warning(f"{request.method} {request.path} -> {status}: {error.message}")
        data = error.data if isinstance(error, ValidationError) else None
        return error_response(status, error.message, data)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        """Unknown routes, wrong methods, oversized bodies, ..."""
        return error_response(error.code or 500, error.name)

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        """Last resort: anything that escaped a handler becomes a 500 envelope."""
        logger.error(
            f"Unhandled exception on {request.method} {request.path}: {error!r}",
            exc_info=error,
        )
        return error_response(500, INTERNAL_SERVER_ERROR)
