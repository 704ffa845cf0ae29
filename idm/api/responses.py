"""Uniform JSON response envelope: ``{"success", "error", "data"}``."""
from __future__ import annotations
from typing import Any, Optional

from flask import Response, jsonify


def envelope(success: bool, error: str = "", data: Optional[Any] = None) -> dict[str, Any]:
    """Build the envelope body; ``data`` is omitted when there is none."""
    body: dict[str, Any] = {"success": success, "error": error}
    if data is not None:
        body["data"] = data
    return body


def ok_response(data: Optional[Any] = None, status: int = 200) -> tuple[Response, int]:
    """Success envelope for route handlers."""
    return jsonify(envelope(True, data=data)), status


def error_response(status: int, message: str, data: Optional[Any] = None) -> Response:
    """Error envelope as a Response object (usable from before_request hooks).

    Args:
        status: HTTP status code
        message: Client-facing error message
        data: Optional structured details (e.g. field errors)
    """
    response = jsonify(envelope(False, error=message, data=data))
    response.status_code = status
    return response
