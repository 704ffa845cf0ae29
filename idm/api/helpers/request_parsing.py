"""Parsing helpers shared by the entity controllers.

Every helper raises ValidationError, which the app error handler renders as
a 400 envelope.
"""
from __future__ import annotations
from typing import Any

from flask import current_app, g, request

from idm.core.database import QueryContext
from idm.core.errors import ValidationError
from idm.core.payloads import MALFORMED_REQUEST, parse_int64

EMPTY_ID_LIST = "The ID list cannot be empty."


def query_context() -> QueryContext:
    """QueryContext for the current request (deadline from REQUEST_TIMEOUT_SECONDS)."""
    timeout = current_app.config.get("REQUEST_TIMEOUT_SECONDS", 30)
    return QueryContext.with_timeout(timeout, request_id=g.get("request_id", ""))


def parse_path_id(raw: str, message: str) -> int:
    """Parse an id taken from the URL path."""
    value = parse_int64(raw)
    if value is None:
        raise ValidationError(message)
    return value


def parse_ids_query(raw: str) -> list[int]:
    """Parse ``?ids=1,2,3``.

    A blank value is an empty list; otherwise every comma-separated element
    (including empty ones, as in ``1,,2``) must be an int64.
    """
    if not (raw or "").strip():
        raise ValidationError(EMPTY_ID_LIST)

    ids = []
    for part in (p.strip() for p in raw.split(",")):
        value = parse_int64(part)
        if value is None:
            raise ValidationError(f"Invalid ID format: {part}")
        ids.append(value)
    return ids


def read_json() -> Any:
    """Decoded JSON body; malformed or missing bodies are a 400."""
    payload = request.get_json(silent=True)
    if payload is None:
        raise ValidationError(MALFORMED_REQUEST)
    return payload


def parse_int_query(name: str, default: int) -> int:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    value = parse_int64(raw)
    if value is None:
        raise ValidationError(f"Invalid {name} parameter")
    return value
