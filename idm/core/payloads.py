"""Coercion of decoded JSON payloads into typed request fields.

Missing keys and JSON null fall back to the zero value of the field so that
the validator reports them (e.g. ``required``); values of the wrong JSON type
are rejected as a malformed request.
"""
from __future__ import annotations
import re
from typing import Any, Optional

from .errors import ValidationError


MALFORMED_REQUEST = "Incorrect data format in request"

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_INT_RE = re.compile(r"^[+-]?[0-9]+$")


def require_object(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError(MALFORMED_REQUEST)
    return payload


def _to_int64(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if not isinstance(value, int):
        return None
    if value < INT64_MIN or value > INT64_MAX:
        return None
    return value


def get_string(payload: dict, key: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(MALFORMED_REQUEST)
    return value


def get_int(payload: dict, key: str) -> int:
    value = payload.get(key)
    if value is None:
        return 0
    parsed = _to_int64(value)
    if parsed is None:
        raise ValidationError(MALFORMED_REQUEST)
    return parsed


def get_optional_int(payload: dict, key: str) -> Optional[int]:
    if payload.get(key) is None:
        return None
    return get_int(payload, key)


def get_bool(payload: dict, key: str, default: bool) -> bool:
    value = payload.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValidationError(MALFORMED_REQUEST)
    return value


def get_int_list(payload: dict, key: str) -> list[int]:
    value = payload.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(MALFORMED_REQUEST)
    ids = []
    for item in value:
        parsed = _to_int64(item)
        if parsed is None:
            raise ValidationError(MALFORMED_REQUEST)
        ids.append(parsed)
    return ids


def parse_int64(raw: str) -> Optional[int]:
    """Parse a decimal string into a signed 64-bit integer, or None."""
    raw = raw.strip()
    if not _INT_RE.match(raw):
        return None
    return _to_int64(int(raw))
