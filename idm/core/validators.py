"""Rule-tag driven validation of request dataclasses.

Request DTOs declare their rules in dataclass field metadata::

    @dataclass
    class CreateEmployeeRequest:
        name: str = field(default="", metadata=rules("required,min=2,max=155"))

Supported tags: required, omitempty, min=N, max=N, len=N, email, numeric,
alpha, alphanum. Rules of a field are checked left to right and the first
failing tag is reported for that field.
"""
from __future__ import annotations
import dataclasses
import re
from dataclasses import dataclass
from typing import Any, Optional, Protocol


VALIDATE_KEY = "validate"

_EMAIL_RE = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)
_NUMERIC_RE = re.compile(r"^[-+]?[0-9]+(?:\.[0-9]+)?$")
_ALPHA_RE = re.compile(r"^[a-zA-Z]+$")
_ALPHANUM_RE = re.compile(r"^[a-zA-Z0-9]+$")


def rules(tags: str) -> dict[str, str]:
    """Build dataclass field metadata carrying validation tags."""
    return {VALIDATE_KEY: tags}


@dataclass
class FieldError:
    """Single failed rule."""
    field: str
    tag: str
    value: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {
            "field": self.field,
            "tag": self.tag,
            "value": self.value,
            "message": self.message,
        }


class ValidationErrors(Exception):
    """Structured validation failure holding one FieldError per invalid field."""

    def __init__(self, errors: list[FieldError]):
        self.errors = errors
        super().__init__(str(self))

    def __str__(self) -> str:
        return "; ".join(error.message for error in self.errors)

    def to_list(self) -> list[dict[str, str]]:
        return [error.to_dict() for error in self.errors]


def exported_name(field_name: str) -> str:
    """Convert a snake_case attribute into its exported name (role_id -> RoleId)."""
    return "".join(part[:1].upper() + part[1:] for part in field_name.split("_") if part)


def is_zero(value: Any) -> bool:
    """Return True for the zero value of a type (None, "", 0, False, empty)."""
    if value is None:
        return True
    if isinstance(value, (str, bytes, list, tuple, dict, set)):
        return len(value) == 0
    if isinstance(value, (bool, int, float)):
        return not value
    return False


def _measure(value: Any) -> Optional[float]:
    """Size used by min/max/len: characters, items, or the number itself."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, (str, list, tuple, dict, set)):
        return len(value)
    return None


def _format_value(value: Any) -> str:
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class RequestValidator(Protocol):
    def validate(self, request: Any) -> None: ...


class Validator:
    """Validates dataclass instances against their field rule tags."""

    def validate(self, request: Any) -> None:
        """Validate ``request``.

        Args:
            request: Dataclass instance whose fields carry ``rules(...)`` metadata

        Raises:
            ValidationErrors: If at least one field fails a rule
            TypeError: If request is not a dataclass instance
            ValueError: If a field declares an unknown tag
        """
        if not dataclasses.is_dataclass(request) or isinstance(request, type):
            raise TypeError(f"Validator expects a dataclass instance, got {type(request).__name__}")

        errors: list[FieldError] = []
        for dc_field in dataclasses.fields(request):
            tags = dc_field.metadata.get(VALIDATE_KEY)
            if not tags:
                continue
            error = self._check_field(dc_field.name, getattr(request, dc_field.name), tags)
            if error is not None:
                errors.append(error)

        if errors:
            raise ValidationErrors(errors)

    def _check_field(self, name: str, value: Any, tags: str) -> Optional[FieldError]:
        field_name = exported_name(name)
        for raw_tag in tags.split(","):
            raw_tag = raw_tag.strip()
            if not raw_tag:
                continue
            tag, _, param = raw_tag.partition("=")

            if tag == "omitempty":
                if is_zero(value):
                    return None
                continue

            if not self._passes(tag, param, value):
                return FieldError(
                    field=field_name,
                    tag=tag,
                    value=_format_value(value),
                    message=self.error_message(field_name, tag, param),
                )
        return None

    def _passes(self, tag: str, param: str, value: Any) -> bool:
        if tag == "required":
            return not is_zero(value)

        if tag in {"min", "max", "len"}:
            try:
                limit = float(param)
            except ValueError:
                raise ValueError(f"Tag '{tag}' needs a numeric parameter, got {param!r}")
            size = _measure(value)
            if size is None:
                return False
            if tag == "min":
                return size >= limit
            if tag == "max":
                return size <= limit
            return size == limit

        if tag == "email":
            return isinstance(value, str) and bool(_EMAIL_RE.match(value))
        if tag == "numeric":
            return isinstance(value, str) and bool(_NUMERIC_RE.match(value))
        if tag == "alpha":
            return isinstance(value, str) and bool(_ALPHA_RE.match(value))
        if tag == "alphanum":
            return isinstance(value, str) and bool(_ALPHANUM_RE.match(value))

        raise ValueError(f"Unknown validation tag: {tag}")

    @staticmethod
    def error_message(field_name: str, tag: str, param: str = "") -> str:
        """Human-readable message for a failed tag."""
        if tag == "required":
            return f"Field '{field_name}' required"
        if tag == "email":
            return f"Field '{field_name}' must contain a valid email address"
        if tag == "min":
            return f"Field '{field_name}' must contain at least {param} characters"
        if tag == "max":
            return f"Field '{field_name}' must contain a maximum of {param} characters"
        if tag == "len":
            return f"Field '{field_name}' must contain exactly {param} characters"
        if tag == "numeric":
            return f"Field '{field_name}' must contain only numbers"
        if tag == "alpha":
            return f"Field '{field_name}' must contain only letters"
        if tag == "alphanum":
            return f"Field '{field_name}' must contain only letters and numbers"
        return f"Field '{field_name}' contains an incorrect value"
