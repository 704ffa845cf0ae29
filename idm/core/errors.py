"""Domain exceptions shared by services and the HTTP layer."""
from __future__ import annotations
from typing import Any, Optional


class IdmError(Exception):
    """Base exception for all classified IDM failures.

    Attributes:
        message: Human-readable description, safe to show to clients
            (except for InternalError, whose message is only logged)
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(IdmError):
    """Request failed syntactic or semantic checks.

    Attributes:
        data: Optional structured details (list of field errors)
    """

    def __init__(self, message: str, data: Optional[Any] = None):
        super().__init__(message)
        self.data = data


class AlreadyExistsError(IdmError):
    """Constraint collision on a unique attribute."""
    pass


class NotFoundError(IdmError):
    """Addressed entity does not exist."""
    pass


class UnauthenticatedError(IdmError):
    """Missing, malformed, invalid or expired bearer token."""
    pass


class ForbiddenError(IdmError):
    """Valid token without the required realm role."""
    pass


class InternalError(IdmError):
    """Store failure, commit failure or unexpected runtime error."""
    pass
