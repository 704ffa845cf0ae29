"""Role entity and request/response DTOs."""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

from idm.core import payloads
from idm.core.validators import rules


@dataclass
class Role:
    """Row of the ``role`` table."""
    name: str
    description: str
    status: bool = True
    parent_id: Optional[int] = None
    id: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Role":
        return cls(
            id=row["id"],
            name=row["name"],
            description=row["description"] or "",
            status=bool(row["status"]),
            parent_id=row["parent_id"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def to_response(self) -> "RoleResponse":
        return RoleResponse(
            id=self.id,
            name=self.name,
            description=self.description,
            status=self.status,
            parent_id=self.parent_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


@dataclass
class CreateRoleRequest:
    """Body of ``POST /api/v1/roles``.

    ``status`` defaults to true when omitted; ``parent_id`` is optional but
    must be positive when given.
    """
    name: str = field(default="", metadata=rules("required,min=2,max=100"))
    description: str = field(default="", metadata=rules("required,min=5,max=500"))
    status: bool = True
    parent_id: Optional[int] = field(default=None, metadata=rules("omitempty,min=1"))

    @classmethod
    def from_json(cls, payload: Any) -> "CreateRoleRequest":
        body = payloads.require_object(payload)
        return cls(
            name=payloads.get_string(body, "name"),
            description=payloads.get_string(body, "description"),
            status=payloads.get_bool(body, "status", True),
            parent_id=payloads.get_optional_int(body, "parent_id"),
        )

    def to_entity(self) -> Role:
        return Role(
            name=self.name,
            description=self.description,
            status=self.status,
            parent_id=self.parent_id,
        )


@dataclass
class RoleResponse:
    id: int
    name: str
    description: str
    status: bool
    parent_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status,
            "parent_id": self.parent_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
