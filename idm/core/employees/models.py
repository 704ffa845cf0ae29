"""Employee entity and request/response DTOs."""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

from idm.core import payloads
from idm.core.validators import rules


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass
class Employee:
    """Row of the ``employee`` table."""
    name: str
    email: str
    position: str
    department: str
    role_id: int
    id: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Employee":
        return cls(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            position=row["position"] or "",
            department=row["department"] or "",
            role_id=row["role_id"] or 0,
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def to_response(self) -> "EmployeeResponse":
        return EmployeeResponse(
            id=self.id,
            name=self.name,
            email=self.email,
            position=self.position,
            department=self.department,
            role_id=self.role_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


@dataclass
class CreateEmployeeRequest:
    """Body of ``POST /api/v1/employees``."""
    name: str = field(default="", metadata=rules("required,min=2,max=155"))
    email: str = field(default="", metadata=rules("required,email"))
    position: str = field(default="", metadata=rules("required,min=2,max=100"))
    department: str = field(default="", metadata=rules("required,min=2,max=100"))
    role_id: int = field(default=0, metadata=rules("required"))

    @classmethod
    def from_json(cls, payload: Any) -> "CreateEmployeeRequest":
        body = payloads.require_object(payload)
        return cls(
            name=payloads.get_string(body, "name"),
            email=payloads.get_string(body, "email"),
            position=payloads.get_string(body, "position"),
            department=payloads.get_string(body, "department"),
            role_id=payloads.get_int(body, "role_id"),
        )

    def to_entity(self) -> Employee:
        return Employee(
            name=self.name,
            email=self.email,
            position=self.position,
            department=self.department,
            role_id=self.role_id,
        )


@dataclass
class EmployeeResponse:
    id: int
    name: str
    email: str
    position: str
    department: str
    role_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "position": self.position,
            "department": self.department,
            "role_id": self.role_id,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


@dataclass
class PageRequest:
    """Query of ``GET /api/v1/employees/page``."""
    page_number: int = field(default=1, metadata=rules("min=1"))
    page_size: int = field(default=10, metadata=rules("min=1,max=100"))
    text_filter: str = ""


@dataclass
class PageResponse:
    data: list[EmployeeResponse]
    page_number: int
    page_size: int
    total_count: int
    total_pages: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": [item.to_dict() for item in self.data],
            "pageNumber": self.page_number,
            "pageSize": self.page_size,
            "totalCount": self.total_count,
            "totalPages": self.total_pages,
        }
