"""SQL access for the ``employee`` table.

Driver and constraint errors are raised unchanged; the service layer
classifies them. Nothing here logs.
"""
from __future__ import annotations
from typing import Optional

from sqlalchemy import text

from idm.core.database import Database, QueryContext, Transaction
from .models import Employee


_COLUMNS = "id, name, email, position, department, role_id, created_at, updated_at"

_INSERT = text(
    "INSERT INTO employee (name, email, position, department, role_id) "
    "VALUES (:name, :email, :position, :department, :role_id) "
    "RETURNING id, created_at, updated_at"
)

# Filters shorter than this (ignoring whitespace) are not applied
MIN_TEXT_FILTER_CHARS = 3


def is_valid_text_filter(text_filter: str) -> bool:
    """True when the filter holds at least 3 non-whitespace characters."""
    if not text_filter:
        return False
    return sum(1 for char in text_filter if not char.isspace()) >= MIN_TEXT_FILTER_CHARS


def _insert_params(employee: Employee) -> dict:
    return {
        "name": employee.name,
        "email": employee.email,
        "position": employee.position,
        "department": employee.department,
        "role_id": employee.role_id,
    }


def _assign_generated(employee: Employee, row) -> None:
    employee.id = row["id"]
    employee.created_at = row["created_at"]
    employee.updated_at = row["updated_at"]


class EmployeeRepository:
    """Parameterised queries over ``employee``."""

    def __init__(self, database: Database):
        self._db = database

    def find_by_id(self, ctx: QueryContext, employee_id: int) -> Optional[Employee]:
        """Return the employee or None when no row has this id."""
        with self._db.connection(ctx) as conn:
            row = conn.execute(
                text(f"SELECT {_COLUMNS} FROM employee WHERE id = :id"),
                {"id": employee_id},
            ).mappings().first()
        return Employee.from_row(row) if row is not None else None

    def find_all(self, ctx: QueryContext) -> list[Employee]:
        with self._db.connection(ctx) as conn:
            rows = conn.execute(text(f"SELECT {_COLUMNS} FROM employee")).mappings().all()
        return [Employee.from_row(row) for row in rows]

    def find_by_ids(self, ctx: QueryContext, ids: list[int]) -> list[Employee]:
        """Employees whose id is in ``ids``; no query at all for an empty list."""
        if not ids:
            return []
        with self._db.connection(ctx) as conn:
            rows = conn.execute(
                text(f"SELECT {_COLUMNS} FROM employee WHERE id = ANY(:ids)"),
                {"ids": list(ids)},
            ).mappings().all()
        return [Employee.from_row(row) for row in rows]

    def find_with_pagination(
        self, ctx: QueryContext, limit: int, offset: int, text_filter: str = ""
    ) -> list[Employee]:
        query = f"SELECT {_COLUMNS} FROM employee WHERE 1 = 1"
        params: dict = {"limit": limit, "offset": offset}
        if is_valid_text_filter(text_filter):
            query += " AND name ILIKE :pattern"
            params["pattern"] = f"%{text_filter.strip()}%"
        query += " ORDER BY id LIMIT :limit OFFSET :offset"

        with self._db.connection(ctx) as conn:
            rows = conn.execute(text(query), params).mappings().all()
        return [Employee.from_row(row) for row in rows]

    def count_with_filter(self, ctx: QueryContext, text_filter: str = "") -> int:
        query = "SELECT COUNT(*) FROM employee WHERE 1 = 1"
        params: dict = {}
        if is_valid_text_filter(text_filter):
            query += " AND name ILIKE :pattern"
            params["pattern"] = f"%{text_filter.strip()}%"

        with self._db.connection(ctx) as conn:
            return int(conn.execute(text(query), params).scalar_one())

    def add(self, ctx: QueryContext, employee: Employee) -> None:
        """Insert outside any caller transaction; assigns the generated id."""
        with self._db.connection(ctx) as conn:
            row = conn.execute(_INSERT, _insert_params(employee)).mappings().one()
        _assign_generated(employee, row)

    def delete_by_id(self, ctx: QueryContext, employee_id: int) -> None:
        with self._db.connection(ctx) as conn:
            conn.execute(text("DELETE FROM employee WHERE id = :id"), {"id": employee_id})

    def delete_by_ids(self, ctx: QueryContext, ids: list[int]) -> None:
        if not ids:
            return
        with self._db.connection(ctx) as conn:
            conn.execute(text("DELETE FROM employee WHERE id = ANY(:ids)"), {"ids": list(ids)})

    # ─────────────────────────────────────────────────────────────────────────
    # Transactional methods (caller commits or rolls back)
    # ─────────────────────────────────────────────────────────────────────────
    def begin_transaction(self, ctx: QueryContext) -> Transaction:
        return self._db.begin(ctx)

    def exists_by_email_tx(self, ctx: QueryContext, tx: Transaction, email: str) -> bool:
        ctx.check()
        return bool(
            tx.connection.execute(
                text("SELECT EXISTS(SELECT 1 FROM employee WHERE email = :email)"),
                {"email": email},
            ).scalar_one()
        )

    def add_with_transaction(self, ctx: QueryContext, tx: Transaction, employee: Employee) -> None:
        """Insert on the caller's transaction; assigns the generated id."""
        ctx.check()
        row = tx.connection.execute(_INSERT, _insert_params(employee)).mappings().one()
        _assign_generated(employee, row)
