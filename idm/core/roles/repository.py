"""SQL access for the ``role`` table."""
from __future__ import annotations
from typing import Optional

from sqlalchemy import text

from idm.core.database import Database, QueryContext, Transaction
from .models import Role


_COLUMNS = "id, name, description, status, parent_id, created_at, updated_at"

_INSERT = text(
    "INSERT INTO role (name, description, status, parent_id) "
    "VALUES (:name, :description, :status, :parent_id) "
    "RETURNING id, created_at, updated_at"
)


def _insert_params(role: Role) -> dict:
    return {
        "name": role.name,
        "description": role.description,
        "status": role.status,
        "parent_id": role.parent_id,
    }


def _assign_generated(role: Role, row) -> None:
    role.id = row["id"]
    role.created_at = row["created_at"]
    role.updated_at = row["updated_at"]


class RoleRepository:
    """Parameterised queries over ``role``; errors propagate to the service."""

    def __init__(self, database: Database):
        self._db = database

    def find_by_id(self, ctx: QueryContext, role_id: int) -> Optional[Role]:
        with self._db.connection(ctx) as conn:
            row = conn.execute(
                text(f"SELECT {_COLUMNS} FROM role WHERE id = :id"),
                {"id": role_id},
            ).mappings().first()
        return Role.from_row(row) if row is not None else None

    def find_all(self, ctx: QueryContext) -> list[Role]:
        with self._db.connection(ctx) as conn:
            rows = conn.execute(text(f"SELECT {_COLUMNS} FROM role")).mappings().all()
        return [Role.from_row(row) for row in rows]

    def find_by_ids(self, ctx: QueryContext, ids: list[int]) -> list[Role]:
        if not ids:
            return []
        with self._db.connection(ctx) as conn:
            rows = conn.execute(
                text(f"SELECT {_COLUMNS} FROM role WHERE id = ANY(:ids)"),
                {"ids": list(ids)},
            ).mappings().all()
        return [Role.from_row(row) for row in rows]

    def add(self, ctx: QueryContext, role: Role) -> None:
        """Insert outside any caller transaction; assigns the generated id."""
        with self._db.connection(ctx) as conn:
            row = conn.execute(_INSERT, _insert_params(role)).mappings().one()
        _assign_generated(role, row)

    def delete_by_id(self, ctx: QueryContext, role_id: int) -> None:
        with self._db.connection(ctx) as conn:
            conn.execute(text("DELETE FROM role WHERE id = :id"), {"id": role_id})

    def delete_by_ids(self, ctx: QueryContext, ids: list[int]) -> None:
        if not ids:
            return
        with self._db.connection(ctx) as conn:
            conn.execute(text("DELETE FROM role WHERE id = ANY(:ids)"), {"ids": list(ids)})

    # ─────────────────────────────────────────────────────────────────────────
    # Transactional methods (caller commits or rolls back)
    # ─────────────────────────────────────────────────────────────────────────
    def begin_transaction(self, ctx: QueryContext) -> Transaction:
        return self._db.begin(ctx)

    def exists_by_name_tx(self, ctx: QueryContext, tx: Transaction, name: str) -> bool:
        ctx.check()
        return bool(
            tx.connection.execute(
                text("SELECT EXISTS(SELECT 1 FROM role WHERE name = :name)"),
                {"name": name},
            ).scalar_one()
        )

    def add_with_transaction(self, ctx: QueryContext, tx: Transaction, role: Role) -> None:
        """Insert on the caller's transaction; assigns the generated id."""
        ctx.check()
        row = tx.connection.execute(_INSERT, _insert_params(role)).mappings().one()
        _assign_generated(role, row)
