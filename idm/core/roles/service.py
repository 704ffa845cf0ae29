"""Role use cases."""
from __future__ import annotations
import logging
from typing import Optional, Protocol

from sqlalchemy.exc import IntegrityError

from idm.core.database import (
    STORE_ERRORS,
    QueryContext,
    Transaction,
    is_foreign_key_violation,
    is_unique_violation,
    run_in_transaction,
)
from idm.core.errors import AlreadyExistsError, InternalError, NotFoundError, ValidationError
from idm.core.validators import RequestValidator, ValidationErrors
from .models import CreateRoleRequest, Role, RoleResponse

logger = logging.getLogger(__name__)

ROLE_IN_USE = "role is referenced by existing employees"


class RoleRepo(Protocol):
    def find_by_id(self, ctx: QueryContext, role_id: int) -> Optional[Role]: ...
    def find_all(self, ctx: QueryContext) -> list[Role]: ...
    def find_by_ids(self, ctx: QueryContext, ids: list[int]) -> list[Role]: ...
    def delete_by_id(self, ctx: QueryContext, role_id: int) -> None: ...
    def delete_by_ids(self, ctx: QueryContext, ids: list[int]) -> None: ...
    def begin_transaction(self, ctx: QueryContext) -> Transaction: ...
    def exists_by_name_tx(self, ctx: QueryContext, tx: Transaction, name: str) -> bool: ...
    def add_with_transaction(self, ctx: QueryContext, tx: Transaction, role: Role) -> None: ...


class RoleService:
    """Service for managing roles."""

    def __init__(self, repo: RoleRepo, validator: RequestValidator):
        self.repo = repo
        self.validator = validator

    def create_role(self, ctx: QueryContext, request: CreateRoleRequest) -> int:
        """Validate and insert a new role inside a transaction.

        Raises:
            ValidationError: Invalid request or unknown parent_id
            AlreadyExistsError: Name already taken
            InternalError: Store or commit failure
        """
        logger.info(f"Creating new role: name={request.name!r}")
        try:
            self.validator.validate(request)
        except ValidationErrors as exc:
            logger.warning(f"Role validation failed: {exc}")
            raise ValidationError("Data validation error", data=exc.to_list()) from exc

        new_id = run_in_transaction(
            lambda: self.repo.begin_transaction(ctx),
            lambda tx: self._insert(ctx, tx, request),
            "error creating role",
        )
        logger.info(f"Role created successfully: id={new_id}, name={request.name!r}")
        return new_id

    def _insert(self, ctx: QueryContext, tx: Transaction, request: CreateRoleRequest) -> int:
        try:
            exists = self.repo.exists_by_name_tx(ctx, tx, request.name)
        except STORE_ERRORS as exc:
            raise InternalError(f"error finding role by name {request.name!r}") from exc
        if exists:
            logger.warning(f"Role with name {request.name!r} already exists")
            raise AlreadyExistsError(f"role with name {request.name} already exists")

        entity = request.to_entity()
        try:
            self.repo.add_with_transaction(ctx, tx, entity)
        except IntegrityError as exc:
            if is_unique_violation(exc):
                raise AlreadyExistsError(f"role with name {request.name} already exists") from exc
            if is_foreign_key_violation(exc):
                raise ValidationError("parent_id does not exist") from exc
            raise InternalError(f"error creating role with name {request.name!r}") from exc
        except STORE_ERRORS as exc:
            raise InternalError(f"error creating role with name {request.name!r}") from exc
        return entity.id

    def find_by_id(self, ctx: QueryContext, role_id: int) -> RoleResponse:
        try:
            entity = self.repo.find_by_id(ctx, role_id)
        except STORE_ERRORS as exc:
            raise InternalError(f"error finding role with id {role_id}") from exc
        if entity is None:
            raise NotFoundError(f"role with id {role_id} not found")
        return entity.to_response()

    def find_all(self, ctx: QueryContext) -> list[RoleResponse]:
        try:
            entities = self.repo.find_all(ctx)
        except STORE_ERRORS as exc:
            raise InternalError("error finding all roles") from exc
        return [entity.to_response() for entity in entities]

    def find_by_ids(self, ctx: QueryContext, ids: list[int]) -> list[RoleResponse]:
        if not ids:
            return []
        try:
            entities = self.repo.find_by_ids(ctx, ids)
        except STORE_ERRORS as exc:
            raise InternalError("error finding roles by ids") from exc
        return [entity.to_response() for entity in entities]

    def delete_by_id(self, ctx: QueryContext, role_id: int) -> None:
        logger.info(f"Deleting role by ID: {role_id}")
        try:
            self.repo.delete_by_id(ctx, role_id)
        except IntegrityError as exc:
            if is_foreign_key_violation(exc):
                logger.warning(f"Role {role_id} is still referenced by employees")
                raise ValidationError(ROLE_IN_USE) from exc
            raise InternalError(f"error deleting role with id {role_id}") from exc
        except STORE_ERRORS as exc:
            raise InternalError(f"error deleting role with id {role_id}") from exc

    def delete_by_ids(self, ctx: QueryContext, ids: list[int]) -> None:
        if not ids:
            return
        logger.info(f"Deleting roles by IDs: {ids}")
        try:
            self.repo.delete_by_ids(ctx, ids)
        except IntegrityError as exc:
            if is_foreign_key_violation(exc):
                logger.warning(f"Roles {ids} are still referenced by employees")
                raise ValidationError(ROLE_IN_USE) from exc
            raise InternalError("error deleting roles by ids") from exc
        except STORE_ERRORS as exc:
            raise InternalError("error deleting roles by ids") from exc
