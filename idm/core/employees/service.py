"""Employee use cases: validation, error classification, transactional create."""
from __future__ import annotations
import logging
import math
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
from .models import CreateEmployeeRequest, Employee, EmployeeResponse, PageRequest, PageResponse

logger = logging.getLogger(__name__)


class EmployeeRepo(Protocol):
    def find_by_id(self, ctx: QueryContext, employee_id: int) -> Optional[Employee]: ...
    def find_all(self, ctx: QueryContext) -> list[Employee]: ...
    def find_by_ids(self, ctx: QueryContext, ids: list[int]) -> list[Employee]: ...
    def find_with_pagination(self, ctx: QueryContext, limit: int, offset: int, text_filter: str = "") -> list[Employee]: ...
    def count_with_filter(self, ctx: QueryContext, text_filter: str = "") -> int: ...
    def delete_by_id(self, ctx: QueryContext, employee_id: int) -> None: ...
    def delete_by_ids(self, ctx: QueryContext, ids: list[int]) -> None: ...
    def begin_transaction(self, ctx: QueryContext) -> Transaction: ...
    def exists_by_email_tx(self, ctx: QueryContext, tx: Transaction, email: str) -> bool: ...
    def add_with_transaction(self, ctx: QueryContext, tx: Transaction, employee: Employee) -> None: ...


class EmployeeService:
    """Service for managing employees."""

    def __init__(self, repo: EmployeeRepo, validator: RequestValidator):
        """Initialize employee service.

        Args:
            repo: Employee repository
            validator: Rule-tag validator for request DTOs
        """
        self.repo = repo
        self.validator = validator

    def create_employee(self, ctx: QueryContext, request: CreateEmployeeRequest) -> int:
        """Validate and insert a new employee inside a transaction.

        Args:
            ctx: Request context (deadline, request id)
            request: Create request DTO

        Returns:
            Id assigned by the database

        Raises:
            ValidationError: Invalid request or unknown role_id
            AlreadyExistsError: Email already taken
            InternalError: Store or commit failure
        """
        logger.info(f"Creating new employee: name={request.name!r}")
        self._validate(request, "Data validation error")

        new_id = run_in_transaction(
            lambda: self.repo.begin_transaction(ctx),
            lambda tx: self._insert(ctx, tx, request),
            "error creating employee",
        )
        logger.info(f"Employee created successfully: id={new_id}, name={request.name!r}")
        return new_id

    def _insert(self, ctx: QueryContext, tx: Transaction, request: CreateEmployeeRequest) -> int:
        try:
            exists = self.repo.exists_by_email_tx(ctx, tx, request.email)
        except STORE_ERRORS as exc:
            raise InternalError(f"error finding employee by email {request.email!r}") from exc
        if exists:
            logger.warning(f"Employee with email {request.email!r} already exists")
            raise AlreadyExistsError(f"employee with email {request.email} already exists")

        entity = request.to_entity()
        try:
            self.repo.add_with_transaction(ctx, tx, entity)
        except IntegrityError as exc:
            raise self._classify_insert_error(request, exc) from exc
        except STORE_ERRORS as exc:
            raise InternalError(f"error creating employee with email {request.email!r}") from exc
        return entity.id

    @staticmethod
    def _classify_insert_error(request: CreateEmployeeRequest, exc: IntegrityError) -> Exception:
        if is_unique_violation(exc):
            logger.warning(f"Concurrent insert of employee {request.email!r} rejected by unique index")
            return AlreadyExistsError(f"employee with email {request.email} already exists")
        if is_foreign_key_violation(exc):
            logger.warning(f"Employee references missing role_id={request.role_id}")
            return ValidationError("role_id does not exist")
        return InternalError(f"error creating employee with email {request.email!r}")

    def _validate(self, request, message: str) -> None:
        try:
            self.validator.validate(request)
        except ValidationErrors as exc:
            logger.warning(f"Request validation failed: {exc}")
            raise ValidationError(message, data=exc.to_list()) from exc

    def find_by_id(self, ctx: QueryContext, employee_id: int) -> EmployeeResponse:
        logger.debug(f"Finding employee by ID: {employee_id}")
        try:
            entity = self.repo.find_by_id(ctx, employee_id)
        except STORE_ERRORS as exc:
            raise InternalError(f"error finding employee with id {employee_id}") from exc
        if entity is None:
            raise NotFoundError(f"employee with id {employee_id} not found")
        return entity.to_response()

    def find_all(self, ctx: QueryContext) -> list[EmployeeResponse]:
        try:
            entities = self.repo.find_all(ctx)
        except STORE_ERRORS as exc:
            raise InternalError("error finding all employees") from exc
        logger.debug(f"Found {len(entities)} employees")
        return [entity.to_response() for entity in entities]

    def find_by_ids(self, ctx: QueryContext, ids: list[int]) -> list[EmployeeResponse]:
        if not ids:
            logger.warning("No IDs provided for employee search")
            return []
        try:
            entities = self.repo.find_by_ids(ctx, ids)
        except STORE_ERRORS as exc:
            raise InternalError("error finding employees by ids") from exc
        logger.debug(f"Found {len(entities)} employees for {len(ids)} ids")
        return [entity.to_response() for entity in entities]

    def find_with_pagination(self, ctx: QueryContext, request: PageRequest) -> PageResponse:
        """Return one page of employees ordered by id.

        A text filter of at least three non-blank characters restricts the
        page (and the total count) to employees whose name contains it.
        """
        self._validate(request, "Invalid pagination request")

        offset = (request.page_number - 1) * request.page_size
        try:
            entities = self.repo.find_with_pagination(ctx, request.page_size, offset, request.text_filter)
            total_count = self.repo.count_with_filter(ctx, request.text_filter)
        except STORE_ERRORS as exc:
            raise InternalError("error finding employees with pagination") from exc

        return PageResponse(
            data=[entity.to_response() for entity in entities],
            page_number=request.page_number,
            page_size=request.page_size,
            total_count=total_count,
            total_pages=math.ceil(total_count / request.page_size),
        )

    def delete_by_id(self, ctx: QueryContext, employee_id: int) -> None:
        """Delete an employee; deleting a missing id succeeds."""
        logger.info(f"Deleting employee by ID: {employee_id}")
        try:
            self.repo.delete_by_id(ctx, employee_id)
        except STORE_ERRORS as exc:
            raise InternalError(f"error deleting employee with id {employee_id}") from exc

    def delete_by_ids(self, ctx: QueryContext, ids: list[int]) -> None:
        if not ids:
            logger.warning("No IDs provided for employee deletion")
            return
        logger.info(f"Deleting employees by IDs: {ids}")
        try:
            self.repo.delete_by_ids(ctx, ids)
        except STORE_ERRORS as exc:
            raise InternalError("error deleting employees by ids") from exc
