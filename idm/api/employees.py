"""Employee endpoints under /api/v1/employees.

Handlers parse and authorize the request, delegate to EmployeeService and
wrap the result in the response envelope. Domain errors propagate to the
app-level error handlers.
"""
from __future__ import annotations
import logging

from flask import Blueprint, current_app, request

from idm.core.employees import CreateEmployeeRequest, EmployeeService, PageRequest
from idm.core.errors import ValidationError
from idm.core.payloads import get_int_list, require_object
from idm.core.rbac import IDM_ADMIN, IDM_USER
from .decorators import require_any_role, require_role
from .helpers import EMPTY_ID_LIST, parse_ids_query, parse_int_query, parse_path_id, query_context, read_json
from .responses import ok_response

logger = logging.getLogger(__name__)

bp = Blueprint("employees", __name__, url_prefix="/employees")

INVALID_EMPLOYEE_ID = "Invalid employee ID format"


def _service() -> EmployeeService:
    return current_app.config["EMPLOYEE_SERVICE"]


@bp.route("", methods=["POST"])
@require_role(IDM_ADMIN)
def create_employee():
    """Create an employee; responds with the new id."""
    payload = CreateEmployeeRequest.from_json(read_json())
    new_id = _service().create_employee(query_context(), payload)
    logger.info(f"Employee created via API: id={new_id}, ip={request.remote_addr}")
    return ok_response(new_id)


@bp.route("/<raw_id>", methods=["GET"])
@require_any_role([IDM_ADMIN, IDM_USER])
def get_employee(raw_id: str):
    employee_id = parse_path_id(raw_id, INVALID_EMPLOYEE_ID)
    employee = _service().find_by_id(query_context(), employee_id)
    return ok_response(employee.to_dict())


@bp.route("", methods=["GET"])
@require_any_role([IDM_ADMIN, IDM_USER])
def find_all_employees():
    employees = _service().find_all(query_context())
    return ok_response([employee.to_dict() for employee in employees])


@bp.route("/ids", methods=["POST"])
@require_any_role([IDM_ADMIN, IDM_USER])
def find_employees_by_ids():
    """Employees for the ids in the body ``{"ids": [...]}``."""
    ids = get_int_list(require_object(read_json()), "ids")
    if not ids:
        raise ValidationError(EMPTY_ID_LIST)
    employees = _service().find_by_ids(query_context(), ids)
    return ok_response([employee.to_dict() for employee in employees])


@bp.route("/page", methods=["GET"])
@require_any_role([IDM_ADMIN, IDM_USER])
def find_employees_with_pagination():
    """One page of employees: ``?pageNumber=1&pageSize=10&textFilter=...``."""
    page_request = PageRequest(
        page_number=parse_int_query("pageNumber", 1),
        page_size=parse_int_query("pageSize", 10),
        text_filter=request.args.get("textFilter", ""),
    )
    page = _service().find_with_pagination(query_context(), page_request)
    return ok_response(page.to_dict())


@bp.route("/<raw_id>", methods=["DELETE"])
@require_role(IDM_ADMIN)
def delete_employee(raw_id: str):
    employee_id = parse_path_id(raw_id, INVALID_EMPLOYEE_ID)
    _service().delete_by_id(query_context(), employee_id)
    return ok_response({"message": "Employee deleted successfully"})


@bp.route("", methods=["DELETE"])
@require_role(IDM_ADMIN)
def delete_employees_by_ids():
    """Delete every employee listed in ``?ids=1,2,3``."""
    ids = parse_ids_query(request.args.get("ids", ""))
    _service().delete_by_ids(query_context(), ids)
    return ok_response({"message": "Employees deleted successfully"})
