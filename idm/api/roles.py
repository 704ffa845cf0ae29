"""Role endpoints under /api/v1/roles."""
from __future__ import annotations
import logging

from flask import Blueprint, current_app, request

from idm.core.errors import ValidationError
from idm.core.payloads import get_int_list, require_object
from idm.core.rbac import IDM_ADMIN, IDM_USER
from idm.core.roles import CreateRoleRequest, RoleService
from .decorators import require_any_role, require_role
from .helpers import EMPTY_ID_LIST, parse_ids_query, parse_path_id, query_context, read_json
from .responses import ok_response

logger = logging.getLogger(__name__)

bp = Blueprint("roles", __name__, url_prefix="/roles")

INVALID_ROLE_ID = "Invalid role ID format"


def _service() -> RoleService:
    return current_app.config["ROLE_SERVICE"]


@bp.route("", methods=["POST"])
@require_role(IDM_ADMIN)
def create_role():
    payload = CreateRoleRequest.from_json(read_json())
    new_id = _service().create_role(query_context(), payload)
    logger.info(f"Role created via API: id={new_id}, ip={request.remote_addr}")
    return ok_response(new_id)


@bp.route("/<raw_id>", methods=["GET"])
@require_any_role([IDM_ADMIN, IDM_USER])
def get_role(raw_id: str):
    role = _service().find_by_id(query_context(), parse_path_id(raw_id, INVALID_ROLE_ID))
    return ok_response(role.to_dict())


@bp.route("", methods=["GET"])
@require_any_role([IDM_ADMIN, IDM_USER])
def find_all_roles():
    return ok_response([role.to_dict() for role in _service().find_all(query_context())])


@bp.route("/ids", methods=["POST"])
@require_any_role([IDM_ADMIN, IDM_USER])
def find_roles_by_ids():
    ids = get_int_list(require_object(read_json()), "ids")
    if not ids:
        raise ValidationError(EMPTY_ID_LIST)
    roles = _service().find_by_ids(query_context(), ids)
    return ok_response([role.to_dict() for role in roles])


@bp.route("/<raw_id>", methods=["DELETE"])
@require_role(IDM_ADMIN)
def delete_role(raw_id: str):
    _service().delete_by_id(query_context(), parse_path_id(raw_id, INVALID_ROLE_ID))
    return ok_response({"message": "Role deleted successfully"})


@bp.route("", methods=["DELETE"])
@require_role(IDM_ADMIN)
def delete_roles_by_ids():
    ids = parse_ids_query(request.args.get("ids", ""))
    _service().delete_by_ids(query_context(), ids)
    return ok_response({"message": "Roles deleted successfully"})
