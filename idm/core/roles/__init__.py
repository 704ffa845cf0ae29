"""Role aggregate: entity, DTOs, repository and service."""
from .models import CreateRoleRequest, Role, RoleResponse
from .repository import RoleRepository
from .service import RoleService

__all__ = ["CreateRoleRequest", "Role", "RoleRepository", "RoleResponse", "RoleService"]
