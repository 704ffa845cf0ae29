"""Employee aggregate: entity, DTOs, repository and service."""
from .models import CreateEmployeeRequest, Employee, EmployeeResponse, PageRequest, PageResponse
from .repository import EmployeeRepository
from .service import EmployeeService

__all__ = [
    "CreateEmployeeRequest",
    "Employee",
    "EmployeeRepository",
    "EmployeeResponse",
    "EmployeeService",
    "PageRequest",
    "PageResponse",
]
