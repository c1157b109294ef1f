import logging
import re
from datetime import date, datetime
from typing import Optional, Union

from orgstruct.errors import (
    DepartmentNotFoundError,
    EmptyConstraintError,
    InvalidDateFormatError,
    LengthConstraintError,
    NotFoundError,
)
from orgstruct.models import NAME_MAX_LENGTH
from orgstruct.repositories.base import Repository
from orgstruct.schemas import DATE_FORMAT, EmployeeOut, project_employee

logger = logging.getLogger("orgstruct.employees")

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_hired_at(value: Union[str, date, None], op: str) -> Optional[date]:
    """Strict YYYY-MM-DD; a ``date`` passes through untouched."""
    if value is None or isinstance(value, date):
        return value
    if not _DATE_RE.match(value):
        raise InvalidDateFormatError(op=op)
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError as err:
        raise InvalidDateFormatError(op=op) from err


def _required_text(field: str, value: str, op: str) -> str:
    trimmed = value.strip()
    if not trimmed:
        raise EmptyConstraintError(f"{field} must not be empty", op=op)
    if len(trimmed) > NAME_MAX_LENGTH:
        raise LengthConstraintError(f"{field} must be at most {NAME_MAX_LENGTH} characters", op=op)
    return trimmed


class EmployeeService:
    def __init__(self, repo: Repository):
        self.repo = repo

    def create(
        self,
        department_id: int,
        full_name: str,
        position: str,
        hired_at: Union[str, date, None] = None,
    ) -> EmployeeOut:
        op = "service.employee.create"
        full_name = _required_text("full_name", full_name, op)
        position = _required_text("position", position, op)

        if not self.repo.departments.exists(department_id):
            raise DepartmentNotFoundError(f"department {department_id} not found", op=op)

        hired = parse_hired_at(hired_at, op)

        try:
            record = self.repo.employees.create(department_id, full_name, position, hired)
        except NotFoundError as err:
            raise DepartmentNotFoundError(f"department {department_id} not found", op=op) from err
        logger.info("employee created", extra={"employee_id": record.id, "department_id": department_id})
        return project_employee(record)
