"""
Department operations over the tree store.

Each public method is a short validation pipeline ending in one store write
(or none). Store-level ``NotFoundError`` is translated into the
department-specific errors the HTTP layer knows how to report.
"""
import logging
from typing import Optional

from orgstruct.errors import (
    CycleConstraintError,
    DepartmentNotFoundError,
    DuplicateNameError,
    EmptyConstraintError,
    InvalidDeleteModeError,
    InvalidDepthError,
    InvalidReassignToIDError,
    LengthConstraintError,
    NotFoundError,
    ParentNotFoundError,
    TreeIntegrityError,
)
from orgstruct.models import NAME_MAX_LENGTH
from orgstruct.repositories.base import DepartmentChanges, Repository
from orgstruct.schemas import DepartmentOut, project_department

MODE_CASCADE = "cascade"
MODE_REASSIGN = "reassign"

MAX_DEPTH = 5
# hops before the ancestor walk gives up on stored data
MAX_ANCESTOR_WALK = 10_000

logger = logging.getLogger("orgstruct.departments")


def normalize_name(name: str, op: str) -> str:
    trimmed = name.strip()
    if not trimmed:
        raise EmptyConstraintError("department name must not be empty", op=op)
    if len(trimmed) > NAME_MAX_LENGTH:
        raise LengthConstraintError(
            f"department name must be at most {NAME_MAX_LENGTH} characters", op=op
        )
    return trimmed


class DepartmentService:
    def __init__(self, repo: Repository, max_depth: int = MAX_DEPTH):
        self.repo = repo
        self.max_depth = max_depth

    def create(self, name: str, parent_id: Optional[int] = None) -> DepartmentOut:
        op = "service.department.create"
        name = normalize_name(name, op)

        if parent_id is not None and not self.repo.departments.exists(parent_id):
            raise ParentNotFoundError(f"parent department {parent_id} not found", op=op)

        if self.repo.departments.find_by_name_and_parent(name, parent_id) is not None:
            raise DuplicateNameError(f"department with name '{name}' already exists", op=op)

        record = self.repo.departments.create(name, parent_id)
        logger.info("department created", extra={"department_id": record.id, "parent_id": parent_id})
        return project_department(record)

    def get_by_id(self, id: int, depth: int = 1, include_employees: bool = True) -> DepartmentOut:
        op = "service.department.get_by_id"
        if depth <= 0:
            raise InvalidDepthError(op=op)
        depth = min(depth, self.max_depth)

        try:
            record = self.repo.departments.get_by_id(id, depth, include_employees)
        except NotFoundError as err:
            raise DepartmentNotFoundError(f"department {id} not found", op=op) from err
        return project_department(record)

    def update(
        self,
        id: int,
        name: Optional[str] = None,
        parent_id: Optional[int] = None,
    ) -> DepartmentOut:
        op = "service.department.update"
        try:
            current = self.repo.departments.get_simple(id)
        except NotFoundError as err:
            raise DepartmentNotFoundError(f"department {id} not found", op=op) from err

        changes = DepartmentChanges()
        if name is not None:
            changes.set_name(normalize_name(name, op))

        if parent_id is not None:
            if not self.repo.departments.exists(parent_id):
                raise ParentNotFoundError(f"parent department {parent_id} not found", op=op)
            if parent_id == id:
                raise CycleConstraintError("department cannot be its own parent", op=op)
            self._check_cycle(id, parent_id, op)
            changes.set_parent_id(parent_id)

        if changes.is_empty:
            return project_department(current)

        effective_name = changes.name if changes.has_name else current.name
        effective_parent = changes.parent_id if changes.has_parent_id else current.parent_id
        existing = self.repo.departments.find_by_name_and_parent(effective_name, effective_parent)
        if existing is not None and existing.id != id:
            raise DuplicateNameError(
                f"department with name '{effective_name}' already exists under parent {effective_parent}",
                op=op,
            )

        try:
            self.repo.departments.update(id, changes)
        except NotFoundError as err:
            raise DepartmentNotFoundError(f"department {id} not found", op=op) from err

        try:
            updated = self.repo.departments.get_by_id(id, 1, False)
        except NotFoundError as err:
            raise DepartmentNotFoundError(f"department {id} not found", op=op) from err
        logger.info(
            "department updated",
            extra={"department_id": id, "name_changed": changes.has_name, "parent_changed": changes.has_parent_id},
        )
        return project_department(updated)

    def delete(self, id: int, mode: str = MODE_CASCADE, reassign_to_id: Optional[int] = None) -> None:
        op = "service.department.delete"
        if mode not in (MODE_CASCADE, MODE_REASSIGN):
            raise InvalidDeleteModeError(op=op)

        if not self.repo.departments.exists(id):
            raise DepartmentNotFoundError(f"department {id} not found", op=op)

        if mode == MODE_REASSIGN:
            if reassign_to_id is None:
                raise InvalidReassignToIDError("reassign_to_id is required in reassign mode", op=op)
            if reassign_to_id == id:
                raise InvalidReassignToIDError(
                    f"reassign_to_id cannot be the same as department id {id}", op=op
                )
            if not self.repo.departments.exists(reassign_to_id):
                raise DepartmentNotFoundError(f"department {reassign_to_id} not found", op=op)
            try:
                self.repo.departments.delete_with_reassign(id, reassign_to_id)
            except NotFoundError as err:
                raise DepartmentNotFoundError(f"department {id} not found", op=op) from err
        else:
            try:
                self.repo.departments.delete(id)
            except NotFoundError as err:
                raise DepartmentNotFoundError(f"department {id} not found", op=op) from err

        logger.info("department deleted", extra={"department_id": id, "mode": mode})

    def _check_cycle(self, moving_id: int, new_parent_id: int, op: str) -> None:
        """Walk up from ``new_parent_id``; meeting ``moving_id`` means a cycle."""
        current: Optional[int] = new_parent_id
        for _ in range(MAX_ANCESTOR_WALK):
            if current is None:
                return
            if current == moving_id:
                raise CycleConstraintError(
                    f"department {new_parent_id} is a descendant of department {moving_id}", op=op
                )
            try:
                current = self.repo.departments.get_simple(current).parent_id
            except NotFoundError as err:
                raise ParentNotFoundError(f"ancestor department {current} not found", op=op) from err
        raise TreeIntegrityError(
            f"ancestor walk from department {new_parent_id} exceeded {MAX_ANCESTOR_WALK} hops", op=op
        )
