"""
Store contracts for the department tree.

Records handed out by a repository are detached snapshots: a department
carries whatever children and employees were loaded for it, already nested,
and nothing is lazily fetched afterwards.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Protocol


@dataclass
class EmployeeRecord:
    id: int
    department_id: int
    full_name: str
    position: str
    hired_at: Optional[date]
    created_at: datetime


@dataclass
class DepartmentRecord:
    id: int
    name: str
    parent_id: Optional[int]
    created_at: datetime
    employees: list[EmployeeRecord] = field(default_factory=list)
    children: list[DepartmentRecord] = field(default_factory=list)


@dataclass
class DepartmentChanges:
    """Partial update: only fields flagged as present are written."""

    name: Optional[str] = None
    parent_id: Optional[int] = None
    has_name: bool = False
    has_parent_id: bool = False

    def set_name(self, name: str) -> None:
        self.name = name
        self.has_name = True

    def set_parent_id(self, parent_id: Optional[int]) -> None:
        self.parent_id = parent_id
        self.has_parent_id = True

    @property
    def is_empty(self) -> bool:
        return not (self.has_name or self.has_parent_id)


class DepartmentRepository(Protocol):
    def create(self, name: str, parent_id: Optional[int] = None) -> DepartmentRecord: ...

    def get_by_id(self, id: int, depth: int, include_employees: bool) -> DepartmentRecord: ...

    def get_simple(self, id: int) -> DepartmentRecord: ...

    def find_by_name_and_parent(self, name: str, parent_id: Optional[int] = None) -> Optional[DepartmentRecord]: ...

    def update(self, id: int, changes: DepartmentChanges) -> None: ...

    def delete(self, id: int) -> None: ...

    def delete_with_reassign(self, id: int, reassign_to_id: int) -> None: ...

    def exists(self, id: int) -> bool: ...


class EmployeeRepository(Protocol):
    def create(
        self,
        department_id: int,
        full_name: str,
        position: str,
        hired_at: Optional[date] = None,
    ) -> EmployeeRecord: ...

    def reassign_department(self, old_department_id: int, new_department_id: int) -> int: ...


class Repository(Protocol):
    departments: DepartmentRepository
    employees: EmployeeRepository
