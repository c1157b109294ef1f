"""
In-process store with the same semantics as the SQL one.

Departments and employees live in id-keyed dicts; subtrees are assembled on
demand from parent ids. Used by the service tests.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Optional

from orgstruct.errors import DuplicateNameError, NotFoundError, ParentNotFoundError
from orgstruct.repositories.base import (
    DepartmentChanges,
    DepartmentRecord,
    EmployeeRecord,
)


class _Arena:
    def __init__(self):
        self.departments: dict[int, DepartmentRecord] = {}
        self.employees: dict[int, EmployeeRecord] = {}
        self._department_seq = 0
        self._employee_seq = 0

    def next_department_id(self) -> int:
        self._department_seq += 1
        return self._department_seq

    def next_employee_id(self) -> int:
        self._employee_seq += 1
        return self._employee_seq

    def sibling_taken(self, name: str, parent_id: Optional[int], exclude_id: Optional[int] = None) -> bool:
        return any(
            d.name == name and d.parent_id == parent_id and d.id != exclude_id
            for d in self.departments.values()
        )

    def subtree_ids(self, id: int) -> list[int]:
        ids = [id]
        i = 0
        while i < len(ids):
            current = ids[i]
            ids.extend(d.id for d in self.departments.values() if d.parent_id == current)
            i += 1
        return ids

    def remove_subtree(self, id: int) -> None:
        doomed = set(self.subtree_ids(id))
        for dept_id in doomed:
            del self.departments[dept_id]
        for emp_id in [e.id for e in self.employees.values() if e.department_id in doomed]:
            del self.employees[emp_id]


def _bare(record: DepartmentRecord) -> DepartmentRecord:
    return replace(record, employees=[], children=[])


class InMemoryDepartmentRepository:
    def __init__(self, arena: _Arena):
        self.arena = arena

    def create(self, name: str, parent_id: Optional[int] = None) -> DepartmentRecord:
        op = "memory.department.create"
        if parent_id is not None and parent_id not in self.arena.departments:
            raise ParentNotFoundError(f"parent department {parent_id} not found", op=op)
        if self.arena.sibling_taken(name, parent_id):
            raise DuplicateNameError(f"department with name '{name}' already exists", op=op)
        record = DepartmentRecord(
            id=self.arena.next_department_id(),
            name=name,
            parent_id=parent_id,
            created_at=datetime.now(),
        )
        self.arena.departments[record.id] = record
        return _bare(record)

    def get_by_id(self, id: int, depth: int, include_employees: bool) -> DepartmentRecord:
        stored = self.arena.departments.get(id)
        if stored is None:
            raise NotFoundError(f"department {id} not found", op="memory.department.get_by_id")
        root = _bare(stored)
        self._fill(root, depth, include_employees)
        return root

    def _fill(self, node: DepartmentRecord, depth: int, include_employees: bool) -> None:
        if include_employees:
            node.employees = sorted(
                (replace(e) for e in self.arena.employees.values() if e.department_id == node.id),
                key=lambda e: (e.full_name, e.id),
            )
        if depth <= 0:
            return
        for child in sorted(self.arena.departments.values(), key=lambda d: d.id):
            if child.parent_id == node.id:
                copy = _bare(child)
                node.children.append(copy)
                self._fill(copy, depth - 1, include_employees)

    def get_simple(self, id: int) -> DepartmentRecord:
        stored = self.arena.departments.get(id)
        if stored is None:
            raise NotFoundError(f"department {id} not found", op="memory.department.get_simple")
        return _bare(stored)

    def find_by_name_and_parent(self, name: str, parent_id: Optional[int] = None) -> Optional[DepartmentRecord]:
        for d in self.arena.departments.values():
            if d.name == name and d.parent_id == parent_id:
                return _bare(d)
        return None

    def update(self, id: int, changes: DepartmentChanges) -> None:
        op = "memory.department.update"
        if changes.is_empty:
            return
        stored = self.arena.departments.get(id)
        if stored is None:
            raise NotFoundError(f"department {id} not found", op=op)
        name = changes.name if changes.has_name else stored.name
        parent_id = changes.parent_id if changes.has_parent_id else stored.parent_id
        if self.arena.sibling_taken(name, parent_id, exclude_id=id):
            raise DuplicateNameError(f"department with name '{name}' already exists", op=op)
        stored.name = name
        stored.parent_id = parent_id

    def delete(self, id: int) -> None:
        if id not in self.arena.departments:
            raise NotFoundError(f"department {id} not found", op="memory.department.delete")
        self.arena.remove_subtree(id)

    def delete_with_reassign(self, id: int, reassign_to_id: int) -> None:
        if id not in self.arena.departments:
            raise NotFoundError(f"department {id} not found", op="memory.department.delete_with_reassign")
        for emp in self.arena.employees.values():
            if emp.department_id == id:
                emp.department_id = reassign_to_id
        self.arena.remove_subtree(id)

    def exists(self, id: int) -> bool:
        return id in self.arena.departments


class InMemoryEmployeeRepository:
    def __init__(self, arena: _Arena):
        self.arena = arena

    def create(
        self,
        department_id: int,
        full_name: str,
        position: str,
        hired_at: Optional[date] = None,
    ) -> EmployeeRecord:
        if department_id not in self.arena.departments:
            raise NotFoundError(f"department {department_id} not found", op="memory.employee.create")
        record = EmployeeRecord(
            id=self.arena.next_employee_id(),
            department_id=department_id,
            full_name=full_name,
            position=position,
            hired_at=hired_at,
            created_at=datetime.now(),
        )
        self.arena.employees[record.id] = record
        return replace(record)

    def reassign_department(self, old_department_id: int, new_department_id: int) -> int:
        moved = 0
        for emp in self.arena.employees.values():
            if emp.department_id == old_department_id:
                emp.department_id = new_department_id
                moved += 1
        return moved


class InMemoryRepository:
    def __init__(self):
        self.arena = _Arena()
        self.departments = InMemoryDepartmentRepository(self.arena)
        self.employees = InMemoryEmployeeRepository(self.arena)
