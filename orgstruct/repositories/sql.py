"""SQLAlchemy-backed store. One instance per request session."""
from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from orgstruct.errors import DuplicateNameError, NotFoundError, ParentNotFoundError
from orgstruct.models import Department, Employee
from orgstruct.repositories.base import (
    DepartmentChanges,
    DepartmentRecord,
    EmployeeRecord,
)

logger = logging.getLogger("orgstruct.store")


def _department_record(row: Department) -> DepartmentRecord:
    return DepartmentRecord(
        id=row.id,
        name=row.name,
        parent_id=row.parent_id,
        created_at=row.created_at,
    )


def _employee_record(row: Employee) -> EmployeeRecord:
    return EmployeeRecord(
        id=row.id,
        department_id=row.department_id,
        full_name=row.full_name,
        position=row.position,
        hired_at=row.hired_at,
        created_at=row.created_at,
    )


class SqlDepartmentRepository:
    def __init__(self, session: Session):
        self.session = session

    def create(self, name: str, parent_id: Optional[int] = None) -> DepartmentRecord:
        op = "store.department.create"
        dept = Department(name=name, parent_id=parent_id)
        self.session.add(dept)
        try:
            self.session.commit()
        except IntegrityError as err:
            self.session.rollback()
            # the parent may have vanished since the caller checked it
            if parent_id is not None and not self.exists(parent_id):
                raise ParentNotFoundError(f"parent department {parent_id} not found", op=op) from err
            raise DuplicateNameError(f"department with name '{name}' already exists", op=op) from err
        self.session.refresh(dept)
        return _department_record(dept)

    def get_by_id(self, id: int, depth: int, include_employees: bool) -> DepartmentRecord:
        op = "store.department.get_by_id"
        row = self.session.scalar(select(Department).where(Department.id == id))
        if row is None:
            raise NotFoundError(f"department {id} not found", op=op)

        root = _department_record(row)
        loaded = {root.id: root}
        frontier = [root.id]
        # one query per level over the ids reached so far
        for _ in range(depth):
            if not frontier:
                break
            rows = self.session.scalars(
                select(Department)
                .where(Department.parent_id.in_(frontier))
                .order_by(Department.id)
            ).all()
            frontier = []
            for child_row in rows:
                child = _department_record(child_row)
                loaded[child.id] = child
                loaded[child_row.parent_id].children.append(child)
                frontier.append(child.id)

        if include_employees:
            employees = self.session.scalars(
                select(Employee)
                .where(Employee.department_id.in_(list(loaded)))
                .order_by(Employee.full_name.asc(), Employee.id.asc())
            ).all()
            for emp in employees:
                loaded[emp.department_id].employees.append(_employee_record(emp))

        logger.debug(
            "department subtree loaded",
            extra={"department_id": id, "depth": depth, "nodes": len(loaded)},
        )
        return root

    def get_simple(self, id: int) -> DepartmentRecord:
        row = self.session.scalar(select(Department).where(Department.id == id))
        if row is None:
            raise NotFoundError(f"department {id} not found", op="store.department.get_simple")
        return _department_record(row)

    def find_by_name_and_parent(self, name: str, parent_id: Optional[int] = None) -> Optional[DepartmentRecord]:
        query = select(Department).where(Department.name == name)
        if parent_id is None:
            query = query.where(Department.parent_id.is_(None))
        else:
            query = query.where(Department.parent_id == parent_id)
        row = self.session.scalars(query.limit(1)).first()
        return _department_record(row) if row is not None else None

    def update(self, id: int, changes: DepartmentChanges) -> None:
        op = "store.department.update"
        values = {}
        if changes.has_name:
            values["name"] = changes.name
        if changes.has_parent_id:
            values["parent_id"] = changes.parent_id
        if not values:
            return
        try:
            result = self.session.execute(
                update(Department)
                .where(Department.id == id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            self.session.commit()
        except IntegrityError as err:
            self.session.rollback()
            raise DuplicateNameError(f"department name collides with a sibling of department {id}", op=op) from err
        if result.rowcount == 0:
            raise NotFoundError(f"department {id} not found", op=op)

    def _subtree_levels(self, id: int) -> list[list[int]]:
        """Ids below ``id`` grouped by level, ``id`` itself first."""
        levels = [[id]]
        seen = {id}
        while True:
            rows = self.session.scalars(
                select(Department.id).where(Department.parent_id.in_(levels[-1]))
            ).all()
            # a stored loop would otherwise revisit ids forever
            level = [dept_id for dept_id in rows if dept_id not in seen]
            if not level:
                return levels
            seen.update(level)
            levels.append(level)

    def _delete_subtree(self, id: int, op: str) -> int:
        """
        Remove ``id``, every descendant and their employees, leaves first.

        Does not rely on ON DELETE CASCADE: InnoDB stops cascading after 15
        nested levels. Runs inside the caller's transaction; returns the number
        of departments removed.
        """
        levels = self._subtree_levels(id)
        self.session.execute(
            delete(Employee)
            .where(Employee.department_id.in_([dept_id for level in levels for dept_id in level]))
            .execution_options(synchronize_session=False)
        )
        removed = 0
        for level in reversed(levels):
            removed += self.session.execute(
                delete(Department)
                .where(Department.id.in_(level))
                .execution_options(synchronize_session=False)
            ).rowcount
        if removed == 0:
            raise NotFoundError(f"department {id} not found", op=op)
        return removed

    def delete(self, id: int) -> None:
        op = "store.department.delete"
        try:
            removed = self._delete_subtree(id, op)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.info("department subtree deleted", extra={"department_id": id, "departments_removed": removed})

    def delete_with_reassign(self, id: int, reassign_to_id: int) -> None:
        op = "store.department.delete_with_reassign"
        try:
            moved = self.session.execute(
                update(Employee)
                .where(Employee.department_id == id)
                .values(department_id=reassign_to_id)
                .execution_options(synchronize_session=False)
            ).rowcount
            # child departments and their staff are removed, not moved
            removed = self._delete_subtree(id, op)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.info(
            "department deleted with reassign",
            extra={
                "department_id": id,
                "reassign_to_id": reassign_to_id,
                "employees_moved": moved,
                "departments_removed": removed,
            },
        )

    def exists(self, id: int) -> bool:
        return self.session.scalar(select(Department.id).where(Department.id == id)) is not None


class SqlEmployeeRepository:
    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        department_id: int,
        full_name: str,
        position: str,
        hired_at: Optional[date] = None,
    ) -> EmployeeRecord:
        emp = Employee(
            department_id=department_id,
            full_name=full_name,
            position=position,
            hired_at=hired_at,
        )
        self.session.add(emp)
        try:
            self.session.commit()
        except IntegrityError as err:
            self.session.rollback()
            raise NotFoundError(
                f"department {department_id} not found", op="store.employee.create"
            ) from err
        self.session.refresh(emp)
        return _employee_record(emp)

    def reassign_department(self, old_department_id: int, new_department_id: int) -> int:
        result = self.session.execute(
            update(Employee)
            .where(Employee.department_id == old_department_id)
            .values(department_id=new_department_id)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        return result.rowcount


class SqlRepository:
    def __init__(self, session: Session):
        self.session = session
        self.departments = SqlDepartmentRepository(session)
        self.employees = SqlEmployeeRepository(session)
