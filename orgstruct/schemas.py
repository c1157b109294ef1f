from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, model_serializer
from orgstruct.repositories.base import DepartmentRecord, EmployeeRecord

DATE_FORMAT = "%Y-%m-%d"


# -------- requests --------
class DepartmentCreate(BaseModel):
    name: str
    parent_id: Optional[int] = Field(default=None, gt=0)


class DepartmentUpdate(BaseModel):
    name: Optional[str] = None
    parent_id: Optional[int] = Field(default=None, gt=0)


class EmployeeCreate(BaseModel):
    # trimmed and length-checked by EmployeeService
    full_name: str
    position: str
    hired_at: Optional[str] = Field(default=None, description="YYYY-MM-DD")


# -------- responses --------
class EmployeeOut(BaseModel):
    id: int
    department_id: int
    full_name: str
    position: str
    hired_at: Optional[str] = None
    created_at: datetime


class DepartmentOut(BaseModel):
    id: int
    name: str
    parent_id: Optional[int] = None
    created_at: datetime
    employees: Optional[list[EmployeeOut]] = None
    children: Optional[list["DepartmentOut"]] = None

    @model_serializer(mode="wrap")
    def _omit_empty(self, handler):
        # roots carry no parent_id; leaves carry no children/employees keys
        data = handler(self)
        for key in ("parent_id", "employees", "children"):
            if data.get(key) is None:
                data.pop(key, None)
        return data


class ErrorOut(BaseModel):
    error: str


# -------- projection --------
def project_employee(record: EmployeeRecord) -> EmployeeOut:
    return EmployeeOut(
        id=record.id,
        department_id=record.department_id,
        full_name=record.full_name,
        position=record.position,
        hired_at=record.hired_at.strftime(DATE_FORMAT) if record.hired_at else None,
        created_at=record.created_at,
    )


def project_department(record: DepartmentRecord) -> DepartmentOut:
    """Nested view of a loaded subtree; empty collections become absent."""
    employees = [project_employee(e) for e in record.employees]
    children = [project_department(c) for c in record.children]
    return DepartmentOut(
        id=record.id,
        name=record.name,
        parent_id=record.parent_id,
        created_at=record.created_at,
        employees=employees or None,
        children=children or None,
    )
