# orgstruct/routers/departments.py
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session
from orgstruct.core.config import get_settings, Settings
from orgstruct.db import get_db
from orgstruct.repositories.sql import SqlRepository
from orgstruct.schemas import (
    DepartmentCreate,
    DepartmentOut,
    DepartmentUpdate,
    EmployeeCreate,
    EmployeeOut,
    ErrorOut,
)
from orgstruct.services.departments import DepartmentService, MODE_CASCADE
from orgstruct.services.employees import EmployeeService

router = APIRouter()
logger = logging.getLogger("orgstruct.http")

ERROR_RESPONSES = {
    400: {"model": ErrorOut, "description": "Invalid input"},
    404: {"model": ErrorOut, "description": "Department not found"},
    409: {"model": ErrorOut, "description": "Duplicate name or cycle"},
}


def get_repository(db: Session = Depends(get_db)) -> SqlRepository:
    return SqlRepository(db)


def get_department_service(
    repo: SqlRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
) -> DepartmentService:
    return DepartmentService(repo, max_depth=settings.MAX_DEPTH)


def get_employee_service(repo: SqlRepository = Depends(get_repository)) -> EmployeeService:
    return EmployeeService(repo)


def parse_depth(raw: Optional[str], default: int) -> int:
    # lenient: junk and non-positive values mean "use the default"
    try:
        depth = int(raw)
    except (TypeError, ValueError):
        return default
    return depth if depth > 0 else default


@router.post("/departments", tags=["Departments"], summary="Create a department",
             status_code=status.HTTP_201_CREATED, response_model=DepartmentOut,
             responses=ERROR_RESPONSES)
def create_department(payload: DepartmentCreate, service: DepartmentService = Depends(get_department_service)):
    logger.debug("creating department", extra={"op": "handler.create_department"})
    resp = service.create(payload.name, payload.parent_id)
    logger.info("created department", extra={"op": "handler.create_department", "department_id": resp.id})
    return resp


@router.get("/departments/{department_id}", tags=["Departments"], summary="Department with its subtree",
            response_model=DepartmentOut, responses=ERROR_RESPONSES)
def get_department(
    department_id: int,
    depth: Optional[str] = Query(None, description="Child levels to include, capped at 5"),
    include_employees: Optional[str] = Query(None, description="Anything but \"false\" includes employees"),
    service: DepartmentService = Depends(get_department_service),
    settings: Settings = Depends(get_settings),
):
    resp = service.get_by_id(
        department_id,
        depth=parse_depth(depth, settings.DEFAULT_DEPTH),
        include_employees=include_employees != "false",
    )
    logger.info("got department", extra={"op": "handler.get_department", "department_id": department_id})
    return resp


@router.patch("/departments/{department_id}", tags=["Departments"], summary="Rename or move a department",
              response_model=DepartmentOut, responses=ERROR_RESPONSES)
def update_department(
    department_id: int,
    payload: DepartmentUpdate,
    service: DepartmentService = Depends(get_department_service),
):
    resp = service.update(department_id, name=payload.name, parent_id=payload.parent_id)
    logger.info("updated department", extra={"op": "handler.update_department", "department_id": department_id})
    return resp


@router.delete("/departments/{department_id}", tags=["Departments"], summary="Delete a department",
               status_code=status.HTTP_204_NO_CONTENT, response_class=Response,
               responses=ERROR_RESPONSES)
def delete_department(
    department_id: int,
    mode: str = Query(MODE_CASCADE, description="cascade | reassign"),
    reassign_to_department_id: Optional[int] = Query(None, gt=0),
    service: DepartmentService = Depends(get_department_service),
):
    service.delete(department_id, mode=mode or MODE_CASCADE, reassign_to_id=reassign_to_department_id)
    logger.info("deleted department", extra={"op": "handler.delete_department", "department_id": department_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/departments/{department_id}/employees", tags=["Employees"], summary="Hire into a department",
             status_code=status.HTTP_201_CREATED, response_model=EmployeeOut,
             responses=ERROR_RESPONSES)
def create_employee(
    department_id: int,
    payload: EmployeeCreate,
    service: EmployeeService = Depends(get_employee_service),
):
    resp = service.create(department_id, payload.full_name, payload.position, payload.hired_at)
    logger.info("created employee", extra={"op": "handler.create_employee", "department_id": department_id})
    return resp
