import logging
from typing import Annotated
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from campus_backend.api.crud import create_db, delete_db, get_or_404, list_db, update_db
from campus_backend.api.responses import ok
from campus_backend.database import get_db
from campus_backend.interface.departments import DepartmentCreate, DepartmentGet, DepartmentList, DepartmentQuery, DepartmentUpdate, department_search
from campus_backend.model.university import Department
from campus_backend.permissions.guards import RequireAdmin, RequireAuth, RequirePermission
from campus_backend.permissions.matrix import Capability

department_router = APIRouter()
logger = logging.getLogger(__name__)

CanViewAllDepartments = RequirePermission(Capability.VIEW_ALL_DEPARTMENTS)


@department_router.get("")
def list_departments(auth: CanViewAllDepartments, response: Response,
                     params: Annotated[DepartmentQuery, Depends()],
                     db: Session = Depends(get_db)):

    query = department_search(db, db.query(Department), params)

    return ok(list_db(query, params, DepartmentList, response))


@department_router.post("", status_code=201)
def create_department(department: DepartmentCreate, auth: RequireAdmin, db: Session = Depends(get_db)):

    db_department = create_db(db, Department, department.model_dump())

    logger.info(f"Department {db_department.code} created by {auth.principal.user_id}")

    return ok(DepartmentGet.model_validate(db_department, from_attributes=True))


@department_router.get("/{department_id}")
def get_department(department_id: str, auth: RequireAuth, db: Session = Depends(get_db)):
    return ok(DepartmentGet.model_validate(get_or_404(db.query(Department), Department, department_id), from_attributes=True))


@department_router.put("/{department_id}")
def update_department(department_id: str, department: DepartmentUpdate, auth: RequireAdmin, db: Session = Depends(get_db)):

    db_department = get_or_404(db.query(Department), Department, department_id)

    return ok(DepartmentGet.model_validate(update_db(db, db_department, department.model_dump(exclude_unset=True)), from_attributes=True))


@department_router.delete("/{department_id}")
def delete_department(department_id: str, auth: RequireAdmin, db: Session = Depends(get_db)):

    delete_db(db, get_or_404(db.query(Department), Department, department_id))

    logger.info(f"Department {department_id} deleted by {auth.principal.user_id}")

    return ok(message="Department deleted")
