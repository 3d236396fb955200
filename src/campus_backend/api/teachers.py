import logging
from typing import Annotated, Optional
from fastapi import APIRouter, Depends, Response
from sqlalchemy import update
from sqlalchemy.orm import Session

from campus_backend.api.crud import create_db, delete_db, ensure_exists, get_or_404, list_db, update_db
from campus_backend.api.exceptions import NotFoundException
from campus_backend.api.responses import ok
from campus_backend.database import get_db
from campus_backend.interface.teachers import TeacherCreate, TeacherGet, TeacherList, TeacherQuery, TeacherUpdate, teacher_search
from campus_backend.model.university import Department, Teacher
from campus_backend.permissions.guards import RequireAdmin, RequireAuth, RequirePermission
from campus_backend.permissions.matrix import Capability

teacher_router = APIRouter()
logger = logging.getLogger(__name__)

CanViewAllTeachers = RequirePermission(Capability.VIEW_ALL_TEACHERS)


@teacher_router.get("")
def list_teachers(auth: CanViewAllTeachers, response: Response,
                  params: Annotated[TeacherQuery, Depends()],
                  db: Session = Depends(get_db)):

    query = teacher_search(db, db.query(Teacher), params)

    return ok(list_db(query, params, TeacherList, response))


@teacher_router.post("", status_code=201)
def create_teacher(teacher: TeacherCreate, auth: RequireAdmin, db: Session = Depends(get_db)):

    ensure_exists(db, Department, teacher.department_id, "department")

    db_teacher = create_db(db, Teacher, teacher.model_dump())

    logger.info(f"Teacher {db_teacher.id} created by {auth.principal.user_id}")

    return ok(TeacherGet.model_validate(db_teacher, from_attributes=True))


@teacher_router.get("/{teacher_id}")
def get_teacher(teacher_id: str, auth: RequireAuth, db: Session = Depends(get_db)):
    return ok(TeacherGet.model_validate(get_or_404(db.query(Teacher), Teacher, teacher_id), from_attributes=True))


@teacher_router.put("/{teacher_id}")
def update_teacher(teacher_id: str, teacher: TeacherUpdate, auth: RequireAdmin, db: Session = Depends(get_db)):

    db_teacher = get_or_404(db.query(Teacher), Teacher, teacher_id)

    values = teacher.model_dump(exclude_unset=True)
    if "department_id" in values:
        ensure_exists(db, Department, values["department_id"], "department")

    return ok(TeacherGet.model_validate(update_db(db, db_teacher, values), from_attributes=True))


@teacher_router.delete("/{teacher_id}")
def delete_teacher(teacher_id: str, auth: RequireAdmin, db: Session = Depends(get_db)):

    delete_db(db, get_or_404(db.query(Teacher), Teacher, teacher_id))

    logger.info(f"Teacher {teacher_id} deleted by {auth.principal.user_id}")

    return ok(message="Teacher deleted")


def toggle_grade_permission(db: Session, teacher_id: str) -> Optional[Teacher]:
    """Flip the teacher's grade edit override with a single UPDATE statement."""
    result = db.execute(
        update(Teacher)
        .where(Teacher.id == teacher_id)
        .values(can_edit_grades=~Teacher.can_edit_grades)
    )

    if result.rowcount == 0:
        db.rollback()
        return None

    db.commit()

    return db.query(Teacher).filter(Teacher.id == teacher_id).populate_existing().first()


@teacher_router.post("/{teacher_id}/toggle-grades-permission")
def toggle_grades_permission(teacher_id: str, auth: RequireAdmin, db: Session = Depends(get_db)):

    teacher = toggle_grade_permission(db, teacher_id)

    if teacher is None:
        raise NotFoundException(detail="Teacher not found")

    state = "granted" if teacher.can_edit_grades else "revoked"
    logger.info(f"Grade edit override for teacher {teacher_id} {state} by {auth.principal.user_id}")

    return ok(
        TeacherGet.model_validate(teacher, from_attributes=True),
        message=f"Grade edit permission {state} for {teacher.name}",
    )
