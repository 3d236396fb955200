import logging
from typing import Annotated
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from campus_backend.api.crud import create_db, delete_db, ensure_exists, fetch_related, get_or_404, list_db, update_db
from campus_backend.api.responses import ok
from campus_backend.database import get_db
from campus_backend.interface.students import StudentCreate, StudentList, StudentQuery, StudentUpdate, student_get, student_search
from campus_backend.model.university import Course, Department, Student, StudentGroup
from campus_backend.permissions.guards import RequireAdmin, RequireAuth, RequirePermission
from campus_backend.permissions.matrix import Capability
from campus_backend.permissions.scoping import StudentScope

student_router = APIRouter()
logger = logging.getLogger(__name__)

CanViewAllStudents = RequirePermission(Capability.VIEW_ALL_STUDENTS)


def _check_references(db: Session, values: dict):
    if "department_id" in values:
        ensure_exists(db, Department, values["department_id"], "department")
    if values.get("group_id") is not None:
        ensure_exists(db, StudentGroup, values["group_id"], "group")


@student_router.get("")
def list_students(auth: CanViewAllStudents, response: Response,
                  params: Annotated[StudentQuery, Depends()],
                  db: Session = Depends(get_db)):

    query = student_search(db, StudentScope.query(auth, db), params)

    return ok(list_db(query, params, StudentList, response))


@student_router.post("", status_code=201)
def create_student(student: StudentCreate, auth: RequireAdmin, db: Session = Depends(get_db)):

    values = student.model_dump(exclude={"enrolled_course_ids"})
    _check_references(db, values)
    courses = fetch_related(db, Course, student.enrolled_course_ids, "course")

    db_student = create_db(db, Student, values, {"enrolled_courses": courses})

    logger.info(f"Student {db_student.id} created by {auth.principal.user_id}")

    return ok(student_get(db_student))


@student_router.get("/{student_id}")
def get_student(student_id: str, auth: RequireAuth, db: Session = Depends(get_db)):

    query = StudentScope.query(auth, db)

    return ok(student_get(get_or_404(query, Student, student_id)))


@student_router.put("/{student_id}")
def update_student(student_id: str, student: StudentUpdate, auth: RequireAdmin, db: Session = Depends(get_db)):

    db_student = get_or_404(db.query(Student), Student, student_id)

    values = student.model_dump(exclude_unset=True, exclude={"enrolled_course_ids"})
    _check_references(db, values)

    relations = {}
    if student.enrolled_course_ids is not None:
        relations["enrolled_courses"] = fetch_related(db, Course, student.enrolled_course_ids, "course")

    return ok(student_get(update_db(db, db_student, values, relations)))


@student_router.delete("/{student_id}")
def delete_student(student_id: str, auth: RequireAdmin, db: Session = Depends(get_db)):

    db_student = get_or_404(db.query(Student), Student, student_id)
    delete_db(db, db_student)

    logger.info(f"Student {student_id} deleted by {auth.principal.user_id}")

    return ok(message="Student deleted")
