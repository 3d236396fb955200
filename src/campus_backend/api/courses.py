import logging
from typing import Annotated
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from campus_backend.api.crud import create_db, delete_db, ensure_exists, fetch_related, get_or_404, list_db, update_db
from campus_backend.api.responses import ok
from campus_backend.database import get_db
from campus_backend.interface.courses import CourseCreate, CourseList, CourseQuery, CourseUpdate, course_get, course_search
from campus_backend.model.university import Course, Department, Student, StudentGroup, Teacher
from campus_backend.permissions.guards import RequireAdmin, RequireAuth, RequirePermission
from campus_backend.permissions.matrix import Capability
from campus_backend.permissions.scoping import CourseScope

course_router = APIRouter()
logger = logging.getLogger(__name__)

CanEditCourse = RequirePermission(Capability.EDIT_COURSE)
CanDeleteCourse = RequirePermission(Capability.DELETE_COURSE)


def _check_references(db: Session, values: dict):
    if "department_id" in values:
        ensure_exists(db, Department, values["department_id"], "department")
    if values.get("teacher_id") is not None:
        ensure_exists(db, Teacher, values["teacher_id"], "teacher")


def _relations(db: Session, course) -> dict:
    relations = {}
    if course.group_ids is not None:
        relations["groups"] = fetch_related(db, StudentGroup, course.group_ids, "group")
    if course.enrolled_student_ids is not None:
        relations["enrolled_students"] = fetch_related(db, Student, course.enrolled_student_ids, "student")
    return relations


@course_router.get("")
def list_courses(auth: RequireAuth, response: Response,
                 params: Annotated[CourseQuery, Depends()],
                 db: Session = Depends(get_db)):

    query = course_search(db, CourseScope.query(auth, db), params)

    return ok(list_db(query, params, CourseList, response))


@course_router.post("", status_code=201)
def create_course(course: CourseCreate, auth: RequireAdmin, db: Session = Depends(get_db)):

    values = course.model_dump(exclude={"group_ids", "enrolled_student_ids"})
    _check_references(db, values)

    db_course = create_db(db, Course, values, _relations(db, course))

    logger.info(f"Course {db_course.code} created by {auth.principal.user_id}")

    return ok(course_get(db_course))


@course_router.get("/{course_id}")
def get_course(course_id: str, auth: RequireAuth, db: Session = Depends(get_db)):
    return ok(course_get(get_or_404(CourseScope.query(auth, db), Course, course_id)))


@course_router.put("/{course_id}")
def update_course(course_id: str, course: CourseUpdate, auth: CanEditCourse, db: Session = Depends(get_db)):

    db_course = get_or_404(db.query(Course), Course, course_id)

    values = course.model_dump(exclude_unset=True, exclude={"group_ids", "enrolled_student_ids"})
    _check_references(db, values)

    return ok(course_get(update_db(db, db_course, values, _relations(db, course))))


@course_router.delete("/{course_id}")
def delete_course(course_id: str, auth: CanDeleteCourse, db: Session = Depends(get_db)):

    delete_db(db, get_or_404(db.query(Course), Course, course_id))

    logger.info(f"Course {course_id} deleted by {auth.principal.user_id}")

    return ok(message="Course deleted")
