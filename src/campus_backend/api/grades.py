import logging
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from campus_backend.api.crud import commit_new, delete_db, get_or_404, update_db
from campus_backend.api.exceptions import BadRequestException, ForbiddenException
from campus_backend.api.responses import ok
from campus_backend.database import get_db
from campus_backend.interface.grades import GradeCreate, GradeGet, GradeUpdate
from campus_backend.model.grade import Grade
from campus_backend.model.university import Course, Student, Teacher
from campus_backend.permissions.guards import Authorized, RequireAdminOrTeacher, RequireAuth, effective_grade_edit_permission
from campus_backend.permissions.matrix import Role
from campus_backend.permissions.scoping import GradeScope
from campus_backend.services.notifications import NotificationService

grade_router = APIRouter()
logger = logging.getLogger(__name__)


def _check_teacher_may_change(auth: Authorized, grade: Grade, db: Session):
    """Teachers may only change grades they submitted, and only while grade editing is enabled for them."""
    if auth.role != Role.TEACHER:
        return

    teacher_id = auth.principal.get_related_id_or_throw()
    teacher = db.query(Teacher).filter(Teacher.id == teacher_id).first()

    if grade.submitted_by != teacher_id:
        raise ForbiddenException(detail="grade submitted by another teacher")

    if not effective_grade_edit_permission(auth.role, teacher):
        raise ForbiddenException(detail="permission denied: canEditGrades")


@grade_router.get("")
def list_grades(auth: RequireAuth,
                student_id: Optional[str] = None,
                course_id: Optional[str] = None,
                db: Session = Depends(get_db)):

    grades = GradeScope.query(auth, db, student_id, course_id).order_by(Grade.created_at.desc()).all()

    return ok([GradeGet.model_validate(grade, from_attributes=True) for grade in grades])


@grade_router.post("", status_code=201)
def create_grade(grade: GradeCreate, auth: RequireAdminOrTeacher, db: Session = Depends(get_db)):

    course = db.query(Course).filter(Course.id == grade.course_id).first()
    if course is None:
        raise BadRequestException(detail=f"Unknown course: {grade.course_id}")

    if db.query(Student.id).filter(Student.id == grade.student_id).first() is None:
        raise BadRequestException(detail=f"Unknown student: {grade.student_id}")

    submitted_by = None
    if auth.role == Role.TEACHER:
        submitted_by = auth.principal.get_related_id_or_throw()
        if course.teacher_id != submitted_by:
            raise ForbiddenException(detail="course taught by another teacher")

    db_grade = commit_new(db, Grade(**grade.model_dump(), submitted_by=submitted_by))

    NotificationService(db).notify_new_grade(
        db_grade.student_id, course.name, db_grade.grade, db_grade.exam_type, db_grade.id, course.id
    )

    return ok(GradeGet.model_validate(db_grade, from_attributes=True))


@grade_router.get("/{grade_id}")
def get_grade(grade_id: str, auth: RequireAuth, db: Session = Depends(get_db)):
    return ok(GradeGet.model_validate(get_or_404(GradeScope.query(auth, db), Grade, grade_id), from_attributes=True))


@grade_router.put("/{grade_id}")
def update_grade(grade_id: str, grade: GradeUpdate, auth: RequireAdminOrTeacher, db: Session = Depends(get_db)):

    db_grade = get_or_404(GradeScope.query(auth, db), Grade, grade_id)
    _check_teacher_may_change(auth, db_grade, db)

    return ok(GradeGet.model_validate(update_db(db, db_grade, grade.model_dump(exclude_unset=True)), from_attributes=True))


@grade_router.delete("/{grade_id}")
def delete_grade(grade_id: str, auth: RequireAdminOrTeacher, db: Session = Depends(get_db)):

    db_grade = get_or_404(GradeScope.query(auth, db), Grade, grade_id)
    _check_teacher_may_change(auth, db_grade, db)

    delete_db(db, db_grade)

    logger.info(f"Grade {grade_id} deleted by {auth.principal.user_id}")

    return ok(message="Grade deleted")
