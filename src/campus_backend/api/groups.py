import logging
from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from campus_backend.api.crud import commit_new, delete_db, ensure_exists, fetch_related, get_or_404, update_db
from campus_backend.api.exceptions import BadRequestException
from campus_backend.api.responses import ok
from campus_backend.database import get_db
from campus_backend.interface.groups import GroupCreate, GroupUpdate, group_get
from campus_backend.model.university import Course, Department, Student, StudentGroup
from campus_backend.permissions.guards import RequireAdmin, RequireAuth
from campus_backend.permissions.scoping import GroupScope

group_router = APIRouter()
logger = logging.getLogger(__name__)


def enroll_members(group: StudentGroup, students: Optional[List[Student]] = None, courses: Optional[List[Course]] = None):
    """Enroll ``students`` in ``courses``, defaulting to the group's current members and courses."""
    students = group.students if students is None else students
    courses = group.courses if courses is None else courses

    for course in courses:
        enrolled = {student.id for student in course.enrolled_students}
        for student in students:
            if student.id not in enrolled:
                course.enrolled_students.append(student)
                enrolled.add(student.id)


def sync_membership(db: Session, group: StudentGroup, student_ids: Optional[List[str]], course_ids: Optional[List[str]]):
    """Apply new member/course lists to ``group``.

    Students leaving the group lose their group reference, newcomers are
    enrolled in the group's courses and courses joining the group get the
    group's students enrolled. Enrollments are never removed here.
    """
    if student_ids is not None:
        students = fetch_related(db, Student, student_ids, "student")
        previous = {student.id for student in group.students}
        added = [student for student in students if student.id not in previous]

        group.students = students
        enroll_members(group, students=added)

    if course_ids is not None:
        courses = fetch_related(db, Course, course_ids, "course")
        previous = {course.id for course in group.courses}
        added = [course for course in courses if course.id not in previous]

        group.courses = courses
        enroll_members(group, courses=added)


def _check_code(db: Session, code: str, group_id: Optional[str] = None):
    query = db.query(StudentGroup.id).filter(StudentGroup.code == code)
    if group_id is not None:
        query = query.filter(StudentGroup.id != group_id)
    if query.first() is not None:
        raise BadRequestException(detail="Group code already exists")


@group_router.get("")
def list_groups(auth: RequireAuth, db: Session = Depends(get_db)):

    groups = GroupScope.query(auth, db).order_by(StudentGroup.code).all()

    return ok([group_get(group) for group in groups])


@group_router.get("/{group_id}")
def get_group(group_id: str, auth: RequireAuth, db: Session = Depends(get_db)):
    return ok(group_get(get_or_404(GroupScope.query(auth, db), StudentGroup, group_id)))


@group_router.post("", status_code=201)
def create_group(group: GroupCreate, auth: RequireAdmin, db: Session = Depends(get_db)):

    _check_code(db, group.code)
    ensure_exists(db, Department, group.department_id, "department")

    db_group = StudentGroup(**group.model_dump(exclude={"student_ids", "course_ids"}))
    db.add(db_group)

    sync_membership(db, db_group, group.student_ids, group.course_ids)

    db_group = commit_new(db, db_group)

    logger.info(f"Group {db_group.code} created by {auth.principal.user_id}")

    return ok(group_get(db_group), message="Group created successfully")


@group_router.put("/{group_id}")
def update_group(group_id: str, group: GroupUpdate, auth: RequireAdmin, db: Session = Depends(get_db)):

    db_group = get_or_404(db.query(StudentGroup), StudentGroup, group_id)

    values = group.model_dump(exclude_unset=True, exclude={"student_ids", "course_ids"})
    if "code" in values:
        _check_code(db, values["code"], group_id)
    if "department_id" in values:
        ensure_exists(db, Department, values["department_id"], "department")

    sync_membership(db, db_group, group.student_ids, group.course_ids)

    return ok(group_get(update_db(db, db_group, values)), message="Group updated successfully")


@group_router.delete("/{group_id}")
def delete_group(group_id: str, auth: RequireAdmin, db: Session = Depends(get_db)):

    db_group = get_or_404(db.query(StudentGroup), StudentGroup, group_id)
    db_group.students = []

    delete_db(db, db_group)

    logger.info(f"Group {group_id} deleted by {auth.principal.user_id}")

    return ok(message="Group deleted successfully")
