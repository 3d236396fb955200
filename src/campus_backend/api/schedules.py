import logging
from typing import Annotated, Dict, List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy import or_
from sqlalchemy.orm import Session

from campus_backend.api.crud import commit_new, delete_db, get_or_404, update_db
from campus_backend.api.exceptions import BadRequestException, ForbiddenException
from campus_backend.api.responses import ok
from campus_backend.database import get_db
from campus_backend.interface.schedules import ScheduleCreate, ScheduleGet, ScheduleQuery, ScheduleUpdate
from campus_backend.model.schedule import DAYS_OF_WEEK, Schedule
from campus_backend.model.university import Course, Student, StudentGroup, Teacher
from campus_backend.permissions.guards import Authorized, RequireAdmin, RequireAdminOrTeacher, RequireAuth
from campus_backend.permissions.matrix import Role
from campus_backend.permissions.scoping import ScheduleScope
from campus_backend.services.notifications import NotificationService

schedule_router = APIRouter()
logger = logging.getLogger(__name__)

# Fields an update may set to null; teacher_id then falls back to the course teacher
CLEARABLE_FIELDS = {"teacher_id", "specific_date"}


def find_conflict(db: Session, values: Dict, exclude_id: Optional[str] = None) -> Optional[Schedule]:
    """First schedule on the same day overlapping in time with the same group, teacher or room."""
    query = db.query(Schedule).filter(
        Schedule.day_of_week == values["day_of_week"],
        Schedule.start_time < values["end_time"],
        Schedule.end_time > values["start_time"],
        or_(
            Schedule.group_id == values["group_id"],
            Schedule.teacher_id == values["teacher_id"],
            Schedule.room == values["room"],
        ),
    )

    if exclude_id is not None:
        query = query.filter(Schedule.id != exclude_id)

    return query.first()


def group_by_day(schedules: List[Schedule]) -> Dict[str, List[ScheduleGet]]:
    by_day = {day: [] for day in DAYS_OF_WEEK}
    for schedule in sorted(schedules, key=lambda s: s.start_time):
        by_day.setdefault(schedule.day_of_week, []).append(ScheduleGet.model_validate(schedule, from_attributes=True))
    return by_day


def _resolve_teacher(auth: Authorized, values: Dict, course: Course) -> str:
    if auth.role == Role.TEACHER:
        teacher_id = auth.principal.get_related_id_or_throw()
        if values.get("teacher_id") not in (None, teacher_id):
            raise ForbiddenException(detail="teachers can only schedule their own sessions")
        return teacher_id

    teacher_id = values.get("teacher_id") or course.teacher_id
    if teacher_id is None:
        raise BadRequestException(detail="teacher_id is required")
    return teacher_id


def _check_references(db: Session, values: Dict) -> Course:
    course = db.query(Course).filter(Course.id == values["course_id"]).first()
    if course is None:
        raise BadRequestException(detail=f"Unknown course: {values['course_id']}")
    if db.query(StudentGroup.id).filter(StudentGroup.id == values["group_id"]).first() is None:
        raise BadRequestException(detail=f"Unknown group: {values['group_id']}")
    if values.get("teacher_id") and db.query(Teacher.id).filter(Teacher.id == values["teacher_id"]).first() is None:
        raise BadRequestException(detail=f"Unknown teacher: {values['teacher_id']}")
    return course


def _notify_group(db: Session, schedule: Schedule, course_name: str, change: str):
    service = NotificationService(db)
    for (student_id,) in db.query(Student.id).filter(Student.group_id == schedule.group_id).all():
        service.notify_schedule_change(student_id, "student", course_name, change, schedule.id)


@schedule_router.get("")
def list_schedules(auth: RequireAuth,
                   params: Annotated[ScheduleQuery, Depends()],
                   db: Session = Depends(get_db)):

    query = ScheduleScope.query(auth, db)

    if params.group_id is not None:
        query = query.filter(Schedule.group_id == params.group_id)
    if params.teacher_id is not None:
        query = query.filter(Schedule.teacher_id == params.teacher_id)
    if params.day_of_week is not None:
        query = query.filter(Schedule.day_of_week == params.day_of_week)
    if params.semester is not None:
        query = query.filter(Schedule.semester == params.semester)

    schedules = query.order_by(Schedule.day_of_week, Schedule.start_time).all()

    return ok({
        "schedules": [ScheduleGet.model_validate(schedule, from_attributes=True) for schedule in schedules],
        "by_day": group_by_day(schedules),
        "total": len(schedules),
    })


@schedule_router.post("", status_code=201)
def create_schedule(schedule: ScheduleCreate, auth: RequireAdminOrTeacher, db: Session = Depends(get_db)):

    values = schedule.model_dump()
    course = _check_references(db, values)
    values["teacher_id"] = _resolve_teacher(auth, values, course)

    if find_conflict(db, values) is not None:
        raise BadRequestException(detail="Schedule conflict detected")

    db_schedule = commit_new(db, Schedule(**values))
    _notify_group(db, db_schedule, course.name, "added")

    return ok(ScheduleGet.model_validate(db_schedule, from_attributes=True))


@schedule_router.get("/{schedule_id}")
def get_schedule(schedule_id: str, auth: RequireAuth, db: Session = Depends(get_db)):
    return ok(ScheduleGet.model_validate(get_or_404(ScheduleScope.query(auth, db), Schedule, schedule_id), from_attributes=True))


@schedule_router.put("/{schedule_id}")
def update_schedule(schedule_id: str, schedule: ScheduleUpdate, auth: RequireAdminOrTeacher, db: Session = Depends(get_db)):

    db_schedule = get_or_404(ScheduleScope.query(auth, db), Schedule, schedule_id)

    changes = schedule.model_dump(exclude_unset=True)
    cleared = [field for field, value in changes.items() if value is None and field not in CLEARABLE_FIELDS]
    if cleared:
        raise BadRequestException(detail=f"{', '.join(cleared)} cannot be null")

    values = {column: getattr(db_schedule, column) for column in ScheduleCreate.model_fields}
    values.update(changes)

    if values["start_time"] >= values["end_time"]:
        raise BadRequestException(detail="end_time must be after start_time")

    course = _check_references(db, values)
    values["teacher_id"] = _resolve_teacher(auth, values, course)

    if find_conflict(db, values, exclude_id=schedule_id) is not None:
        raise BadRequestException(detail="Schedule conflict detected")

    changes["teacher_id"] = values["teacher_id"]
    db_schedule = update_db(db, db_schedule, changes)
    _notify_group(db, db_schedule, course.name, "modified")

    return ok(ScheduleGet.model_validate(db_schedule, from_attributes=True))


@schedule_router.delete("/{schedule_id}")
def delete_schedule(schedule_id: str, auth: RequireAdmin, db: Session = Depends(get_db)):

    db_schedule = get_or_404(db.query(Schedule), Schedule, schedule_id)
    course_name = db_schedule.course.name if db_schedule.course is not None else "a course"

    _notify_group(db, db_schedule, course_name, "cancelled")
    delete_db(db, db_schedule)

    logger.info(f"Schedule {schedule_id} deleted by {auth.principal.user_id}")

    return ok(message="Schedule deleted")
