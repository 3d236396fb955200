import json
import logging
import secrets
from datetime import date, datetime, timedelta, timezone
from typing import Annotated, Dict, List, Optional
from aiocache import BaseCache
from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from campus_backend.api.crud import commit_or_400, get_or_404, update_db
from campus_backend.api.exceptions import BadRequestException, ForbiddenException
from campus_backend.api.responses import ok
from campus_backend.database import get_db
from campus_backend.interface.attendance import (
    AttendanceGet,
    AttendanceMark,
    AttendanceQuery,
    AttendanceSummary,
    AttendanceUpdate,
    QRSession,
    QRSessionCreate,
)
from campus_backend.model.schedule import ATTENDANCE_STATUSES, Attendance
from campus_backend.model.university import Course, Student, StudentGroup
from campus_backend.permissions.guards import Authorized, RequireAdminOrTeacher, RequireAuth
from campus_backend.permissions.matrix import Role
from campus_backend.permissions.scoping import AttendanceScope
from campus_backend.redis_cache import get_redis_client
from campus_backend.services.notifications import NotificationService
from campus_backend.settings import settings

attendance_router = APIRouter()
logger = logging.getLogger(__name__)

QR_KEY_PREFIX = "attendance-qr"


def attendance_rate(present: int, late: int, total: int) -> float:
    """Share of sessions attended, late arrivals included, in percent with two decimals."""
    if total == 0:
        return 0.0
    return round((present + late) / total * 100, 2)


def summarize(counts: Dict[str, int]) -> AttendanceSummary:
    summary = AttendanceSummary(**{status: counts.get(status, 0) for status in ATTENDANCE_STATUSES})
    summary.total = sum(counts.values())
    summary.attendance_rate = attendance_rate(summary.present, summary.late, summary.total)
    return summary


def _with_summary(entry: Dict) -> Dict:
    counts = entry.pop("counts")
    entry["summary"] = summarize(counts)
    return entry


def _filtered(auth: Authorized, params: AttendanceQuery, db: Session) -> Query:
    query = AttendanceScope.query(auth, db)

    if params.course_id is not None:
        query = query.filter(Attendance.course_id == params.course_id)
    if params.group_id is not None:
        query = query.filter(Attendance.group_id == params.group_id)
    if params.student_id is not None and auth.role != Role.STUDENT:
        query = query.filter(Attendance.student_id == params.student_id)

    if params.date is not None:
        query = query.filter(Attendance.date == params.date)
    elif params.start_date is not None and params.end_date is not None:
        query = query.filter(Attendance.date >= params.start_date, Attendance.date <= params.end_date)

    return query


def _marker_id(auth: Authorized, course: Course) -> Optional[str]:
    if auth.role != Role.TEACHER:
        return None
    teacher_id = auth.principal.get_related_id_or_throw()
    if course.teacher_id != teacher_id:
        raise ForbiddenException(detail="course taught by another teacher")
    return teacher_id


@attendance_router.get("")
def list_attendance(auth: RequireAuth,
                    params: Annotated[AttendanceQuery, Depends()],
                    db: Session = Depends(get_db)):

    records = _filtered(auth, params, db).order_by(Attendance.date.desc(), Attendance.created_at.desc()).all()

    return ok([AttendanceGet.model_validate(record, from_attributes=True) for record in records])


@attendance_router.post("", status_code=201)
def mark_attendance(mark: AttendanceMark, auth: RequireAdminOrTeacher, db: Session = Depends(get_db)):

    course = db.query(Course).filter(Course.id == mark.course_id).first()
    if course is None:
        raise BadRequestException(detail=f"Unknown course: {mark.course_id}")
    if db.query(StudentGroup.id).filter(StudentGroup.id == mark.group_id).first() is None:
        raise BadRequestException(detail=f"Unknown group: {mark.group_id}")

    marked_by = _marker_id(auth, course)

    student_ids = [record.student_id for record in mark.records]
    known = {row[0] for row in db.query(Student.id).filter(Student.id.in_(student_ids)).all()}
    unknown = [student_id for student_id in student_ids if student_id not in known]
    if unknown:
        raise BadRequestException(detail=f"Unknown student ids: {', '.join(unknown)}")

    existing = {
        record.student_id: record
        for record in db.query(Attendance).filter(
            Attendance.course_id == mark.course_id,
            Attendance.date == mark.date,
            Attendance.student_id.in_(student_ids),
        ).all()
    }

    results: List[Attendance] = []
    flagged: List[Attendance] = []

    for record in mark.records:
        attendance = existing.get(record.student_id)
        changed = attendance is None or attendance.status != record.status

        if attendance is None:
            attendance = Attendance(
                student_id=record.student_id,
                course_id=mark.course_id,
                group_id=mark.group_id,
                schedule_id=mark.schedule_id,
                date=mark.date,
                check_in_method="manual",
            )
            db.add(attendance)
            existing[record.student_id] = attendance

        attendance.status = record.status
        attendance.notes = record.notes
        attendance.marked_by = marked_by
        results.append(attendance)

        # re-marking the same status only updates notes and marker
        if changed and record.status in ("absent", "late"):
            flagged.append(attendance)

    commit_or_400(db, Attendance, "create")

    service = NotificationService(db)
    for attendance in flagged:
        service.notify_absence(attendance.student_id, course.name, mark.date, attendance.status)

    return ok([AttendanceGet.model_validate(record, from_attributes=True) for record in results])


@attendance_router.get("/stats")
def attendance_stats(auth: RequireAuth,
                     params: Annotated[AttendanceQuery, Depends()],
                     db: Session = Depends(get_db)):

    query = _filtered(auth, params, db)

    overall = dict(
        query.with_entities(Attendance.status, func.count(Attendance.id))
        .group_by(Attendance.status)
        .all()
    )

    by_course: Dict[str, Dict] = {}
    rows = (
        query.join(Course, Course.id == Attendance.course_id)
        .with_entities(Course.id, Course.name, Course.code, Attendance.status, func.count(Attendance.id))
        .group_by(Course.id, Course.name, Course.code, Attendance.status)
        .all()
    )
    for course_id, name, code, status, count in rows:
        entry = by_course.setdefault(course_id, {"course_id": course_id, "course": name, "course_code": code, "counts": {}})
        entry["counts"][status] = count

    by_student: Dict[str, Dict] = {}
    if auth.role != Role.STUDENT:
        rows = (
            query.join(Student, Student.id == Attendance.student_id)
            .with_entities(Student.id, Student.name, Student.matricule, Attendance.status, func.count(Attendance.id))
            .group_by(Student.id, Student.name, Student.matricule, Attendance.status)
            .all()
        )
        for student_id, name, matricule, status, count in rows:
            entry = by_student.setdefault(student_id, {"student_id": student_id, "student_name": name, "student_matricule": matricule, "counts": {}})
            entry["counts"][status] = count

    return ok({
        "summary": summarize(overall),
        "by_course": [_with_summary(entry) for entry in by_course.values()],
        "by_student": [_with_summary(entry) for entry in by_student.values()],
    })


def qr_cache_key(token: str) -> str:
    return f"{QR_KEY_PREFIX}:{token}"


@attendance_router.post("/qr")
async def create_qr_session(qr: QRSessionCreate, auth: RequireAdminOrTeacher,
                            cache: Annotated[BaseCache, Depends(get_redis_client)],
                            db: Session = Depends(get_db)):

    course = db.query(Course).filter(Course.id == qr.course_id).first()
    if course is None:
        raise BadRequestException(detail=f"Unknown course: {qr.course_id}")
    if db.query(StudentGroup.id).filter(StudentGroup.id == qr.group_id).first() is None:
        raise BadRequestException(detail=f"Unknown group: {qr.group_id}")

    validity = qr.validity_minutes or settings.QR_DEFAULT_VALIDITY
    now = datetime.now(timezone.utc)

    session = QRSession(
        token=secrets.token_hex(32),
        course_id=qr.course_id,
        group_id=qr.group_id,
        schedule_id=qr.schedule_id,
        teacher_id=_marker_id(auth, course),
        date=now.date(),
        expires_at=now + timedelta(minutes=validity),
    )

    await cache.set(qr_cache_key(session.token), session.model_dump_json(), ttl=validity * 60)

    return ok({
        "token": session.token,
        "expires_at": session.expires_at,
        "qr_code_url": f"{settings.PUBLIC_BASE_URL}/api/attendance/qr/check-in?token={session.token}",
    })


@attendance_router.get("/qr/check-in")
async def qr_check_in(token: str, auth: RequireAuth,
                      cache: Annotated[BaseCache, Depends(get_redis_client)],
                      db: Session = Depends(get_db)):

    payload = await cache.get(qr_cache_key(token))
    if payload is None:
        raise BadRequestException(detail="Invalid or expired QR code")

    session = QRSession.model_validate(json.loads(payload))
    now = datetime.now(timezone.utc)

    if session.expires_at < now:
        await cache.delete(qr_cache_key(token))
        raise BadRequestException(detail="QR code has expired")

    if auth.role != Role.STUDENT:
        raise ForbiddenException(detail="only students can check in")

    student_id = auth.principal.get_related_id_or_throw()
    student = db.query(Student).filter(Student.id == student_id).first()

    if student is None or student.group_id != session.group_id:
        raise ForbiddenException(detail="you are not a member of this group")

    today: date = session.date
    attendance = db.query(Attendance).filter(
        Attendance.student_id == student_id,
        Attendance.course_id == session.course_id,
        Attendance.date == today,
    ).first()

    if attendance is not None and attendance.status == "present":
        raise BadRequestException(detail="already checked in")

    if attendance is None:
        attendance = Attendance(
            student_id=student_id,
            course_id=session.course_id,
            group_id=session.group_id,
            schedule_id=session.schedule_id,
            date=today,
            marked_by=session.teacher_id,
        )
        db.add(attendance)

    attendance.status = "present"
    attendance.check_in_time = now
    attendance.check_in_method = "qr_code"
    attendance.qr_code_token = token

    commit_or_400(db, Attendance, "create")
    db.refresh(attendance)

    return ok(AttendanceGet.model_validate(attendance, from_attributes=True), message="Check-in successful")


@attendance_router.put("/{attendance_id}")
def update_attendance(attendance_id: str, attendance: AttendanceUpdate, auth: RequireAdminOrTeacher, db: Session = Depends(get_db)):

    db_attendance = get_or_404(AttendanceScope.query(auth, db), Attendance, attendance_id)

    values = attendance.model_dump(exclude_unset=True)
    if auth.role == Role.TEACHER:
        values["marked_by"] = auth.principal.get_related_id_or_throw()

    return ok(AttendanceGet.model_validate(update_db(db, db_attendance, values), from_attributes=True))
