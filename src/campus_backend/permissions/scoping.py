"""
Per role data scoping.

Handlers receive the ``Authorized`` result of their guard and hand it to the
builders below, which restrict the query to what the principal may see. Roles
that scope by their linked teacher or student record raise ``NotFoundException``
when the principal has none, instead of returning an unscoped result.
"""

from typing import Any, Dict, List, Optional
from sqlalchemy import false, select
from sqlalchemy.orm import Query, Session

from campus_backend.model.grade import Grade
from campus_backend.model.notification import Notification
from campus_backend.model.schedule import Attendance, Schedule
from campus_backend.model.university import Course, Student, StudentGroup, course_enrollment
from campus_backend.permissions.guards import Authorized
from campus_backend.permissions.matrix import Role


class CourseScope:

    @classmethod
    def taught_by(cls, teacher_id: str):
        return select(Course.id).where(Course.teacher_id == teacher_id)

    @classmethod
    def enrolled(cls, student_id: str):
        return select(course_enrollment.c.course_id).where(course_enrollment.c.student_id == student_id)

    @classmethod
    def teacher_course_ids(cls, teacher_id: str, db: Session) -> List[str]:
        return [row[0] for row in db.execute(cls.taught_by(teacher_id)).all()]

    @classmethod
    def query(cls, auth: Authorized, db: Session) -> Query:
        query = db.query(Course)

        if auth.role == Role.TEACHER:
            return query.filter(Course.teacher_id == auth.principal.get_related_id_or_throw())

        if auth.role == Role.STUDENT:
            return query.filter(Course.id.in_(cls.enrolled(auth.principal.get_related_id_or_throw())))

        return query


class GradeScope:

    @classmethod
    def filters(cls, auth: Authorized, student_id: Optional[str] = None,
                course_id: Optional[str] = None, own_course_ids: Optional[List[str]] = None) -> Dict[str, Any]:
        """Equality/membership filters for a grade listing.

        Students are always restricted to their own record and their filter
        arguments are ignored. Teachers stay within the courses they teach; a
        course filter outside of those is dropped.
        """
        if auth.role == Role.STUDENT:
            return {"student_id": auth.principal.get_related_id_or_throw()}

        filters: Dict[str, Any] = {}

        if auth.role == Role.TEACHER:
            own_course_ids = list(own_course_ids or [])
            filters["course_id"] = own_course_ids
            if student_id:
                filters["student_id"] = student_id
            if course_id and course_id in own_course_ids:
                filters["course_id"] = course_id
            return filters

        if student_id:
            filters["student_id"] = student_id
        if course_id:
            filters["course_id"] = course_id
        return filters

    @classmethod
    def query(cls, auth: Authorized, db: Session, student_id: Optional[str] = None,
              course_id: Optional[str] = None) -> Query:
        own_course_ids = None
        if auth.role == Role.TEACHER:
            own_course_ids = CourseScope.teacher_course_ids(auth.principal.get_related_id_or_throw(), db)

        query = db.query(Grade)

        for field, value in cls.filters(auth, student_id, course_id, own_course_ids).items():
            column = getattr(Grade, field)
            query = query.filter(column.in_(value)) if isinstance(value, list) else query.filter(column == value)

        return query


class StudentScope:

    @classmethod
    def query(cls, auth: Authorized, db: Session) -> Query:
        query = db.query(Student)

        if auth.role == Role.TEACHER:
            teacher_id = auth.principal.get_related_id_or_throw()
            enrolled = (
                select(course_enrollment.c.student_id)
                .join(Course, Course.id == course_enrollment.c.course_id)
                .where(Course.teacher_id == teacher_id)
            )
            return query.filter(Student.id.in_(enrolled))

        if auth.role == Role.STUDENT:
            return query.filter(Student.id == auth.principal.get_related_id_or_throw())

        return query


class GroupScope:

    @classmethod
    def query(cls, auth: Authorized, db: Session) -> Query:
        query = db.query(StudentGroup)

        if auth.role == Role.STUDENT:
            group_id = select(Student.group_id).where(Student.id == auth.principal.get_related_id_or_throw())
            return query.filter(StudentGroup.id.in_(group_id))

        return query


class ScheduleScope:

    @classmethod
    def query(cls, auth: Authorized, db: Session) -> Query:
        query = db.query(Schedule)

        if auth.role == Role.STUDENT:
            student = db.query(Student).filter(Student.id == auth.principal.get_related_id_or_throw()).first()
            if student is None or student.group_id is None:
                return query.filter(false())
            return query.filter(Schedule.group_id == student.group_id)

        if auth.role == Role.TEACHER:
            return query.filter(Schedule.teacher_id == auth.principal.get_related_id_or_throw())

        return query


class AttendanceScope:

    @classmethod
    def query(cls, auth: Authorized, db: Session) -> Query:
        query = db.query(Attendance)

        if auth.role == Role.STUDENT:
            return query.filter(Attendance.student_id == auth.principal.get_related_id_or_throw())

        if auth.role == Role.TEACHER:
            return query.filter(Attendance.course_id.in_(CourseScope.taught_by(auth.principal.get_related_id_or_throw())))

        return query


class NotificationScope:

    @classmethod
    def query(cls, auth: Authorized, db: Session) -> Query:
        return db.query(Notification).filter(Notification.recipient_id == auth.principal.get_related_id_or_throw())
