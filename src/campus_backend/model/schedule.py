from sqlalchemy import (
    Boolean, CheckConstraint, Column, Date, DateTime,
    ForeignKey, Index, Integer, String
)
from sqlalchemy.orm import relationship

from .base import Base, TimestampMixin, one_of

DAYS_OF_WEEK = ('monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday')
SESSION_TYPES = ('cours', 'td', 'tp', 'examen')
ATTENDANCE_STATUSES = ('present', 'absent', 'late', 'excused')
CHECK_IN_METHODS = ('manual', 'qr_code', 'auto')


class Schedule(TimestampMixin, Base):
    __tablename__ = 'schedule'
    __table_args__ = (
        Index('schedule_group_day_idx', 'group_id', 'day_of_week'),
        Index('schedule_teacher_day_idx', 'teacher_id', 'day_of_week'),
        CheckConstraint('semester IN (1, 2)', name='ck_schedule_semester'),
        CheckConstraint(one_of('day_of_week', DAYS_OF_WEEK), name='ck_schedule_day'),
        CheckConstraint(one_of('type', SESSION_TYPES), name='ck_schedule_type'),
    )

    course_id = Column(ForeignKey('course.id', ondelete='CASCADE'), nullable=False)
    teacher_id = Column(ForeignKey('teacher.id', ondelete='CASCADE'), nullable=False)
    group_id = Column(ForeignKey('student_group.id', ondelete='CASCADE'), nullable=False)
    day_of_week = Column(String(16), nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    room = Column(String(64), nullable=False)
    type = Column(String(16), nullable=False, default='cours')
    semester = Column(Integer, nullable=False)
    academic_year = Column(String(16), nullable=False)
    is_recurring = Column(Boolean, nullable=False, default=True)
    specific_date = Column(Date)

    # Relationships
    course = relationship('Course')
    teacher = relationship('Teacher', back_populates='schedules')
    group = relationship('StudentGroup')


class Attendance(TimestampMixin, Base):
    __tablename__ = 'attendance'
    __table_args__ = (
        Index('attendance_student_course_date_key', 'student_id', 'course_id', 'date', unique=True),
        CheckConstraint(one_of('status', ATTENDANCE_STATUSES), name='ck_attendance_status'),
        CheckConstraint(one_of('check_in_method', CHECK_IN_METHODS), name='ck_attendance_check_in_method'),
    )

    student_id = Column(ForeignKey('student.id', ondelete='CASCADE'), nullable=False, index=True)
    course_id = Column(ForeignKey('course.id', ondelete='CASCADE'), nullable=False, index=True)
    schedule_id = Column(ForeignKey('schedule.id', ondelete='SET NULL'))
    group_id = Column(ForeignKey('student_group.id', ondelete='CASCADE'), nullable=False)
    date = Column(Date, nullable=False)
    status = Column(String(16), nullable=False, default='absent')
    check_in_time = Column(DateTime(True))
    check_in_method = Column(String(16), nullable=False, default='manual')
    qr_code_token = Column(String(255))
    notes = Column(String(500))
    marked_by = Column(ForeignKey('teacher.id', ondelete='SET NULL'))

    # Relationships
    student = relationship('Student')
    course = relationship('Course')
    schedule = relationship('Schedule')
