from sqlalchemy import CheckConstraint, Column, Float, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from .base import Base, TimestampMixin, one_of

EXAM_TYPES = ('Midterm', 'Final', 'Quiz', 'Assignment')


class Grade(TimestampMixin, Base):
    __tablename__ = 'grade'
    __table_args__ = (
        Index('grade_student_course_exam_key', 'student_id', 'course_id', 'exam_type', unique=True),
        CheckConstraint('grade >= 0 AND grade <= 100', name='ck_grade_range'),
        CheckConstraint(one_of('exam_type', EXAM_TYPES), name='ck_grade_exam_type'),
    )

    student_id = Column(ForeignKey('student.id', ondelete='CASCADE'), nullable=False, index=True)
    course_id = Column(ForeignKey('course.id', ondelete='CASCADE'), nullable=False, index=True)
    grade = Column(Float, nullable=False)
    exam_type = Column(String(32), nullable=False)
    comments = Column(Text)
    submitted_by = Column(ForeignKey('teacher.id', ondelete='SET NULL'))

    # Relationships
    student = relationship('Student', back_populates='grades')
    course = relationship('Course', back_populates='grades')
    submitter = relationship('Teacher', foreign_keys=[submitted_by])
