from sqlalchemy import (
    Boolean, CheckConstraint, Column, Date, ForeignKey,
    Integer, String, Table, Text
)
from sqlalchemy.orm import relationship

from .base import Base, TimestampMixin


course_enrollment = Table(
    'course_enrollment',
    Base.metadata,
    Column('course_id', ForeignKey('course.id', ondelete='CASCADE'), primary_key=True),
    Column('student_id', ForeignKey('student.id', ondelete='CASCADE'), primary_key=True),
)

course_group = Table(
    'course_group',
    Base.metadata,
    Column('course_id', ForeignKey('course.id', ondelete='CASCADE'), primary_key=True),
    Column('group_id', ForeignKey('student_group.id', ondelete='CASCADE'), primary_key=True),
)


class Department(TimestampMixin, Base):
    __tablename__ = 'department'

    name = Column(String(255), unique=True, nullable=False)
    code = Column(String(32), unique=True, nullable=False)
    description = Column(Text)
    head = Column(String(255))

    # Relationships
    teachers = relationship('Teacher', back_populates='department')
    students = relationship('Student', back_populates='department')
    courses = relationship('Course', back_populates='department')
    groups = relationship('StudentGroup', back_populates='department')


class Teacher(TimestampMixin, Base):
    __tablename__ = 'teacher'

    name = Column(String(255), nullable=False)
    email = Column(String(320), unique=True, nullable=False)
    phone = Column(String(64))
    department_id = Column(ForeignKey('department.id', ondelete='RESTRICT'), nullable=False)
    specialization = Column(String(255))
    can_edit_grades = Column(Boolean, nullable=False, default=False)

    # Relationships
    department = relationship('Department', back_populates='teachers')
    courses = relationship('Course', back_populates='teacher')
    schedules = relationship('Schedule', back_populates='teacher')


class Student(TimestampMixin, Base):
    __tablename__ = 'student'
    __table_args__ = (
        CheckConstraint('current_year >= 1 AND current_year <= 5', name='ck_student_current_year'),
        CheckConstraint("status IN ('active', 'inactive', 'graduated', 'suspended')", name='ck_student_status'),
    )

    name = Column(String(255), nullable=False)
    matricule = Column(String(64), unique=True, nullable=False)
    email = Column(String(320), unique=True, nullable=False)
    phone = Column(String(64))
    department_id = Column(ForeignKey('department.id', ondelete='RESTRICT'), nullable=False)
    group_id = Column(ForeignKey('student_group.id', ondelete='SET NULL'))
    date_of_birth = Column(Date)
    address = Column(String(1024))
    academic_year = Column(String(16), nullable=False, default='2024-2025')
    current_year = Column(Integer, nullable=False, default=1)
    status = Column(String(16), nullable=False, default='active')

    # Relationships
    department = relationship('Department', back_populates='students')
    group = relationship('StudentGroup', back_populates='students')
    enrolled_courses = relationship('Course', secondary=course_enrollment, back_populates='enrolled_students')
    grades = relationship('Grade', back_populates='student', cascade='all, delete-orphan')


class Course(TimestampMixin, Base):
    __tablename__ = 'course'
    __table_args__ = (
        CheckConstraint('credits >= 1 AND credits <= 10', name='ck_course_credits'),
        CheckConstraint('semester IN (1, 2)', name='ck_course_semester'),
    )

    name = Column(String(255), nullable=False)
    code = Column(String(32), unique=True, nullable=False)
    description = Column(Text)
    credits = Column(Integer, nullable=False)
    department_id = Column(ForeignKey('department.id', ondelete='RESTRICT'), nullable=False)
    teacher_id = Column(ForeignKey('teacher.id', ondelete='SET NULL'))
    semester = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)

    # Relationships
    department = relationship('Department', back_populates='courses')
    teacher = relationship('Teacher', back_populates='courses')
    enrolled_students = relationship('Student', secondary=course_enrollment, back_populates='enrolled_courses')
    groups = relationship('StudentGroup', secondary=course_group, back_populates='courses')
    grades = relationship('Grade', back_populates='course', cascade='all, delete-orphan')


class StudentGroup(TimestampMixin, Base):
    __tablename__ = 'student_group'

    name = Column(String(255), nullable=False)
    code = Column(String(32), unique=True, nullable=False)
    department_id = Column(ForeignKey('department.id', ondelete='RESTRICT'), nullable=False)
    academic_year = Column(String(16), nullable=False)
    level = Column(String(64), nullable=False)
    capacity = Column(Integer, nullable=False, default=30)
    description = Column(Text)

    # Relationships
    department = relationship('Department', back_populates='groups')
    students = relationship('Student', back_populates='group')
    courses = relationship('Course', secondary=course_group, back_populates='groups')
