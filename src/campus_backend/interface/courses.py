from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.orm import Session
from campus_backend.interface.base import BaseEntityGet, ListQuery
from campus_backend.model.university import Course

class CourseCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    code: str = Field(min_length=1, max_length=32)
    description: Optional[str] = None
    credits: int = Field(ge=1, le=10)
    department_id: str
    teacher_id: Optional[str] = None
    semester: int = Field(ge=1, le=2)
    year: int
    group_ids: List[str] = []
    enrolled_student_ids: List[str] = []

    @field_validator('code')
    @classmethod
    def upper_code(cls, value: str):
        return value.strip().upper()

class CourseGet(BaseEntityGet):
    name: str
    code: str
    description: Optional[str] = None
    credits: int
    department_id: str
    teacher_id: Optional[str] = None
    semester: int
    year: int
    group_ids: List[str] = []
    enrolled_student_ids: List[str] = []

    model_config = ConfigDict(from_attributes=True)

class CourseList(BaseModel):
    id: str
    name: str
    code: str
    credits: int
    department_id: str
    teacher_id: Optional[str] = None
    semester: int
    year: int

    model_config = ConfigDict(from_attributes=True)

class CourseUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    code: Optional[str] = Field(None, min_length=1, max_length=32)
    description: Optional[str] = None
    credits: Optional[int] = Field(None, ge=1, le=10)
    department_id: Optional[str] = None
    teacher_id: Optional[str] = None
    semester: Optional[int] = Field(None, ge=1, le=2)
    year: Optional[int] = None
    group_ids: Optional[List[str]] = None
    enrolled_student_ids: Optional[List[str]] = None

    @field_validator('code')
    @classmethod
    def upper_code(cls, value: Optional[str]):
        return value.strip().upper() if value is not None else None

class CourseQuery(ListQuery):
    department_id: Optional[str] = None
    teacher_id: Optional[str] = None
    semester: Optional[int] = None
    year: Optional[int] = None

def course_get(course: Course) -> CourseGet:
    dto = CourseGet.model_validate(course, from_attributes=True)
    dto.group_ids = [group.id for group in course.groups]
    dto.enrolled_student_ids = [student.id for student in course.enrolled_students]
    return dto

def course_search(db: Session, query, params: Optional[CourseQuery]):
    if params.department_id != None:
        query = query.filter(Course.department_id == params.department_id)
    if params.teacher_id != None:
        query = query.filter(Course.teacher_id == params.teacher_id)
    if params.semester != None:
        query = query.filter(Course.semester == params.semester)
    if params.year != None:
        query = query.filter(Course.year == params.year)
    return query.order_by(Course.code)
