from datetime import date
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from sqlalchemy.orm import Session
from campus_backend.interface.base import BaseEntityGet, ListQuery
from campus_backend.model.university import Student

StudentStatus = Literal['active', 'inactive', 'graduated', 'suspended']

class StudentCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    matricule: str = Field(min_length=1, max_length=64)
    email: EmailStr
    phone: Optional[str] = None
    department_id: str
    group_id: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    academic_year: str = "2024-2025"
    current_year: int = Field(1, ge=1, le=5)
    status: StudentStatus = 'active'
    enrolled_course_ids: List[str] = []

    @field_validator('matricule')
    @classmethod
    def upper_matricule(cls, value: str):
        return value.strip().upper()

    @field_validator('email')
    @classmethod
    def lower_email(cls, value: str):
        return value.lower()

class StudentGet(BaseEntityGet):
    name: str
    matricule: str
    email: str
    phone: Optional[str] = None
    department_id: str
    group_id: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    academic_year: str
    current_year: int
    status: StudentStatus
    enrolled_course_ids: List[str] = []

    model_config = ConfigDict(from_attributes=True)

class StudentList(BaseModel):
    id: str
    name: str
    matricule: str
    email: str
    department_id: str
    group_id: Optional[str] = None
    current_year: int
    status: StudentStatus

    model_config = ConfigDict(from_attributes=True)

class StudentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    matricule: Optional[str] = Field(None, min_length=1, max_length=64)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    department_id: Optional[str] = None
    group_id: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    academic_year: Optional[str] = None
    current_year: Optional[int] = Field(None, ge=1, le=5)
    status: Optional[StudentStatus] = None
    enrolled_course_ids: Optional[List[str]] = None

    @field_validator('matricule')
    @classmethod
    def upper_matricule(cls, value: Optional[str]):
        return value.strip().upper() if value is not None else None

    @field_validator('email')
    @classmethod
    def lower_email(cls, value: Optional[str]):
        return value.lower() if value is not None else None

class StudentQuery(ListQuery):
    department_id: Optional[str] = None
    group_id: Optional[str] = None
    status: Optional[StudentStatus] = None
    current_year: Optional[int] = None
    search: Optional[str] = None

def student_get(student: Student) -> StudentGet:
    dto = StudentGet.model_validate(student, from_attributes=True)
    dto.enrolled_course_ids = [course.id for course in student.enrolled_courses]
    return dto

def student_search(db: Session, query, params: Optional[StudentQuery]):
    if params.department_id != None:
        query = query.filter(Student.department_id == params.department_id)
    if params.group_id != None:
        query = query.filter(Student.group_id == params.group_id)
    if params.status != None:
        query = query.filter(Student.status == params.status)
    if params.current_year != None:
        query = query.filter(Student.current_year == params.current_year)
    if params.search != None:
        pattern = f"%{params.search}%"
        query = query.filter(Student.name.ilike(pattern) | Student.matricule.ilike(pattern))
    return query.order_by(Student.name)
