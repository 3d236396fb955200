from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from campus_backend.interface.base import BaseEntityGet
from campus_backend.model.university import StudentGroup

class GroupCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    code: str = Field(min_length=1, max_length=32)
    department_id: str
    academic_year: str
    level: str
    capacity: int = Field(30, ge=1)
    description: Optional[str] = None
    student_ids: List[str] = []
    course_ids: List[str] = []

    @field_validator('code')
    @classmethod
    def upper_code(cls, value: str):
        return value.strip().upper()

class GroupGet(BaseEntityGet):
    name: str
    code: str
    department_id: str
    academic_year: str
    level: str
    capacity: int
    description: Optional[str] = None
    student_ids: List[str] = []
    course_ids: List[str] = []
    student_count: int = 0
    course_count: int = 0
    is_full: bool = False

    model_config = ConfigDict(from_attributes=True)

class GroupUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    code: Optional[str] = Field(None, min_length=1, max_length=32)
    department_id: Optional[str] = None
    academic_year: Optional[str] = None
    level: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1)
    description: Optional[str] = None
    student_ids: Optional[List[str]] = None
    course_ids: Optional[List[str]] = None

    @field_validator('code')
    @classmethod
    def upper_code(cls, value: Optional[str]):
        return value.strip().upper() if value is not None else None

def group_get(group: StudentGroup) -> GroupGet:
    dto = GroupGet.model_validate(group, from_attributes=True)
    dto.student_ids = [student.id for student in group.students]
    dto.course_ids = [course.id for course in group.courses]
    dto.student_count = len(dto.student_ids)
    dto.course_count = len(dto.course_ids)
    dto.is_full = dto.student_count >= group.capacity
    return dto
