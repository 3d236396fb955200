from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from sqlalchemy.orm import Session
from campus_backend.interface.base import BaseEntityGet, ListQuery
from campus_backend.model.university import Teacher

class TeacherCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = None
    department_id: str
    specialization: Optional[str] = None
    can_edit_grades: bool = False

    @field_validator('email')
    @classmethod
    def lower_email(cls, value: str):
        return value.lower()

class TeacherGet(BaseEntityGet):
    name: str
    email: str
    phone: Optional[str] = None
    department_id: str
    specialization: Optional[str] = None
    can_edit_grades: bool

    model_config = ConfigDict(from_attributes=True)

class TeacherList(BaseModel):
    id: str
    name: str
    email: str
    department_id: str
    specialization: Optional[str] = None
    can_edit_grades: bool

    model_config = ConfigDict(from_attributes=True)

class TeacherUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    department_id: Optional[str] = None
    specialization: Optional[str] = None

    @field_validator('email')
    @classmethod
    def lower_email(cls, value: Optional[str]):
        return value.lower() if value is not None else None

class TeacherQuery(ListQuery):
    department_id: Optional[str] = None
    name: Optional[str] = None

def teacher_search(db: Session, query, params: Optional[TeacherQuery]):
    if params.department_id != None:
        query = query.filter(Teacher.department_id == params.department_id)
    if params.name != None:
        query = query.filter(Teacher.name.ilike(f"%{params.name}%"))
    return query.order_by(Teacher.name)
