from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.orm import Session
from campus_backend.interface.base import BaseEntityGet, ListQuery
from campus_backend.model.university import Department

class DepartmentCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    code: str = Field(min_length=1, max_length=32)
    description: Optional[str] = None
    head: Optional[str] = None

    @field_validator('code')
    @classmethod
    def upper_code(cls, value: str):
        return value.strip().upper()

class DepartmentGet(BaseEntityGet):
    name: str
    code: str
    description: Optional[str] = None
    head: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class DepartmentList(BaseModel):
    id: str
    name: str
    code: str
    head: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class DepartmentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    code: Optional[str] = Field(None, min_length=1, max_length=32)
    description: Optional[str] = None
    head: Optional[str] = None

    @field_validator('code')
    @classmethod
    def upper_code(cls, value: Optional[str]):
        return value.strip().upper() if value is not None else None

class DepartmentQuery(ListQuery):
    name: Optional[str] = None
    code: Optional[str] = None

def department_search(db: Session, query, params: Optional[DepartmentQuery]):
    if params.name != None:
        query = query.filter(Department.name == params.name)
    if params.code != None:
        query = query.filter(Department.code == params.code.upper())
    return query.order_by(Department.name)
