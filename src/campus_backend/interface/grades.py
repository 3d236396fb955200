from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from campus_backend.interface.base import BaseEntityGet

ExamType = Literal['Midterm', 'Final', 'Quiz', 'Assignment']

class GradeCreate(BaseModel):
    student_id: str
    course_id: str
    grade: float = Field(ge=0, le=100)
    exam_type: ExamType
    comments: Optional[str] = None

class GradeGet(BaseEntityGet):
    student_id: str
    course_id: str
    grade: float
    exam_type: ExamType
    comments: Optional[str] = None
    submitted_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class GradeUpdate(BaseModel):
    grade: Optional[float] = Field(None, ge=0, le=100)
    exam_type: Optional[ExamType] = None
    comments: Optional[str] = None
