from datetime import date
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
from campus_backend.interface.base import BaseEntityGet

DayOfWeek = Literal['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday']
SessionType = Literal['cours', 'td', 'tp', 'examen']

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

class ScheduleCreate(BaseModel):
    course_id: str
    teacher_id: Optional[str] = None
    group_id: str
    day_of_week: DayOfWeek
    start_time: str = Field(pattern=TIME_PATTERN)
    end_time: str = Field(pattern=TIME_PATTERN)
    room: str = Field(min_length=1, max_length=64)
    type: SessionType = 'cours'
    semester: int = Field(ge=1, le=2)
    academic_year: str
    is_recurring: bool = True
    specific_date: Optional[date] = None

    @model_validator(mode='after')
    def check_time_range(self):
        if self.start_time >= self.end_time:
            raise ValueError("end_time must be after start_time")
        return self

class ScheduleGet(BaseEntityGet):
    course_id: str
    teacher_id: str
    group_id: str
    day_of_week: DayOfWeek
    start_time: str
    end_time: str
    room: str
    type: SessionType
    semester: int
    academic_year: str
    is_recurring: bool
    specific_date: Optional[date] = None

    model_config = ConfigDict(from_attributes=True)

class ScheduleUpdate(BaseModel):
    course_id: Optional[str] = None
    teacher_id: Optional[str] = None
    group_id: Optional[str] = None
    day_of_week: Optional[DayOfWeek] = None
    start_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    room: Optional[str] = Field(None, min_length=1, max_length=64)
    type: Optional[SessionType] = None
    semester: Optional[int] = Field(None, ge=1, le=2)
    academic_year: Optional[str] = None
    is_recurring: Optional[bool] = None
    specific_date: Optional[date] = None

class ScheduleQuery(BaseModel):
    group_id: Optional[str] = None
    teacher_id: Optional[str] = None
    day_of_week: Optional[DayOfWeek] = None
    semester: Optional[int] = None
