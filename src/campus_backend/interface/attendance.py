import datetime as dt
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from campus_backend.interface.base import BaseEntityGet

AttendanceStatus = Literal['present', 'absent', 'late', 'excused']
CheckInMethod = Literal['manual', 'qr_code', 'auto']

class AttendanceRecord(BaseModel):
    student_id: str
    status: AttendanceStatus = 'absent'
    notes: Optional[str] = Field(None, max_length=500)

class AttendanceMark(BaseModel):
    """One or many attendance marks for a single course session."""
    course_id: str
    group_id: str
    date: dt.date
    schedule_id: Optional[str] = None
    records: List[AttendanceRecord] = Field(min_length=1)

class AttendanceGet(BaseEntityGet):
    student_id: str
    course_id: str
    schedule_id: Optional[str] = None
    group_id: str
    date: dt.date
    status: AttendanceStatus
    check_in_time: Optional[dt.datetime] = None
    check_in_method: CheckInMethod
    notes: Optional[str] = None
    marked_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class AttendanceUpdate(BaseModel):
    status: Optional[AttendanceStatus] = None
    notes: Optional[str] = Field(None, max_length=500)

class AttendanceQuery(BaseModel):
    student_id: Optional[str] = None
    course_id: Optional[str] = None
    group_id: Optional[str] = None
    date: Optional[dt.date] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None

class AttendanceSummary(BaseModel):
    total: int = 0
    present: int = 0
    absent: int = 0
    late: int = 0
    excused: int = 0
    attendance_rate: float = 0.0

class QRSessionCreate(BaseModel):
    course_id: str
    group_id: str
    schedule_id: Optional[str] = None
    validity_minutes: Optional[int] = Field(None, ge=1, le=240)

class QRSession(BaseModel):
    token: str
    course_id: str
    group_id: str
    schedule_id: Optional[str] = None
    teacher_id: Optional[str] = None
    date: dt.date
    expires_at: dt.datetime
