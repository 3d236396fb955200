from datetime import datetime
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
from campus_backend.interface.base import BaseEntityGet

NotificationType = Literal['grade', 'schedule', 'announcement', 'reminder', 'alert']
Priority = Literal['low', 'medium', 'high']
RecipientType = Literal['student', 'teacher', 'admin']
Language = Literal['fr', 'en', 'ar']

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

class NotificationMeta(BaseModel):
    course_id: Optional[str] = None
    grade_id: Optional[str] = None
    schedule_id: Optional[str] = None
    attendance_id: Optional[str] = None

class NotificationCreate(BaseModel):
    recipient_id: Optional[str] = None
    recipient_type: RecipientType
    title: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1, max_length=1000)
    type: NotificationType
    priority: Priority = 'medium'
    link: Optional[str] = None
    meta: Optional[NotificationMeta] = None
    expires_at: Optional[datetime] = None
    broadcast: bool = False
    recipients: List[str] = []
    group_id: Optional[str] = None
    department_id: Optional[str] = None

    @model_validator(mode='after')
    def check_recipients(self):
        if self.broadcast and not (self.recipients or self.group_id or self.department_id):
            raise ValueError("broadcast requires recipients, a group_id or a department_id")
        if not self.broadcast and not self.recipient_id:
            raise ValueError("recipient_id is required")
        return self

class NotificationGet(BaseEntityGet):
    recipient_id: str
    recipient_type: RecipientType
    title: str
    message: str
    type: NotificationType
    priority: Priority
    is_read: bool
    read_at: Optional[datetime] = None
    link: Optional[str] = None
    meta: Optional[NotificationMeta] = None
    expires_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

class NotificationPage(BaseModel):
    notifications: List[NotificationGet]
    pagination: Pagination
    unread_count: int

class ChannelPreference(BaseModel):
    enabled: bool = True
    email: bool = True
    push: bool = True

class QuietHours(BaseModel):
    enabled: bool = False
    start: str = Field("22:00", pattern=TIME_PATTERN)
    end: str = Field("07:00", pattern=TIME_PATTERN)

class DailyDigest(BaseModel):
    enabled: bool = False
    time: str = Field("08:00", pattern=TIME_PATTERN)

def default_channels() -> Dict[str, ChannelPreference]:
    return {
        "grade": ChannelPreference(),
        "schedule": ChannelPreference(),
        "attendance": ChannelPreference(email=False),
        "announcement": ChannelPreference(),
        "reminder": ChannelPreference(email=False),
        "alert": ChannelPreference(),
    }

class NotificationPreferencesGet(BaseModel):
    user_key: str
    user_type: RecipientType
    channels: Dict[str, ChannelPreference] = Field(default_factory=default_channels)
    quiet_hours: QuietHours = Field(default_factory=QuietHours)
    daily_digest: DailyDigest = Field(default_factory=DailyDigest)
    language: Language = 'fr'

    model_config = ConfigDict(from_attributes=True)

class NotificationPreferencesUpdate(BaseModel):
    channels: Optional[Dict[Literal['grade', 'schedule', 'attendance', 'announcement', 'reminder', 'alert'], ChannelPreference]] = None
    quiet_hours: Optional[QuietHours] = None
    daily_digest: Optional[DailyDigest] = None
    language: Optional[Language] = None
