from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Index, JSON, String

from .base import Base, TimestampMixin, one_of

NOTIFICATION_TYPES = ('grade', 'schedule', 'announcement', 'reminder', 'alert')
PRIORITIES = ('low', 'medium', 'high')
LANGUAGES = ('fr', 'en', 'ar')


class Notification(TimestampMixin, Base):
    __tablename__ = 'notification'
    __table_args__ = (
        Index('notification_recipient_read_idx', 'recipient_id', 'is_read'),
        CheckConstraint(one_of('type', NOTIFICATION_TYPES), name='ck_notification_type'),
        CheckConstraint(one_of('priority', PRIORITIES), name='ck_notification_priority'),
    )

    recipient_id = Column(String(36), nullable=False)
    recipient_type = Column(String(16), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(String(1000), nullable=False)
    type = Column(String(16), nullable=False)
    priority = Column(String(16), nullable=False, default='medium')
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime(True))
    link = Column(String(1024))
    # course_id, grade_id, schedule_id
    meta = Column(JSON)
    expires_at = Column(DateTime(True))


class NotificationPreferences(TimestampMixin, Base):
    __tablename__ = 'notification_preferences'
    __table_args__ = (
        CheckConstraint(one_of('language', LANGUAGES), name='ck_notification_preferences_language'),
    )

    # related id for teachers and students, user id otherwise
    user_key = Column(String(36), unique=True, nullable=False)
    user_type = Column(String(16), nullable=False)
    channels = Column(JSON, nullable=False)
    quiet_hours = Column(JSON, nullable=False)
    daily_digest = Column(JSON, nullable=False)
    language = Column(String(2), nullable=False, default='fr')
