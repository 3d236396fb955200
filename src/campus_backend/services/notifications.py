"""
Notification service.

Creates in-app notifications while honouring the recipient's preferences:
a disabled notification type is skipped entirely. Delivery over email or push
is handled elsewhere; quiet hours are only reported here.
"""

import logging
from datetime import date, datetime
from typing import Iterable, Optional
from sqlalchemy.orm import Session

from campus_backend.interface.notifications import (
    ChannelPreference,
    NotificationMeta,
    NotificationPreferencesGet,
    default_channels,
)
from campus_backend.model.notification import Notification, NotificationPreferences
from campus_backend.model.university import Student, Teacher

logger = logging.getLogger(__name__)

# Preference categories without a notification type of their own
STORED_TYPE = {
    "attendance": "alert",
}


def _minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def is_in_quiet_hours(current: str, start: str, end: str) -> bool:
    """Whether HH:MM ``current`` falls in [start, end), windows may wrap past midnight."""
    now, begin, finish = _minutes(current), _minutes(start), _minutes(end)

    if begin > finish:
        return now >= begin or now < finish

    return begin <= now < finish


def preferences_for(db: Session, user_key: str) -> Optional[NotificationPreferences]:
    return db.query(NotificationPreferences).filter(NotificationPreferences.user_key == user_key).first()


def default_preferences(user_key: str, user_type: str) -> NotificationPreferences:
    defaults = NotificationPreferencesGet(user_key=user_key, user_type=user_type)
    return NotificationPreferences(
        user_key=user_key,
        user_type=user_type,
        channels={kind: pref.model_dump() for kind, pref in defaults.channels.items()},
        quiet_hours=defaults.quiet_hours.model_dump(),
        daily_digest=defaults.daily_digest.model_dump(),
        language=defaults.language,
    )


def type_preference(preferences: NotificationPreferences, kind: str) -> Optional[ChannelPreference]:
    channels = preferences.channels or {}
    if kind in channels:
        return ChannelPreference.model_validate(channels[kind])
    return default_channels().get(kind)


class NotificationService:

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        recipient_id: str,
        recipient_type: str,
        title: str,
        message: str,
        kind: str,
        priority: str = "medium",
        link: Optional[str] = None,
        meta: Optional[NotificationMeta] = None,
        now: Optional[datetime] = None,
        commit: bool = True,
    ) -> Optional[Notification]:
        """Store a notification unless the recipient disabled ``kind``."""
        preferences = preferences_for(self.db, recipient_id)

        if preferences is not None:
            pref = type_preference(preferences, kind)
            if pref is None or not pref.enabled:
                logger.info(f"Notification skipped: {kind} disabled for {recipient_id}")
                return None

            quiet = preferences.quiet_hours or {}
            if quiet.get("enabled"):
                current = (now or datetime.now()).strftime("%H:%M")
                if is_in_quiet_hours(current, quiet.get("start", "22:00"), quiet.get("end", "07:00")):
                    logger.info(f"Notification for {recipient_id} created during quiet hours")

        notification = Notification(
            recipient_id=recipient_id,
            recipient_type=recipient_type,
            title=title[:200],
            message=message[:1000],
            type=STORED_TYPE.get(kind, kind),
            priority=priority,
            link=link,
            meta=meta.model_dump(exclude_none=True) if meta is not None else None,
            is_read=False,
        )

        self.db.add(notification)
        if commit:
            self.db.commit()
            self.db.refresh(notification)

        return notification

    def notify_new_grade(self, student_id: str, course_name: str, grade_value: float,
                         exam_type: str, grade_id: str, course_id: str) -> Optional[Notification]:
        return self.create(
            recipient_id=student_id,
            recipient_type="student",
            title="New grade published",
            message=f"You received {grade_value:g}/100 in {exam_type} for {course_name}.",
            kind="grade",
            priority="high",
            link="/grades",
            meta=NotificationMeta(grade_id=grade_id, course_id=course_id),
        )

    def notify_schedule_change(self, recipient_id: str, recipient_type: str, course_name: str,
                               change: str, schedule_id: str) -> Optional[Notification]:
        messages = {
            "added": f"A new session of {course_name} was added to your schedule.",
            "modified": f"A session of {course_name} was changed in your schedule.",
            "cancelled": f"A session of {course_name} was cancelled.",
        }
        return self.create(
            recipient_id=recipient_id,
            recipient_type=recipient_type,
            title="Schedule updated",
            message=messages[change],
            kind="schedule",
            priority="high" if change == "cancelled" else "medium",
            link="/schedule",
            meta=NotificationMeta(schedule_id=schedule_id),
        )

    def notify_absence(self, student_id: str, course_name: str, day: date, status: str) -> Optional[Notification]:
        label = "absent" if status == "absent" else "late"
        return self.create(
            recipient_id=student_id,
            recipient_type="student",
            title="Absence recorded" if status == "absent" else "Late arrival recorded",
            message=f"You were marked {label} in {course_name} on {day.isoformat()}.",
            kind="attendance",
            priority="high",
            link="/attendance",
        )

    def notify_group_students(self, group_id: str, title: str, message: str, kind: str,
                              link: Optional[str] = None) -> int:
        students = self.db.query(Student.id).filter(Student.group_id == group_id).all()
        return self._fan_out((row[0] for row in students), "student", title, message, kind, link)

    def notify_department_teachers(self, department_id: str, title: str, message: str, kind: str,
                                   link: Optional[str] = None) -> int:
        teachers = self.db.query(Teacher.id).filter(Teacher.department_id == department_id).all()
        return self._fan_out((row[0] for row in teachers), "teacher", title, message, kind, link)

    def _fan_out(self, recipients: Iterable[str], recipient_type: str, title: str, message: str,
                 kind: str, link: Optional[str]) -> int:
        sent = 0
        for recipient_id in recipients:
            if self.create(recipient_id, recipient_type, title, message, kind, link=link, commit=False) is not None:
                sent += 1
        self.db.commit()
        return sent
