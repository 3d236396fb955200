"""
Tests for the notification service and preference handling.
"""

from datetime import date, datetime

import pytest

from campus_backend.model.notification import Notification
from campus_backend.services.notifications import (
    NotificationService,
    default_preferences,
    is_in_quiet_hours,
    type_preference,
)


@pytest.mark.unit
class TestQuietHours:

    @pytest.mark.parametrize("current, expected", [
        ("23:30", True),
        ("02:00", True),
        ("07:00", False),
        ("12:00", False),
        ("22:00", True),
    ])
    def test_window_over_midnight(self, current, expected):
        assert is_in_quiet_hours(current, "22:00", "07:00") is expected

    def test_window_within_day(self):
        assert is_in_quiet_hours("13:00", "12:00", "14:00")
        assert not is_in_quiet_hours("14:00", "12:00", "14:00")


@pytest.mark.unit
class TestPreferences:

    def test_defaults(self):
        preferences = default_preferences("student-1", "student")

        assert preferences.language == "fr"
        assert preferences.channels["attendance"] == {"enabled": True, "email": False, "push": True}
        assert preferences.quiet_hours["enabled"] is False

    def test_missing_type_falls_back_to_default(self):
        preferences = default_preferences("student-1", "student")
        preferences.channels = {}

        assert type_preference(preferences, "grade").enabled is True


@pytest.mark.integration
class TestNotificationService:

    def test_without_preferences_notification_is_stored(self, test_db, university):
        notification = NotificationService(test_db).notify_new_grade(
            university.chloe.id, "Algorithms", 15.5, "midterm", "grade-1", university.algorithms.id,
        )

        assert notification is not None
        assert notification.type == "grade"
        assert notification.priority == "high"
        assert notification.meta == {"grade_id": "grade-1", "course_id": university.algorithms.id}
        assert "15.5/100" in notification.message

    def test_disabled_type_is_skipped(self, test_db, university):
        preferences = default_preferences(university.chloe.id, "student")
        preferences.channels = {**preferences.channels, "grade": {"enabled": False, "email": False, "push": False}}
        test_db.add(preferences)
        test_db.commit()

        service = NotificationService(test_db)
        skipped = service.notify_new_grade(university.chloe.id, "Algorithms", 12, "final", "grade-2", university.algorithms.id)
        kept = service.notify_absence(university.chloe.id, "Algorithms", date(2025, 1, 13), "late")

        assert skipped is None
        assert kept.type == "alert"
        assert kept.title == "Late arrival recorded"
        assert test_db.query(Notification).count() == 1

    def test_quiet_hours_do_not_block_storage(self, test_db, university):
        preferences = default_preferences(university.chloe.id, "student")
        preferences.quiet_hours = {"enabled": True, "start": "22:00", "end": "07:00"}
        test_db.add(preferences)
        test_db.commit()

        notification = NotificationService(test_db).create(
            university.chloe.id, "student", "Late notice", "Sent at night", "announcement",
            now=datetime(2025, 1, 13, 23, 15),
        )

        assert notification is not None

    def test_group_fan_out(self, test_db, university):
        sent = NotificationService(test_db).notify_group_students(
            university.group.id, "Exam", "Exam moved to Friday", "announcement",
        )

        assert sent == 2
        recipients = {n.recipient_id for n in test_db.query(Notification).all()}
        assert recipients == {university.chloe.id, university.david.id}

    def test_department_fan_out(self, test_db, university):
        sent = NotificationService(test_db).notify_department_teachers(
            university.department.id, "Meeting", "Staff meeting at noon", "reminder",
        )

        assert sent == 2
        assert {n.recipient_type for n in test_db.query(Notification).all()} == {"teacher"}
