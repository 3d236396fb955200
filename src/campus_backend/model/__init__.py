from .base import Base, metadata
from .auth import User
from .university import Department, Teacher, Student, Course, StudentGroup, course_enrollment, course_group
from .grade import Grade
from .schedule import Schedule, Attendance
from .notification import Notification, NotificationPreferences

__all__ = [
    'Base',
    'metadata',
    'User',
    # University structure
    'Department',
    'Teacher',
    'Student',
    'Course',
    'StudentGroup',
    'course_enrollment',
    'course_group',
    # Academic records
    'Grade',
    'Schedule',
    'Attendance',
    # Notifications
    'Notification',
    'NotificationPreferences',
]
