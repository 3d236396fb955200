"""
Role based permission matrix.

Every role maps to a complete set of capabilities and to the page prefixes it
may navigate to. Both tables are built once at import time and are read-only
afterwards, so they can be shared freely between concurrent requests.
"""

import logging
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)


class Role(str, Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"

    @classmethod
    def parse(cls, value: Union["Role", str, None]) -> "Role":
        """Resolve a stored role value.

        Missing or unrecognised values fall back to STUDENT, the role with the
        fewest capabilities.
        """
        if isinstance(value, Role):
            return value
        if value is not None:
            try:
                return cls(str(value).lower())
            except ValueError:
                pass
        logger.warning(f"Unknown role {value!r}, falling back to '{cls.STUDENT.value}'")
        return cls.STUDENT


class Capability(str, Enum):
    # Students
    CREATE_STUDENT = "canCreateStudent"
    EDIT_STUDENT = "canEditStudent"
    DELETE_STUDENT = "canDeleteStudent"
    VIEW_ALL_STUDENTS = "canViewAllStudents"
    # Teachers
    CREATE_TEACHER = "canCreateTeacher"
    EDIT_TEACHER = "canEditTeacher"
    DELETE_TEACHER = "canDeleteTeacher"
    VIEW_ALL_TEACHERS = "canViewAllTeachers"
    MANAGE_GRADE_PERMISSIONS = "canManageGradePermissions"
    # Courses
    CREATE_COURSE = "canCreateCourse"
    EDIT_COURSE = "canEditCourse"
    DELETE_COURSE = "canDeleteCourse"
    VIEW_ALL_COURSES = "canViewAllCourses"
    VIEW_OWN_COURSES = "canViewOwnCourses"
    # Groups
    CREATE_GROUP = "canCreateGroup"
    EDIT_GROUP = "canEditGroup"
    DELETE_GROUP = "canDeleteGroup"
    VIEW_ALL_GROUPS = "canViewAllGroups"
    VIEW_OWN_GROUP = "canViewOwnGroup"
    # Departments
    CREATE_DEPARTMENT = "canCreateDepartment"
    EDIT_DEPARTMENT = "canEditDepartment"
    DELETE_DEPARTMENT = "canDeleteDepartment"
    VIEW_ALL_DEPARTMENTS = "canViewAllDepartments"
    # Grades
    CREATE_GRADE = "canCreateGrade"
    EDIT_GRADES = "canEditGrades"
    DELETE_GRADE = "canDeleteGrade"
    VIEW_ALL_GRADES = "canViewAllGrades"
    VIEW_OWN_GRADES = "canViewOwnGrades"
    # Schedules
    CREATE_SCHEDULE = "canCreateSchedule"
    EDIT_SCHEDULE = "canEditSchedule"
    DELETE_SCHEDULE = "canDeleteSchedule"
    VIEW_OWN_SCHEDULE = "canViewOwnSchedule"
    # Attendance
    MARK_ATTENDANCE = "canMarkAttendance"
    VIEW_OWN_ATTENDANCE = "canViewOwnAttendance"
    # Notifications
    SEND_NOTIFICATIONS = "canSendNotifications"
    # Dashboard
    VIEW_DASHBOARD = "canViewDashboard"
    VIEW_STATISTICS = "canViewStatistics"
    EXPORT_DATA = "canExportData"


PermissionSet = Mapping[str, bool]

_TEACHER_GRANTS = frozenset({
    Capability.VIEW_ALL_STUDENTS,
    Capability.VIEW_ALL_TEACHERS,
    Capability.VIEW_ALL_COURSES,
    Capability.VIEW_OWN_COURSES,
    Capability.VIEW_ALL_GROUPS,
    Capability.VIEW_OWN_GROUP,
    Capability.VIEW_ALL_DEPARTMENTS,
    Capability.CREATE_GRADE,
    Capability.EDIT_GRADES,
    Capability.DELETE_GRADE,
    Capability.VIEW_OWN_GRADES,
    Capability.CREATE_SCHEDULE,
    Capability.EDIT_SCHEDULE,
    Capability.VIEW_OWN_SCHEDULE,
    Capability.MARK_ATTENDANCE,
    Capability.VIEW_OWN_ATTENDANCE,
    Capability.SEND_NOTIFICATIONS,
    Capability.VIEW_DASHBOARD,
    Capability.VIEW_STATISTICS,
    Capability.EXPORT_DATA,
})

_STUDENT_GRANTS = frozenset({
    Capability.VIEW_OWN_COURSES,
    Capability.VIEW_OWN_GRADES,
    Capability.VIEW_OWN_GROUP,
    Capability.VIEW_OWN_SCHEDULE,
    Capability.VIEW_OWN_ATTENDANCE,
    Capability.VIEW_DASHBOARD,
})

_GRANTS = {
    Role.ADMIN: frozenset(Capability),
    Role.TEACHER: _TEACHER_GRANTS,
    Role.STUDENT: _STUDENT_GRANTS,
}

ROLE_PERMISSIONS: Mapping[Role, PermissionSet] = MappingProxyType({
    role: MappingProxyType({capability.value: capability in _GRANTS[role] for capability in Capability})
    for role in Role
})

ROOT_PATH = "/"

PROTECTED_PREFIXES: Tuple[str, ...] = (
    ROOT_PATH,
    "/students",
    "/teachers",
    "/courses",
    "/groups",
    "/departments",
    "/grades",
)

ROLE_ROUTES: Mapping[Role, Tuple[str, ...]] = MappingProxyType({
    Role.ADMIN: PROTECTED_PREFIXES,
    Role.TEACHER: PROTECTED_PREFIXES,
    Role.STUDENT: (ROOT_PATH, "/courses", "/grades"),
})


def validate_route_table(routes: Mapping[Role, Tuple[str, ...]] = ROLE_ROUTES, protected: Tuple[str, ...] = PROTECTED_PREFIXES):
    """Every protected prefix must be owned by at least one role and every owned prefix must be protected."""
    owned = {prefix for prefixes in routes.values() for prefix in prefixes}

    orphaned = [prefix for prefix in protected if prefix not in owned]
    if orphaned:
        raise ValueError(f"Protected prefixes without any role: {', '.join(orphaned)}")

    unknown = sorted(owned.difference(protected))
    if unknown:
        raise ValueError(f"Route table grants undeclared prefixes: {', '.join(unknown)}")

    missing_roles = [role.value for role in Role if role not in routes]
    if missing_roles:
        raise ValueError(f"Route table misses roles: {', '.join(missing_roles)}")


validate_route_table()


def get_permissions(role: Union[Role, str, None]) -> PermissionSet:
    return ROLE_PERMISSIONS[Role.parse(role)]


def has_permission(role: Union[Role, str, None], capability: Union[Capability, str]) -> bool:
    name = capability.value if isinstance(capability, Capability) else capability
    return get_permissions(role).get(name, False)


def normalize_path(path: str) -> str:
    if not path:
        return ROOT_PATH
    path = path.split("?", 1)[0].split("#", 1)[0]
    if not path.startswith("/"):
        path = "/" + path
    if len(path) > 1:
        path = path.rstrip("/") or ROOT_PATH
    return path


def prefix_matches(prefix: str, path: str) -> bool:
    """Segment aware prefix test; the root prefix only matches the root path."""
    if prefix == ROOT_PATH:
        return path == ROOT_PATH
    return path == prefix or path.startswith(prefix + "/")


def match_prefix(path: str, prefixes: Tuple[str, ...]) -> Optional[str]:
    """Longest prefix of ``prefixes`` that applies to ``path``."""
    path = normalize_path(path)
    candidates = [prefix for prefix in prefixes if prefix_matches(prefix, path)]
    if not candidates:
        return None
    return max(candidates, key=len)


def can_access_route(role: Union[Role, str, None], path: str) -> bool:
    return match_prefix(path, ROLE_ROUTES[Role.parse(role)]) is not None


def is_protected_path(path: str) -> bool:
    return match_prefix(path, PROTECTED_PREFIXES) is not None


def is_admin(role: Union[Role, str, None]) -> bool:
    return Role.parse(role) == Role.ADMIN


def is_teacher(role: Union[Role, str, None]) -> bool:
    return Role.parse(role) == Role.TEACHER


def is_student(role: Union[Role, str, None]) -> bool:
    return Role.parse(role) == Role.STUDENT
