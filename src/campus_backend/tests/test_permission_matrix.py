"""
Tests for the role capability matrix and the route access table.
"""

import pytest

from campus_backend.permissions.matrix import (
    PROTECTED_PREFIXES,
    ROLE_PERMISSIONS,
    ROLE_ROUTES,
    Capability,
    Role,
    can_access_route,
    get_permissions,
    has_permission,
    is_admin,
    is_protected_path,
    is_student,
    is_teacher,
    match_prefix,
    normalize_path,
    validate_route_table,
)


@pytest.mark.unit
class TestRoleParsing:

    def test_known_roles(self):
        assert Role.parse("admin") == Role.ADMIN
        assert Role.parse("teacher") == Role.TEACHER
        assert Role.parse(Role.STUDENT) == Role.STUDENT

    @pytest.mark.parametrize("value", [None, "", "superuser", "Admin "])
    def test_unknown_role_falls_back_to_student(self, value):
        assert Role.parse(value) == Role.STUDENT

    def test_predicates(self):
        assert is_admin("admin") and not is_admin("teacher")
        assert is_teacher("teacher") and not is_teacher(None)
        assert is_student(None)


@pytest.mark.unit
class TestCapabilityMatrix:

    def test_every_role_covers_every_capability(self):
        for role in Role:
            assert set(ROLE_PERMISSIONS[role].keys()) == {capability.value for capability in Capability}

    def test_admin_has_everything(self):
        assert all(get_permissions(Role.ADMIN).values())

    def test_teacher_grants(self):
        assert has_permission("teacher", Capability.EDIT_GRADES)
        assert has_permission("teacher", Capability.VIEW_ALL_STUDENTS)
        assert has_permission("teacher", Capability.EXPORT_DATA)
        assert not has_permission("teacher", Capability.CREATE_STUDENT)
        assert not has_permission("teacher", Capability.DELETE_SCHEDULE)
        assert not has_permission("teacher", Capability.MANAGE_GRADE_PERMISSIONS)

    def test_student_only_sees_own_data(self):
        granted = {name for name, value in get_permissions("student").items() if value}
        assert granted == {
            "canViewOwnCourses",
            "canViewOwnGrades",
            "canViewOwnGroup",
            "canViewOwnSchedule",
            "canViewOwnAttendance",
            "canViewDashboard",
        }

    def test_capability_by_name(self):
        assert has_permission("admin", "canDeleteStudent")
        assert not has_permission("admin", "canLaunchRockets")

    def test_unknown_role_gets_student_permissions(self):
        assert get_permissions("root") == get_permissions(Role.STUDENT)

    def test_matrix_is_read_only(self):
        with pytest.raises(TypeError):
            ROLE_PERMISSIONS[Role.STUDENT]["canDeleteStudent"] = True


@pytest.mark.unit
class TestRouteTable:

    @pytest.mark.parametrize("path, expected", [
        ("", "/"),
        ("/students/", "/students"),
        ("students", "/students"),
        ("/grades?page=2", "/grades"),
    ])
    def test_normalize_path(self, path, expected):
        assert normalize_path(path) == expected

    def test_segment_boundaries(self):
        assert match_prefix("/students/42", PROTECTED_PREFIXES) == "/students"
        assert match_prefix("/studentsfoo", PROTECTED_PREFIXES) is None
        assert match_prefix("/", PROTECTED_PREFIXES) == "/"

    def test_root_only_matches_itself(self):
        assert not is_protected_path("/login")
        assert not is_protected_path("/api/students")
        assert is_protected_path("/")

    @pytest.mark.parametrize("path", ["/", "/courses", "/courses/CS101", "/grades"])
    def test_student_allowed(self, path):
        assert can_access_route("student", path)

    @pytest.mark.parametrize("path", ["/students", "/teachers/1", "/groups", "/departments"])
    def test_student_denied(self, path):
        assert not can_access_route("student", path)

    def test_staff_reach_every_section(self):
        for role in (Role.ADMIN, Role.TEACHER):
            assert all(can_access_route(role, prefix) for prefix in PROTECTED_PREFIXES)

    def test_unknown_role_routes_like_student(self):
        assert not can_access_route("hacker", "/students")
        assert can_access_route("hacker", "/grades")

    def test_table_is_consistent(self):
        validate_route_table()

    def test_orphaned_prefix_rejected(self):
        with pytest.raises(ValueError, match="/reports"):
            validate_route_table(ROLE_ROUTES, PROTECTED_PREFIXES + ("/reports",))

    def test_undeclared_prefix_rejected(self):
        routes = dict(ROLE_ROUTES)
        routes[Role.STUDENT] = routes[Role.STUDENT] + ("/secret",)
        with pytest.raises(ValueError, match="/secret"):
            validate_route_table(routes, PROTECTED_PREFIXES)

    def test_missing_role_rejected(self):
        routes = {Role.ADMIN: PROTECTED_PREFIXES}
        with pytest.raises(ValueError, match="teacher"):
            validate_route_table(routes, PROTECTED_PREFIXES)
