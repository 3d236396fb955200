"""
Tests for page navigation gating, end to end and at the page handlers.
"""

import pytest
from fastapi import Request

from campus_backend.interface.tokens import encrypt_password
from campus_backend.model.auth import User
from campus_backend.permissions.principal import Principal
from campus_backend.permissions.routes import Navigation, evaluate_navigation
from campus_backend.web.pages import _section_page


@pytest.mark.unit
class TestEvaluateNavigation:

    def test_public_paths_bypass(self):
        assert evaluate_navigation("/login", None, "/login").outcome == Navigation.BYPASS
        assert evaluate_navigation("/api/grades", None, "/login").outcome == Navigation.BYPASS

    def test_anonymous_goes_to_landing(self):
        decision = evaluate_navigation("/grades", None, "/login")
        assert decision.outcome == Navigation.REDIRECT
        assert decision.redirect_to == "/login"

    def test_student_sent_home_from_staff_sections(self):
        decision = evaluate_navigation("/students/42", Principal(user_id="u", role="student"), "/login")
        assert not decision.allowed
        assert decision.redirect_to == "/"

    def test_teacher_allowed(self):
        decision = evaluate_navigation("/departments", Principal(user_id="u", role="teacher"), "/login")
        assert decision.outcome == Navigation.ALLOW
        assert decision.allowed


@pytest.mark.integration
class TestRouteGuardMiddleware:

    @pytest.fixture
    def login(self, test_db, client_for, university):

        def sign_in(email: str, role: str, related_id=None):
            test_db.add(User(name=email.split("@")[0], email=email, password=encrypt_password("pw"),
                             role=role, related_id=related_id))
            test_db.commit()
            client = client_for(None)
            response = client.post("/api/auth/login", json={"email": email, "password": "pw"})
            assert response.status_code == 200
            return client

        return sign_in

    def test_anonymous_redirected_to_login(self, client_for):
        response = client_for(None).get("/grades", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/login"

    def test_login_page_is_public(self, client_for):
        response = client_for(None).get("/login")

        assert response.status_code == 200
        assert "Sign in" in response.text

    def test_student_redirected_home(self, login, university):
        client = login("chloe@campus.edu", "student", university.chloe.id)

        response = client.get("/students", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/"

    def test_student_sees_own_sections_only(self, login, university):
        client = login("chloe@campus.edu", "student", university.chloe.id)

        response = client.get("/")

        assert response.status_code == 200
        assert 'href="/grades"' in response.text
        assert 'href="/courses"' in response.text
        assert 'href="/students"' not in response.text

    def test_teacher_listing_page(self, login, university):
        client = login("alice@campus.edu", "teacher", university.alice.id)

        response = client.get("/students")

        assert response.status_code == 200
        assert "Chloe Petit" in response.text
        assert "Emma Roux" not in response.text

    def test_api_paths_not_redirected(self, client_for):
        response = client_for(None).get("/api/grades", follow_redirects=False)

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "unauthorized"}

    def test_logout_ends_session(self, login):
        client = login("admin@campus.edu", "admin")

        assert client.get("/teachers", follow_redirects=False).status_code == 200

        client.post("/api/auth/logout")

        response = client.get("/teachers", follow_redirects=False)
        assert response.status_code == 307
        assert response.headers["location"] == "/login"


@pytest.mark.integration
class TestSectionPages:

    def test_page_checks_role_without_middleware(self, test_db, chloe_principal):
        students_page = _section_page("/students")

        response = students_page(Request({"type": "http"}), principal=chloe_principal, db=test_db)

        assert response.status_code == 303
        assert response.headers["location"] == "/"

    def test_page_renders_for_allowed_role(self, test_db, alice_principal, university):
        students_page = _section_page("/students")

        response = students_page(Request({"type": "http"}), principal=alice_principal, db=test_db)

        assert response.status_code == 200
        assert b"Chloe Petit" in response.body
