"""
Tests for the command line interface.
"""

import pytest
from click.testing import CliRunner

import campus_backend.cli.users as users_module
from campus_backend.cli.cli import cli
from campus_backend.interface.tokens import decrypt_password
from campus_backend.model.auth import User


@pytest.fixture
def runner():
    return CliRunner()


@pytest.mark.unit
class TestPermissionCommands:

    def test_show_single_role(self, runner):
        result = runner.invoke(cli, ["permissions", "show", "student"])

        assert result.exit_code == 0
        assert result.output.splitlines()[0] == "student"
        assert "canViewOwnGrades" in result.output
        assert "admin" not in result.output.splitlines()

    def test_show_rejects_unknown_role(self, runner):
        result = runner.invoke(cli, ["permissions", "show", "dean"])

        assert result.exit_code == 2

    def test_routes_lists_every_section(self, runner):
        result = runner.invoke(cli, ["permissions", "routes"])

        assert result.exit_code == 0
        assert len(result.output.splitlines()) == 7
        assert "/students      admin, teacher" in result.output.splitlines()

    def test_check_allowed(self, runner):
        result = runner.invoke(cli, ["permissions", "check", "student", "/grades/2024"])

        assert result.exit_code == 0
        assert "section /grades" in result.output

    def test_check_denied(self, runner):
        result = runner.invoke(cli, ["permissions", "check", "student", "/students"])

        assert result.exit_code == 1
        assert "redirected" in result.output

    def test_check_unprotected(self, runner):
        result = runner.invoke(cli, ["permissions", "check", "teacher", "/login"])

        assert result.exit_code == 0
        assert "not protected" in result.output


@pytest.mark.integration
class TestCreateUser:

    @pytest.fixture(autouse=True)
    def use_test_db(self, monkeypatch, test_db):
        monkeypatch.setattr(users_module, "get_db", lambda: iter([test_db]))

    def test_creates_teacher_account(self, runner, test_db, university):
        # the command closes the session, which detaches the fixture records
        alice_id = university.alice.id

        result = runner.invoke(cli, [
            "users", "create", "-e", "Alice@Campus.edu", "-n", "Alice Martin", "-p", "s3cret",
            "-r", "teacher", "--related-id", alice_id,
        ])

        assert result.exit_code == 0, result.output
        user = test_db.query(User).filter(User.email == "alice@campus.edu").one()
        assert user.role == "teacher"
        assert user.related_id == alice_id
        assert decrypt_password(user.password) == "s3cret"

    def test_warns_without_related_record(self, runner, test_db):
        result = runner.invoke(cli, ["users", "create", "-e", "new@campus.edu", "-n", "New", "-p", "pw"])

        assert result.exit_code == 0
        assert "Warning" in result.output

    def test_duplicate_email(self, runner, test_db):
        test_db.add(User(name="Admin", email="admin@campus.edu", password="x", role="admin"))
        test_db.commit()

        result = runner.invoke(cli, ["users", "create", "-e", "ADMIN@campus.edu", "-n", "Other", "-p", "pw", "-r", "admin"])

        assert result.exit_code == 1
        assert "already exists" in result.output
