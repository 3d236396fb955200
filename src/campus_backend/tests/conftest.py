"""
Pytest configuration and fixtures for all tests.

Tests run against an in-memory SQLite database and the in-process session
cache; no Postgres or Redis is required.
"""

import base64
import os
import sys

os.environ["CACHE_BACKEND"] = "memory"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DEBUG_MODE"] = "testing"
os.environ.setdefault("TOKEN_SECRET", base64.urlsafe_b64encode(b"campus-test-secret-key-32-bytes!").decode())

# Ensure campus_backend is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from datetime import date
from types import SimpleNamespace
from typing import Generator, Optional
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from campus_backend.database import get_db
from campus_backend.model import Base
from campus_backend.model.university import Course, Department, Student, StudentGroup, Teacher
from campus_backend.permissions.auth import get_current_principal
from campus_backend.permissions.principal import Principal
from campus_backend.server import app


@pytest.fixture(scope="function")
def test_db() -> Generator[Session, None, None]:
    """Create a test database session using SQLite in-memory."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def university(test_db: Session) -> SimpleNamespace:
    """A department with two teachers, two courses, one group and three students."""
    department = Department(name="Computer Science", code="CS")
    test_db.add(department)
    test_db.flush()

    alice = Teacher(name="Alice Martin", email="alice@campus.edu", department_id=department.id)
    bob = Teacher(name="Bob Durand", email="bob@campus.edu", department_id=department.id)
    test_db.add_all([alice, bob])
    test_db.flush()

    group = StudentGroup(name="L1 Group A", code="L1-A", department_id=department.id,
                         academic_year="2024-2025", level="L1", capacity=30)
    test_db.add(group)
    test_db.flush()

    algorithms = Course(name="Algorithms", code="CS101", credits=6, semester=1, year=1,
                        department_id=department.id, teacher_id=alice.id)
    databases = Course(name="Databases", code="CS201", credits=4, semester=2, year=2,
                       department_id=department.id, teacher_id=bob.id)
    test_db.add_all([algorithms, databases])
    test_db.flush()

    students = [
        Student(name=name, matricule=matricule, email=f"{matricule.lower()}@campus.edu",
                department_id=department.id, group_id=group.id, date_of_birth=date(2004, 1, 1))
        for name, matricule in (("Chloe Petit", "S001"), ("David Moreau", "S002"))
    ]
    outsider = Student(name="Emma Roux", matricule="S003", email="s003@campus.edu", department_id=department.id)
    test_db.add_all(students + [outsider])
    test_db.flush()

    algorithms.enrolled_students = [students[0], students[1]]
    algorithms.groups = [group]
    databases.enrolled_students = [outsider]
    test_db.commit()

    return SimpleNamespace(
        department=department,
        alice=alice,
        bob=bob,
        group=group,
        algorithms=algorithms,
        databases=databases,
        chloe=students[0],
        david=students[1],
        emma=outsider,
    )


@pytest.fixture
def admin_principal() -> Principal:
    return Principal(user_id="user-admin", role="admin", name="Admin", email="admin@campus.edu")


@pytest.fixture
def alice_principal(university) -> Principal:
    return Principal(user_id="user-alice", role="teacher", related_id=university.alice.id,
                     name="Alice Martin", email="alice@campus.edu")


@pytest.fixture
def bob_principal(university) -> Principal:
    return Principal(user_id="user-bob", role="teacher", related_id=university.bob.id,
                     name="Bob Durand", email="bob@campus.edu")


@pytest.fixture
def chloe_principal(university) -> Principal:
    return Principal(user_id="user-chloe", role="student", related_id=university.chloe.id,
                     name="Chloe Petit", email="s001@campus.edu")


@pytest.fixture
def client_for(test_db: Session):
    """Build a TestClient acting as the given principal (None for anonymous requests)."""

    def override_get_db():
        yield test_db

    def make(principal: Optional[Principal]) -> TestClient:
        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_current_principal] = lambda: principal
        return TestClient(app)

    yield make

    app.dependency_overrides.clear()
